import math
from dataclasses import dataclass

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def get_pagination_params(page=None, limit=None, *, max_limit: int = MAX_LIMIT) -> PageParams:
    page_num = max(1, _to_int(page) or DEFAULT_PAGE)
    limit_num = min(max_limit, max(1, _to_int(limit) or DEFAULT_LIMIT))
    return PageParams(page=page_num, limit=limit_num)


def create_pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
