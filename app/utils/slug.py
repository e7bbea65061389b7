import re
from typing import Awaitable, Callable

_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RE = re.compile(r"[\s_-]+", re.ASCII)
_EDGE_RE = re.compile(r"^-+|-+$")


def generate_slug(text: str) -> str:
    value = (text or "").lower().strip()
    value = _STRIP_RE.sub("", value)
    value = _SEPARATOR_RE.sub("-", value)
    return _EDGE_RE.sub("", value)


async def generate_unique_slug(name: str, exists: Callable[[str], Awaitable[bool]]) -> str:
    """Return the slug of ``name``, suffixed with -1, -2, ... until ``exists`` reports it free.

    ``exists`` carries the uniqueness scope, e.g. one company for workspace slugs.
    """
    base = generate_slug(name)
    slug = base
    counter = 1
    while await exists(slug):
        slug = f"{base}-{counter}"
        counter += 1
    return slug
