from datetime import datetime
from typing import Optional

from schemas.common import CamelModel


class TagView(CamelModel):
    id: int
    name: str
    slug: str
    note_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
