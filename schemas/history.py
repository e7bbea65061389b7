from datetime import datetime
from typing import Optional

from schemas.common import CamelModel


class HistoryAuthor(CamelModel):
    id: int
    first_name: str = ""
    last_name: str = ""
    email: str


class HistoryEntryView(CamelModel):
    id: int
    note_id: int
    previous_title: str
    previous_content: str
    updated_by: Optional[int] = None
    created_at: datetime
    user: Optional[HistoryAuthor] = None
