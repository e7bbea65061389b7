from pydantic import Field
from typing import Optional
from datetime import datetime

from schemas.common import CamelModel


class WorkspaceCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class WorkspaceUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class WorkspaceView(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    company_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    note_count: Optional[int] = None


class WorkspaceStats(CamelModel):
    total_notes: int
    published_notes: int
    draft_notes: int
    total_votes: int
