from pydantic import Field
from datetime import datetime
from typing import List, Literal, Optional

from models.notes import NoteStatus, NoteType
from schemas.common import CamelModel


class TagRef(CamelModel):
    id: int
    name: str
    slug: str


class VoteSummary(CamelModel):
    upvotes: int = 0
    downvotes: int = 0
    user_vote: Optional[Literal["upvote", "downvote"]] = None


class NoteView(CamelModel):
    id: int
    title: str
    content: str
    workspace_id: int
    created_by: int
    type: NoteType
    status: NoteStatus
    upvotes: int = 0
    downvotes: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    tags: List[TagRef] = []
    votes: VoteSummary = VoteSummary()


class NoteCreate(CamelModel):
    title: str = Field(min_length=3, max_length=200)
    content: str = Field(min_length=1, max_length=100000)
    workspace_id: int
    tags: List[str] = Field(default_factory=list, max_length=10)
    type: NoteType = NoteType.PRIVATE
    status: NoteStatus = NoteStatus.DRAFT


class NoteUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1, max_length=100000)
    tags: Optional[List[str]] = Field(default=None, max_length=10)
    type: Optional[NoteType] = None
    status: Optional[NoteStatus] = None
