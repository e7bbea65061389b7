from collections import defaultdict
from typing import Dict, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.notes import Note, NoteTag
from models.tags import Tag
from models.votes import Vote, VoteType
from schemas.notes import NoteView, TagRef, VoteSummary

_LABELS = {VoteType.UPVOTE: "upvote", VoteType.DOWNVOTE: "downvote"}


def vote_label(vote_type: VoteType | None) -> str | None:
    if vote_type is None:
        return None
    return _LABELS[VoteType(vote_type)]


async def ledger_counts(db: AsyncSession, note_ids: Sequence[int]) -> Dict[int, Dict[VoteType, int]]:
    """Count Vote rows per note and type; the ledger is the authoritative source."""
    counts: Dict[int, Dict[VoteType, int]] = {nid: {VoteType.UPVOTE: 0, VoteType.DOWNVOTE: 0} for nid in note_ids}
    if not note_ids:
        return counts
    rows = await db.execute(
        select(Vote.note_id, Vote.type, func.count(Vote.id))
        .where(Vote.note_id.in_(note_ids))
        .group_by(Vote.note_id, Vote.type)
    )
    for note_id, vote_type, count in rows.all():
        counts[note_id][VoteType(vote_type)] = count
    return counts


async def user_votes(db: AsyncSession, note_ids: Sequence[int], user_id: int | None) -> Dict[int, VoteType]:
    if not note_ids or user_id is None:
        return {}
    rows = await db.execute(
        select(Vote.note_id, Vote.type).where(Vote.note_id.in_(note_ids), Vote.user_id == user_id)
    )
    return {note_id: VoteType(vote_type) for note_id, vote_type in rows.all()}


async def vote_summary(db: AsyncSession, note_id: int, viewer_id: int | None) -> VoteSummary:
    counts = (await ledger_counts(db, [note_id]))[note_id]
    mine = (await user_votes(db, [note_id], viewer_id)).get(note_id)
    return VoteSummary(
        upvotes=counts[VoteType.UPVOTE],
        downvotes=counts[VoteType.DOWNVOTE],
        user_vote=vote_label(mine),
    )


async def build_note_views(db: AsyncSession, notes: Sequence[Note], viewer_id: int | None = None) -> List[NoteView]:
    note_ids = [n.id for n in notes]
    tags_map: Dict[int, List[TagRef]] = defaultdict(list)
    if note_ids:
        tag_rows = await db.execute(
            select(NoteTag.note_id, Tag.id, Tag.name, Tag.slug)
            .join(Tag, Tag.id == NoteTag.tag_id)
            .where(NoteTag.note_id.in_(note_ids))
            .order_by(NoteTag.created_at, Tag.id)
        )
        for note_id, tag_id, name, slug in tag_rows.all():
            tags_map[note_id].append(TagRef(id=tag_id, name=name, slug=slug))
    counts = await ledger_counts(db, note_ids)
    mine = await user_votes(db, note_ids, viewer_id)
    return [
        NoteView(
            id=n.id,
            title=n.title,
            content=n.content,
            workspace_id=n.workspace_id,
            created_by=n.created_by,
            type=n.type,
            status=n.status,
            upvotes=n.upvotes or 0,
            downvotes=n.downvotes or 0,
            created_at=n.created_at,
            updated_at=n.updated_at or n.created_at,
            tags=tags_map.get(n.id, []),
            votes=VoteSummary(
                upvotes=counts[n.id][VoteType.UPVOTE],
                downvotes=counts[n.id][VoteType.DOWNVOTE],
                user_vote=vote_label(mine.get(n.id)),
            ),
        )
        for n in notes
    ]


async def build_note_view(db: AsyncSession, note: Note, viewer_id: int | None = None) -> NoteView:
    return (await build_note_views(db, [note], viewer_id))[0]
