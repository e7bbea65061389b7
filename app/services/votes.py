"""Vote ledger.

One Vote row per (note, user). Each cast/change/remove writes the ledger row and
applies the matching delta to the note's denormalized counters in a single
commit; the unique constraint on (note_id, user_id) rejects concurrent
duplicates.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import invalidate_public_notes
from app.errors import ConflictError, ForbiddenError, NotFoundError
from app.security import Principal
from app.services.views import vote_summary
from models.notes import Note, NoteStatus, NoteType
from models.votes import Vote, VoteType
from schemas.notes import VoteSummary
from schemas.votes import VoteResult

logger = logging.getLogger("notehub.votes")

_TYPES = {"upvote": VoteType.UPVOTE, "downvote": VoteType.DOWNVOTE}


def to_vote_type(label: str) -> VoteType:
    return _TYPES[label]


async def apply_vote_delta(db: AsyncSession, note_id: int, upvotes: int = 0, downvotes: int = 0) -> None:
    """Adjust both counters in one UPDATE; callers commit it together with the ledger write."""
    await db.execute(
        update(Note)
        .where(Note.id == note_id)
        .values(
            upvotes=Note.upvotes + upvotes,
            downvotes=Note.downvotes + downvotes,
            updated_at=Note.updated_at,
        )
        .execution_options(synchronize_session=False)
    )


def _delta_for(vote_type: VoteType, sign: int) -> dict:
    if vote_type == VoteType.UPVOTE:
        return {"upvotes": sign, "downvotes": 0}
    return {"upvotes": 0, "downvotes": sign}


async def _existing_vote(db: AsyncSession, note_id: int, user_id: int) -> Vote | None:
    return (
        await db.execute(select(Vote).where(Vote.note_id == note_id, Vote.user_id == user_id))
    ).scalar_one_or_none()


async def _result(db: AsyncSession, note_id: int, user_vote: str | None) -> VoteResult:
    summary = await vote_summary(db, note_id, None)
    return VoteResult(user_vote=user_vote, upvotes=summary.upvotes, downvotes=summary.downvotes)


async def cast_vote(db: AsyncSession, actor: Principal, note_id: int, label: str) -> VoteResult:
    vote_type = to_vote_type(label)
    note = (await db.execute(select(Note).where(Note.id == note_id))).scalar_one_or_none()
    if not note:
        raise NotFoundError("Note not found")
    if note.type != NoteType.PUBLIC or note.status != NoteStatus.PUBLISHED:
        raise ForbiddenError("Can only vote on public published notes")
    if await _existing_vote(db, note_id, actor.user_id):
        raise ConflictError("You have already voted on this note. Use PUT to change your vote.")

    db.add(Vote(note_id=note_id, user_id=actor.user_id, type=vote_type))
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        logger.info("VOTE_CONFLICT note=%s user=%s", note_id, actor.user_id)
        raise ConflictError("You have already voted on this note. Use PUT to change your vote.") from exc
    await apply_vote_delta(db, note_id, **_delta_for(vote_type, +1))
    await db.commit()
    logger.info("VOTE_CAST note=%s user=%s type=%s", note_id, actor.user_id, vote_type.value)

    await invalidate_public_notes()
    return await _result(db, note_id, label)


async def change_vote(db: AsyncSession, actor: Principal, note_id: int, label: str) -> VoteResult:
    vote_type = to_vote_type(label)
    vote = await _existing_vote(db, note_id, actor.user_id)
    if not vote:
        raise NotFoundError("You have not voted on this note yet. Use POST to create a vote.")

    previous = VoteType(vote.type)
    vote.type = vote_type
    # 旧方向 -1、新方向 +1；同类型时净变化为 0，仍照常写入
    old_delta = _delta_for(previous, -1)
    new_delta = _delta_for(vote_type, +1)
    await apply_vote_delta(
        db,
        note_id,
        upvotes=old_delta["upvotes"] + new_delta["upvotes"],
        downvotes=old_delta["downvotes"] + new_delta["downvotes"],
    )
    await db.commit()
    logger.info("VOTE_CHANGE note=%s user=%s from=%s to=%s", note_id, actor.user_id, previous.value, vote_type.value)

    await invalidate_public_notes()
    return await _result(db, note_id, label)


async def remove_vote(db: AsyncSession, actor: Principal, note_id: int) -> VoteResult:
    vote = await _existing_vote(db, note_id, actor.user_id)
    if not vote:
        raise NotFoundError("You have not voted on this note")

    previous = VoteType(vote.type)
    await db.delete(vote)
    await apply_vote_delta(db, note_id, **_delta_for(previous, -1))
    await db.commit()
    logger.info("VOTE_REMOVE note=%s user=%s type=%s", note_id, actor.user_id, previous.value)

    await invalidate_public_notes()
    return await _result(db, note_id, None)


async def get_vote_counts(db: AsyncSession, viewer: Principal | None, note_id: int) -> VoteSummary:
    exists = (await db.execute(select(Note.id).where(Note.id == note_id))).scalar_one_or_none()
    if exists is None:
        raise NotFoundError("Note not found")
    return await vote_summary(db, note_id, viewer.user_id if viewer else None)
