from typing import Literal, Optional

from schemas.common import CamelModel

VoteLabel = Literal["upvote", "downvote"]


class VoteRequest(CamelModel):
    type: VoteLabel


class VoteResult(CamelModel):
    success: bool = True
    user_vote: Optional[VoteLabel] = None
    upvotes: int
    downvotes: int
