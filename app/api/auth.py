from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import NotFoundError
from app.security import Principal, get_current_user
from app.utils.response import send_success
from models.user import User
from schemas.user import UserProfile

router = APIRouter()


@router.get("/me")
async def get_current_profile(actor: Principal = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    user = (await db.execute(select(User).where(User.id == actor.user_id))).scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return send_success(UserProfile.model_validate(user).to_json())
