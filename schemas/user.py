from datetime import datetime
from typing import Optional

from models.user import UserRole
from schemas.common import CamelModel


class UserProfile(CamelModel):
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole
    company_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
