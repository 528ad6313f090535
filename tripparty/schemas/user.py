# tripparty/schemas/user.py
from typing import Optional
from pydantic import BaseModel

from tripparty.models.user import User


class UserSummary(BaseModel):
    id: int
    username: str
    profilePhoto: Optional[str] = None


def user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, username=user.username, profilePhoto=user.profile_photo)
