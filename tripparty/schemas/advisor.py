# tripparty/schemas/advisor.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from tripparty.models.advisor_message import AdvisorMessage
from tripparty.schemas.user import UserSummary, user_summary


class AdvisorAsk(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    partyId: Optional[int] = None
    limit: int = Field(default=5, ge=1, le=100)


class AdvisorMessageOut(BaseModel):
    id: int
    role: str
    content: str
    partyId: Optional[int] = None
    user: UserSummary
    createdAt: datetime
    updatedAt: datetime


def advisor_message_out(row: AdvisorMessage) -> AdvisorMessageOut:
    return AdvisorMessageOut(
        id=row.id,
        role=row.role,
        content=row.content,
        partyId=row.party_id,
        user=user_summary(row.user),
        createdAt=row.created_at,
        updatedAt=row.updated_at,
    )


class AdvisorReplyOut(BaseModel):
    message: str
    history: List[AdvisorMessageOut]


class AdvisorHistoryOut(BaseModel):
    messages: List[AdvisorMessageOut]
    total: int


class AdvisorClearedOut(BaseModel):
    deleted: int
