# tripparty/models/advisor_message.py
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey,
    CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from tripparty.core.database import Base
from tripparty.models.types import utcnow

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


class AdvisorMessage(Base):
    __tablename__ = "advisor_messages"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Plain column: history outlives a deleted party
    party_id = Column(Integer, nullable=True)
    role = Column(String(16), nullable=False)  # user|assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now())

    user = relationship("User", foreign_keys=[user_id], lazy="joined")

    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="ck_advisor_messages_role"),
        Index("ix_advisor_messages_user_created", "user_id", "created_at"),
        Index("ix_advisor_messages_party_created", "party_id", "created_at"),
    )
