# tripparty/models/message.py
from sqlalchemy import (
    Column, Integer, Text, Boolean, DateTime, ForeignKey,
    CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from tripparty.core.database import Base
from tripparty.models.types import utcnow


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    content = Column(Text, nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Not a foreign key: messages are kept when their party is deleted
    party_id = Column(Integer, nullable=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    is_private = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now())

    sender = relationship("User", foreign_keys=[sender_id], lazy="joined")
    recipient = relationship("User", foreign_keys=[recipient_id], lazy="joined")

    __table_args__ = (
        CheckConstraint("party_id IS NOT NULL OR recipient_id IS NOT NULL", name="ck_messages_target"),
        Index("ix_messages_party_created", "party_id", "created_at"),
        Index("ix_messages_sender_recipient_created", "sender_id", "recipient_id", "created_at"),
    )
