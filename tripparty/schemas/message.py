# tripparty/schemas/message.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from tripparty.models.message import Message
from tripparty.schemas.user import UserSummary, user_summary


class PartyMessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    recipientId: Optional[int] = None  # set for a private message inside the party


class PrivateMessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    recipientId: int


class MessageOut(BaseModel):
    id: int
    content: str
    sender: UserSummary
    recipient: Optional[UserSummary] = None
    partyId: Optional[int] = None
    isPrivate: bool
    createdAt: datetime


def message_out(msg: Message) -> MessageOut:
    return MessageOut(
        id=msg.id,
        content=msg.content,
        sender=user_summary(msg.sender),
        recipient=user_summary(msg.recipient) if msg.recipient is not None else None,
        partyId=msg.party_id,
        isPrivate=msg.is_private,
        createdAt=msg.created_at,
    )


class MessageSentOut(BaseModel):
    status: str = "Message sent successfully"
    data: MessageOut


class MessagesOut(BaseModel):
    messages: List[MessageOut]


class ConversationOut(BaseModel):
    participant: UserSummary
    messages: List[MessageOut]


class ConversationsOut(BaseModel):
    conversations: List[ConversationOut]
