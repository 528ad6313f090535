# tripparty/routes/messages.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tripparty.models.user import User
from tripparty.schemas.message import (
    ConversationOut, ConversationsOut, MessageOut, MessagesOut, MessageSentOut,
    PartyMessageCreate, PrivateMessageCreate, message_out
)
from tripparty.schemas.user import user_summary
from tripparty.services import messaging
from tripparty.services.deps import get_db, get_current_user

router = APIRouter(prefix="/api/parties", tags=["messages"])


def _conversations_out(conversations) -> ConversationsOut:
    return ConversationsOut(conversations=[
        ConversationOut(participant=user_summary(partner), messages=[message_out(m) for m in msgs])
        for partner, msgs in conversations
    ])


@router.get("/{party_id}/messages", response_model=MessagesOut)
def list_party_messages(
    party_id: int,
    private: bool = False,
    recipient: Optional[int] = Query(None, description="Other side of a private thread"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = messaging.list_party_messages(db, party_id, user.id, private=private, recipient_id=recipient)
    return MessagesOut(messages=[message_out(m) for m in rows])


@router.post("/{party_id}/messages", response_model=MessageSentOut, status_code=status.HTTP_201_CREATED)
def send_party_message(
    party_id: int,
    payload: PartyMessageCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    msg = messaging.send_party_message(db, party_id, user.id, payload.content, payload.recipientId)
    return MessageSentOut(data=message_out(msg))


@router.get("/{party_id}/conversations", response_model=ConversationsOut)
def list_owner_conversations(
    party_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Private messages participants sent to the owner, grouped by sender."""
    return _conversations_out(messaging.list_owner_conversations(db, party_id, user.id))


@router.post("/{party_id}/conversations", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def reply_as_owner(
    party_id: int,
    payload: PrivateMessageCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    msg = messaging.reply_as_owner(db, party_id, user.id, payload.recipientId, payload.content)
    return message_out(msg)


dm_router = APIRouter(prefix="/api/conversations", tags=["messages"])


@dm_router.get("", response_model=ConversationsOut)
def list_direct_conversations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _conversations_out(messaging.list_direct_conversations(db, user.id))


@dm_router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def send_direct_message(
    payload: PrivateMessageCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    msg = messaging.send_direct_message(db, user.id, payload.recipientId, payload.content)
    return message_out(msg)
