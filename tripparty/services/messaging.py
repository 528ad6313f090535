# tripparty/services/messaging.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from tripparty.core.errors import Forbidden, NotFound, ValidationFailed
from tripparty.models.message import Message
from tripparty.models.party import Party
from tripparty.models.user import User
from tripparty.services.parties import get_party, is_participant

logger = logging.getLogger("tripparty.messaging")
logger.setLevel(logging.INFO)

# (conversation partner, messages newest first)
Conversation = Tuple[User, List[Message]]


def _require_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("Message content is required")
    return content


def _require_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound(f"No user exists with ID: {user_id}")
    return user


def _require_participant(db: Session, party_id: int, user_id: int) -> Party:
    party = get_party(db, party_id)
    if not is_participant(db, party_id, user_id):
        raise Forbidden("You are not a participant of this party")
    return party


def _require_owner(db: Session, party_id: int, user_id: int, action: str) -> Party:
    party = get_party(db, party_id)
    if party.owner_id != user_id:
        raise Forbidden(f"Only party owner can {action}")
    return party


def _store(db: Session, msg: Message) -> Message:
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


def _group_by_partner(messages: List[Message], user_id: int) -> List[Conversation]:
    groups: Dict[int, Conversation] = {}
    for m in messages:
        partner = m.recipient if m.sender_id == user_id else m.sender
        if partner is None:
            continue
        groups.setdefault(partner.id, (partner, []))[1].append(m)
    return list(groups.values())


def send_party_message(
    db: Session,
    party_id: int,
    sender_id: int,
    content: str,
    recipient_id: Optional[int] = None,
) -> Message:
    content = _require_content(content)
    _require_participant(db, party_id, sender_id)
    if recipient_id is not None:
        _require_user(db, recipient_id)

    msg = _store(db, Message(
        content=content,
        sender_id=sender_id,
        party_id=party_id,
        recipient_id=recipient_id,
        is_private=recipient_id is not None,
    ))
    logger.info(f"Message {msg.id} sent by user {sender_id} in party {party_id} (private={msg.is_private})")
    return msg


def list_party_messages(
    db: Session,
    party_id: int,
    user_id: int,
    private: bool = False,
    recipient_id: Optional[int] = None,
) -> List[Message]:
    """Public party chat, or the caller's private thread with one participant."""
    _require_participant(db, party_id, user_id)

    q = db.query(Message).filter(Message.party_id == party_id, Message.is_private == private)
    if private:
        if recipient_id is None:
            raise ValidationFailed("Recipient is required for private messages")
        q = q.filter(or_(
            and_(Message.sender_id == user_id, Message.recipient_id == recipient_id),
            and_(Message.sender_id == recipient_id, Message.recipient_id == user_id),
        ))
    return q.order_by(Message.created_at.asc(), Message.id.asc()).all()


def list_owner_conversations(db: Session, party_id: int, owner_id: int) -> List[Conversation]:
    """Private messages sent to the owner within the party, grouped by sender."""
    _require_owner(db, party_id, owner_id, "view private messages")
    messages = (
        db.query(Message)
        .filter(
            Message.party_id == party_id,
            Message.is_private == True,  # noqa: E712
            Message.recipient_id == owner_id,
        )
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )
    return _group_by_partner(messages, owner_id)


def reply_as_owner(db: Session, party_id: int, owner_id: int, recipient_id: int, content: str) -> Message:
    content = _require_content(content)
    _require_owner(db, party_id, owner_id, "send private messages")
    _require_user(db, recipient_id)

    msg = _store(db, Message(
        content=content,
        sender_id=owner_id,
        party_id=party_id,
        recipient_id=recipient_id,
        is_private=True,
    ))
    logger.info(f"Owner {owner_id} replied privately to user {recipient_id} in party {party_id}")
    return msg


def send_direct_message(db: Session, sender_id: int, recipient_id: int, content: str) -> Message:
    content = _require_content(content)
    if recipient_id == sender_id:
        raise ValidationFailed("You cannot send a direct message to yourself")
    _require_user(db, recipient_id)

    msg = _store(db, Message(
        content=content,
        sender_id=sender_id,
        party_id=None,
        recipient_id=recipient_id,
        is_private=True,
    ))
    logger.info(f"Direct message {msg.id} from user {sender_id} to user {recipient_id}")
    return msg


def list_direct_conversations(db: Session, user_id: int) -> List[Conversation]:
    """Every private message the user sent or received, grouped by partner."""
    messages = (
        db.query(Message)
        .filter(
            Message.is_private == True,  # noqa: E712
            or_(Message.recipient_id == user_id, Message.sender_id == user_id),
        )
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )
    return _group_by_partner(messages, user_id)
