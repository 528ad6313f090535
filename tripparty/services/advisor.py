# tripparty/services/advisor.py
"""
Advisor conversations: turn stored history plus a new message into an
ordered prompt, call the model once, and persist the exchange.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from tripparty.core.config import (
    ADVISOR_COUNT_TIMEOUT_SECONDS,
    ADVISOR_HISTORY_LIMIT,
    ADVISOR_HISTORY_MAX_LIMIT,
)
from tripparty.core.database import Database
from tripparty.core.errors import InternalError, ValidationFailed
from tripparty.models.advisor_message import AdvisorMessage, ROLE_ASSISTANT, ROLE_USER
from tripparty.services.advisor_tuning import CompletionParams, TuningPolicy, default_tuning_policy

logger = logging.getLogger("tripparty.advisor")
logger.setLevel(logging.INFO)

SYSTEM_PROMPT = """You are an expert travel advisor with extensive knowledge of global destinations, local customs, and travel planning. Your role is to help users plan their trips and provide personalized travel recommendations.

Key responsibilities:
1. Provide personalized travel recommendations based on users' interests, budget, and preferences
2. Share insider knowledge about destinations, including hidden gems and local favorites
3. Offer practical advice about transportation, accommodation, and local customs
4. Help users understand cultural norms and etiquette
5. Suggest activities and experiences that match the party's interests
6. Provide safety tips and travel precautions when relevant
7. Help with budget planning and cost estimates
8. Recommend local food and dining experiences
9. Suggest optimal travel times and seasonal considerations
10. Help coordinate group activities and party planning

When providing advice:
- Be specific and detailed in your recommendations
- Consider the group size and dynamics
- Factor in accessibility and practical constraints
- Include both popular attractions and off-the-beaten-path options
- Provide context about local culture and customs
- Be mindful of different budget levels
- Consider safety and comfort factors
- Include time estimates for activities
- Suggest alternatives when relevant
- Provide tips for group coordination

Important: Keep responses concise and focused, especially for very popular destinations.

Remember: Your goal is to help users create memorable and well-planned travel experiences while being mindful of practical considerations and group dynamics."""


class CompletionClient(Protocol):
    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> str:
        ...


@dataclass
class AdvisorReply:
    message: str
    history: List[AdvisorMessage]


@dataclass
class AdvisorHistory:
    messages: List[AdvisorMessage]
    total: int


def clamp_limit(limit: Optional[int], default: int = ADVISOR_HISTORY_LIMIT) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), ADVISOR_HISTORY_MAX_LIMIT))


def _history_query(db: Session, user_id: int, party_id: Optional[int]) -> Query:
    q = db.query(AdvisorMessage).filter(AdvisorMessage.user_id == user_id)
    if party_id is not None:
        q = q.filter(AdvisorMessage.party_id == party_id)
    return q


def load_history(db: Session, user_id: int, party_id: Optional[int], limit: int) -> List[AdvisorMessage]:
    """Most recent `limit` messages, returned oldest first."""
    rows = (
        _history_query(db, user_id, party_id)
        .order_by(AdvisorMessage.created_at.desc(), AdvisorMessage.id.desc())
        .limit(limit)
        .all()
    )
    rows.reverse()
    return rows


def build_prompt(history: Sequence[AdvisorMessage], message: str) -> List[Dict[str, str]]:
    return (
        [{"role": "system", "content": SYSTEM_PROMPT}]
        + [{"role": row.role, "content": row.content} for row in history]
        + [{"role": ROLE_USER, "content": message}]
    )


async def ask(
    db: Session,
    client: CompletionClient,
    user_id: int,
    message: str,
    party_id: Optional[int] = None,
    limit: Optional[int] = None,
    policy: Optional[TuningPolicy] = None,
) -> AdvisorReply:
    message = (message or "").strip()
    if not message:
        raise ValidationFailed("Message is required")
    limit = clamp_limit(limit)
    policy = policy or default_tuning_policy()

    history = load_history(db, user_id, party_id, limit)
    prompt = build_prompt(history, message)
    params = policy(message)

    # Failures propagate as AdvisorTimeout / RateLimited / AdvisorUnavailable
    reply = await client.complete(prompt, params)

    # Both sides of the exchange are written in one transaction
    db.add(AdvisorMessage(user_id=user_id, party_id=party_id, role=ROLE_USER, content=message))
    db.add(AdvisorMessage(user_id=user_id, party_id=party_id, role=ROLE_ASSISTANT, content=reply))
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store advisor exchange for user {user_id}: {e}", exc_info=True)
        raise InternalError("Could not save the conversation. Please try again.")

    logger.info(f"Advisor exchange stored for user {user_id} (party={party_id}, history={len(history)})")
    return AdvisorReply(message=reply, history=load_history(db, user_id, party_id, limit))


async def count_history(
    database: Database,
    user_id: int,
    party_id: Optional[int],
    timeout: float = ADVISOR_COUNT_TIMEOUT_SECONDS,
) -> Optional[int]:
    """
    Count on a separate session in a worker thread. Returns None when the
    count misses its deadline or fails; the caller falls back to page size.
    """
    def _count() -> int:
        session = database.session()
        try:
            return _history_query(session, user_id, party_id).count()
        finally:
            session.close()

    try:
        return await asyncio.wait_for(asyncio.to_thread(_count), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"History count for user {user_id} exceeded {timeout}s; using page size")
        return None
    except SQLAlchemyError as e:
        logger.warning(f"History count for user {user_id} failed: {e}; using page size")
        return None


async def get_history(
    database: Database,
    db: Session,
    user_id: int,
    party_id: Optional[int] = None,
    limit: Optional[int] = 50,
    count_timeout: float = ADVISOR_COUNT_TIMEOUT_SECONDS,
) -> AdvisorHistory:
    limit = clamp_limit(limit, default=50)
    messages = load_history(db, user_id, party_id, limit)
    total = await count_history(database, user_id, party_id, timeout=count_timeout)
    return AdvisorHistory(messages=messages, total=total if total is not None else len(messages))


def clear_history(db: Session, user_id: int) -> int:
    deleted = db.execute(
        delete(AdvisorMessage)
        .where(AdvisorMessage.user_id == user_id)
        .execution_options(synchronize_session=False)
    ).rowcount
    db.commit()
    logger.info(f"Cleared {deleted} advisor messages for user {user_id}")
    return deleted
