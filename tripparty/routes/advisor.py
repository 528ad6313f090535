# tripparty/routes/advisor.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tripparty.core.database import Database
from tripparty.models.user import User
from tripparty.schemas.advisor import (
    AdvisorAsk, AdvisorClearedOut, AdvisorHistoryOut, AdvisorReplyOut, advisor_message_out
)
from tripparty.services import advisor as advisor_service
from tripparty.services.advisor_client import AdvisorClient
from tripparty.services.deps import get_advisor_client, get_database, get_db, get_current_user

router = APIRouter(prefix="/api/advisor", tags=["advisor"])


@router.post("", response_model=AdvisorReplyOut)
async def ask_advisor(
    payload: AdvisorAsk,
    db: Session = Depends(get_db),
    client: AdvisorClient = Depends(get_advisor_client),
    user: User = Depends(get_current_user),
):
    result = await advisor_service.ask(
        db, client, user.id, payload.message, party_id=payload.partyId, limit=payload.limit
    )
    return AdvisorReplyOut(
        message=result.message,
        history=[advisor_message_out(m) for m in result.history],
    )


@router.get("", response_model=AdvisorHistoryOut)
async def get_history(
    partyId: Optional[int] = None,
    limit: int = Query(50, ge=1),
    database: Database = Depends(get_database),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Chronological history; limit is capped at 100."""
    history = await advisor_service.get_history(database, db, user.id, party_id=partyId, limit=limit)
    return AdvisorHistoryOut(
        messages=[advisor_message_out(m) for m in history.messages],
        total=history.total,
    )


@router.delete("", response_model=AdvisorClearedOut)
def clear_history(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return AdvisorClearedOut(deleted=advisor_service.clear_history(db, user.id))
