# tripparty/routes/destinations.py
import logging
from typing import Optional, Union
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from tripparty.core.errors import Conflict, NotFound
from tripparty.models.destination import Destination
from tripparty.models.user import User
from tripparty.schemas.destination import (
    DestinationCreate, DestinationEnvelope, DestinationListOut, DestinationOut, DestinationSummary
)
from tripparty.services.deps import get_db, get_current_user

logger = logging.getLogger("tripparty.destinations")
logger.setLevel(logging.INFO)

router = APIRouter(prefix="/api/destinations", tags=["destinations"])

LIST_ATTRACTIONS = 3


def _summary(dest: Destination) -> DestinationSummary:
    return DestinationSummary(
        id=dest.id,
        name=dest.name,
        shortDescription=dest.short_description,
        bannerUrl=dest.banner_url,
        weather=dest.weather,
        currency=dest.currency,
        languages=dest.languages,
        attractions=(dest.attractions or [])[:LIST_ATTRACTIONS],
    )


def _full(dest: Destination) -> DestinationOut:
    return DestinationOut(
        id=dest.id,
        name=dest.name,
        shortDescription=dest.short_description,
        longDescription=dest.long_description,
        bannerUrl=dest.banner_url,
        weather=dest.weather,
        currency=dest.currency,
        languages=dest.languages,
        attractions=dest.attractions or [],
        createdAt=dest.created_at,
        updatedAt=dest.updated_at,
    )


@router.get("", response_model=Union[DestinationEnvelope, DestinationListOut])
def list_destinations(
    query: Optional[str] = Query(None, description="Space separated search terms"),
    id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """
    With id: one destination with full details.
    Otherwise every destination (or those matching any query term), by name.
    """
    if id is not None:
        dest = db.query(Destination).filter(Destination.id == id).first()
        if not dest:
            raise NotFound("Destination not found")
        return DestinationEnvelope(destination=_full(dest))

    q = db.query(Destination)
    terms = (query or "").split()
    if terms:
        clauses = []
        for term in terms:
            pattern = f"%{term}%"
            clauses += [
                Destination.name.ilike(pattern),
                Destination.short_description.ilike(pattern),
                # attraction names live in the JSON column
                cast(Destination.attractions, String).ilike(pattern),
            ]
        q = q.filter(or_(*clauses))

    rows = q.order_by(Destination.name.asc()).all()
    return DestinationListOut(destinations=[_summary(d) for d in rows], total=len(rows))


@router.post("", response_model=DestinationEnvelope, status_code=status.HTTP_201_CREATED)
def create_destination(
    payload: DestinationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if db.query(Destination.id).filter(Destination.name == payload.name).first():
        raise Conflict("A destination with this name already exists")

    dest = Destination(
        name=payload.name,
        short_description=payload.shortDescription,
        long_description=payload.longDescription,
        banner_url=payload.bannerUrl,
        weather=payload.weather.model_dump(),
        currency=payload.currency.model_dump(),
        languages=[lang.model_dump() for lang in payload.languages],
        attractions=[a.model_dump() for a in payload.attractions],
    )
    db.add(dest)
    db.commit()
    db.refresh(dest)
    logger.info(f"Destination {dest.id} ({dest.name}) created by user {user.id}")
    return DestinationEnvelope(destination=_full(dest))
