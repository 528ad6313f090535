# tripparty/routes/parties.py
from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from tripparty.core.config import PARTY_SEARCH_RADIUS_KM
from tripparty.models.user import User
from tripparty.schemas.party import (
    MyPartiesOut, PartyCreate, PartyDeletedOut, PartyEnvelope, PartySearchFilters,
    PartySearchOut, PartyStatus, party_out
)
from tripparty.services import parties as party_service
from tripparty.services.deps import get_db, get_current_user

router = APIRouter(prefix="/api/parties", tags=["parties"])


@router.post("", response_model=PartyEnvelope, status_code=status.HTTP_201_CREATED)
def create_party(
    payload: PartyCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    party = party_service.create_party(db, user.id, payload)
    return PartyEnvelope(message="Party created successfully", party=party_out(party))


@router.get("", response_model=PartySearchOut)
def search_parties(
    isGlobal: bool = False,
    location: Optional[str] = None,
    maxPrice: Optional[float] = Query(None, ge=0),
    status: Optional[PartyStatus] = None,
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    maxDistance: Optional[float] = Query(None, ge=0, description="Radius in kilometers"),
    db: Session = Depends(get_db),
):
    filters = PartySearchFilters(
        isGlobal=isGlobal,
        location=location or None,
        maxPrice=maxPrice,
        status=status,
        latitude=latitude,
        longitude=longitude,
        maxDistance=maxDistance,
    )
    matches = party_service.search_parties(db, filters)

    # Echo back what was actually applied
    echoed = filters.model_copy(update={
        "maxDistance": (maxDistance if maxDistance is not None else PARTY_SEARCH_RADIUS_KM) if filters.geo_active else None,
        "latitude": None if isGlobal else latitude,
        "longitude": None if isGlobal else longitude,
    })
    return PartySearchOut(
        parties=[party_out(m.party, m.distance_km) for m in matches],
        filters=echoed,
    )


@router.get("/my", response_model=MyPartiesOut)
def my_parties(
    type: Optional[str] = Query(None, pattern="^(created|joined)$"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Parties the caller created and parties they joined.
    type=created|joined narrows the result; omitted returns both.
    """
    created, joined = party_service.list_user_parties(db, user.id, type)
    return MyPartiesOut(
        created=[party_out(p) for p in created],
        joined=[party_out(p) for p in joined],
        total=len(created) + len(joined),
    )


@router.get("/{party_id}", response_model=PartyEnvelope)
def get_party(party_id: int, db: Session = Depends(get_db)):
    return PartyEnvelope(party=party_out(party_service.get_party(db, party_id)))


@router.patch("/{party_id}", response_model=PartyEnvelope)
def update_party(
    party_id: int,
    patch: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    party = party_service.update_party(db, party_id, user.id, patch)
    return PartyEnvelope(message="Party updated successfully", party=party_out(party))


@router.delete("/{party_id}", response_model=PartyDeletedOut)
def delete_party(
    party_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    party_service.delete_party(db, party_id, user.id)
    return PartyDeletedOut(message="Party deleted successfully", deletedPartyId=party_id)


@router.post("/{party_id}/join", response_model=PartyEnvelope)
def join_party(
    party_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    party = party_service.join_party(db, party_id, user.id)
    return PartyEnvelope(message="Successfully joined the party", party=party_out(party))


@router.delete("/{party_id}/join", response_model=PartyEnvelope)
def leave_party(
    party_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    party = party_service.leave_party(db, party_id, user.id)
    return PartyEnvelope(message="Successfully left the party", party=party_out(party))
