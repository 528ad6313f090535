# tripparty/services/parties.py
"""
Party lifecycle: create, join, leave, owner-only update/delete and search.

Participant-count changes go through single conditional UPDATE statements so
the capacity check and the increment happen atomically in the store. Two
requests racing for the last seat cannot both succeed: the loser's UPDATE
matches zero rows.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy import case, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tripparty.core.config import PARTY_SEARCH_RADIUS_KM
from tripparty.core.errors import Conflict, Forbidden, InvalidState, NotFound, ValidationFailed
from tripparty.models.party import (
    Party, PartyMember, PARTY_OPEN, PARTY_FULL, PARTY_CLOSED
)
from tripparty.models.types import utcnow
from tripparty.schemas.party import PartyCreate, PartySearchFilters, PartyUpdate

logger = logging.getLogger("tripparty.parties")
logger.setLevel(logging.INFO)

ALLOWED_UPDATES = frozenset({
    "location",
    "description",
    "estimatedPrice",
    "maxParticipants",
    "imageUrl",
    "additionalFields",
    "status",
})

# wire name -> column attribute
_UPDATE_COLUMNS = {
    "location": "location",
    "description": "description",
    "estimatedPrice": "estimated_price",
    "maxParticipants": "max_participants",
    "imageUrl": "image_url",
    "additionalFields": "additional_fields",
    "status": "status",
}

EARTH_RADIUS_KM = 6371.0088


@dataclass
class PartyMatch:
    party: Party
    distance_km: Optional[float] = None


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts) or "Invalid input"


def get_party(db: Session, party_id: int) -> Party:
    party = db.query(Party).filter(Party.id == party_id).first()
    if not party:
        raise NotFound(f"No party exists with ID: {party_id}")
    return party


def is_participant(db: Session, party_id: int, user_id: int) -> bool:
    return db.query(PartyMember.user_id).filter(
        PartyMember.party_id == party_id,
        PartyMember.user_id == user_id,
    ).first() is not None


def create_party(db: Session, owner_id: int, data: Union[PartyCreate, Dict[str, Any]]) -> Party:
    if not isinstance(data, PartyCreate):
        try:
            data = PartyCreate.model_validate(data)
        except ValidationError as e:
            raise ValidationFailed(_validation_message(e))

    party = Party(
        owner_id=owner_id,
        location=data.location,
        description=data.description,
        estimated_price=data.estimatedPrice,
        max_participants=data.maxParticipants,
        current_participants=1,
        status=PARTY_OPEN,
        image_url=data.imageUrl,
        additional_fields=data.additionalFields or {},
        is_global=data.isGlobal,
        latitude=data.latitude,
        longitude=data.longitude,
    )
    db.add(party)
    db.flush()  # get party.id
    # Owner is the first participant
    db.add(PartyMember(party_id=party.id, user_id=owner_id))
    db.commit()
    db.refresh(party)
    logger.info(f"Party {party.id} created by user {owner_id} (max={party.max_participants}, global={party.is_global})")
    return party


def _claim_seat(db: Session, party_id: int) -> bool:
    """Increment the participant count if, and only if, a seat is free."""
    result = db.execute(
        update(Party)
        .where(
            Party.id == party_id,
            Party.status == PARTY_OPEN,
            Party.current_participants < Party.max_participants,
        )
        .values(
            current_participants=Party.current_participants + 1,
            status=case(
                (Party.current_participants + 1 >= Party.max_participants, PARTY_FULL),
                else_=PARTY_OPEN,
            ),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _release_seat(db: Session, party_id: int) -> None:
    db.execute(
        update(Party)
        .where(Party.id == party_id, Party.current_participants > 0)
        .values(
            current_participants=Party.current_participants - 1,
            status=case(
                (Party.status == PARTY_CLOSED, PARTY_CLOSED),
                (Party.current_participants - 1 >= Party.max_participants, PARTY_FULL),
                else_=PARTY_OPEN,
            ),
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )


def join_party(db: Session, party_id: int, user_id: int) -> Party:
    party = get_party(db, party_id)

    if party.status == PARTY_CLOSED:
        raise InvalidState("The party is no longer accepting new participants")
    if party.status == PARTY_FULL:
        raise InvalidState("The party has reached its maximum number of participants")
    if is_participant(db, party_id, user_id):
        raise Conflict("You are already a participant of this party")

    if not _claim_seat(db, party_id):
        db.rollback()
        logger.info(f"User {user_id} lost the race for the last seat of party {party_id}")
        raise InvalidState("The party has reached its maximum number of participants")

    db.add(PartyMember(party_id=party_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        # Same user joined concurrently; the seat claim is rolled back with it
        db.rollback()
        raise Conflict("You are already a participant of this party")

    db.refresh(party)
    logger.info(
        f"User {user_id} joined party {party_id} "
        f"({party.current_participants}/{party.max_participants}, {party.status})"
    )
    return party


def leave_party(db: Session, party_id: int, user_id: int) -> Party:
    party = get_party(db, party_id)

    if party.owner_id == user_id:
        raise Forbidden("Party owners cannot leave their own party. Please delete the party instead.")

    removed = db.execute(
        delete(PartyMember)
        .where(PartyMember.party_id == party_id, PartyMember.user_id == user_id)
        .execution_options(synchronize_session=False)
    ).rowcount
    if removed == 0:
        db.rollback()
        raise InvalidState("You are not a participant of this party")

    _release_seat(db, party_id)
    db.commit()
    db.refresh(party)
    logger.info(
        f"User {user_id} left party {party_id} "
        f"({party.current_participants}/{party.max_participants}, {party.status})"
    )
    return party


def update_party(db: Session, party_id: int, requester_id: int, patch: Dict[str, Any]) -> Party:
    party = (
        db.query(Party)
        .filter(Party.id == party_id)
        .with_for_update(of=Party)
        .first()
    )
    if not party:
        raise NotFound(f"No party exists with ID: {party_id}")
    if party.owner_id != requester_id:
        db.rollback()
        raise Forbidden("Only the party owner can update the party")

    invalid = sorted(set(patch) - ALLOWED_UPDATES)
    if invalid:
        db.rollback()
        raise ValidationFailed(f"Invalid updates: {', '.join(invalid)}")
    try:
        changes = PartyUpdate.model_validate(patch)
    except ValidationError as e:
        db.rollback()
        raise ValidationFailed(_validation_message(e))

    for key in changes.model_fields_set:
        value = getattr(changes, key)
        if key == "additionalFields":
            value = dict(value)
        setattr(party, _UPDATE_COLUMNS[key], value)
    # before_update hook applies the status rule on flush
    db.commit()
    db.refresh(party)
    logger.info(f"Party {party_id} updated by owner ({', '.join(sorted(changes.model_fields_set)) or 'no fields'})")
    return party


def delete_party(db: Session, party_id: int, requester_id: int) -> None:
    party = get_party(db, party_id)
    if party.owner_id != requester_id:
        raise Forbidden("Only the party owner can delete the party")
    # Membership rows go with the party; messages are left in place
    db.delete(party)
    db.commit()
    logger.info(f"Party {party_id} deleted by owner {requester_id}")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_parties(db: Session, filters: PartySearchFilters) -> List[PartyMatch]:
    q = db.query(Party).filter(Party.is_global == filters.isGlobal)

    if filters.location:
        q = q.filter(Party.location.ilike(_like_pattern(filters.location), escape="\\"))
    if filters.maxPrice is not None:
        q = q.filter(Party.estimated_price <= filters.maxPrice)
    if filters.status:
        q = q.filter(Party.status == filters.status)

    newest_first = q.order_by(Party.created_at.desc(), Party.id.desc())
    if not filters.geo_active:
        if not filters.isGlobal:
            logger.info("Local party search without latitude/longitude; returning all local parties")
        return [PartyMatch(p) for p in newest_first.all()]

    radius = filters.maxDistance if filters.maxDistance is not None else PARTY_SEARCH_RADIUS_KM
    # Latitude band prefilter; exact distance is checked below
    lat_delta = math.degrees(radius / EARTH_RADIUS_KM)
    candidates = newest_first.filter(
        Party.latitude.isnot(None),
        Party.longitude.isnot(None),
        Party.latitude >= filters.latitude - lat_delta,
        Party.latitude <= filters.latitude + lat_delta,
    ).all()

    matches = []
    for p in candidates:
        d = haversine_km(filters.latitude, filters.longitude, p.latitude, p.longitude)
        if d <= radius:
            matches.append(PartyMatch(p, d))
    matches.sort(key=lambda m: m.distance_km)
    return matches


def list_user_parties(db: Session, user_id: int, kind: Optional[str] = None) -> Tuple[List[Party], List[Party]]:
    """
    Parties the user owns and parties they joined without owning.
    kind narrows to "created" or "joined"; anything else returns both.
    """
    member_of = select(PartyMember.party_id).where(PartyMember.user_id == user_id)
    q = db.query(Party)
    if kind == "created":
        q = q.filter(Party.owner_id == user_id)
    elif kind == "joined":
        q = q.filter(Party.id.in_(member_of), Party.owner_id != user_id)
    else:
        q = q.filter(or_(Party.owner_id == user_id, Party.id.in_(member_of)))

    parties = q.order_by(Party.created_at.desc(), Party.id.desc()).all()
    created = [p for p in parties if p.owner_id == user_id]
    joined = [p for p in parties if p.owner_id != user_id]
    return created, joined
