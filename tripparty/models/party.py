# tripparty/models/party.py
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, DateTime, ForeignKey,
    CheckConstraint, Index, event, func
)
from sqlalchemy.orm import relationship
from tripparty.core.database import Base
from tripparty.models.types import JSONType, utcnow

PARTY_OPEN = "open"
PARTY_FULL = "full"
PARTY_CLOSED = "closed"
PARTY_STATUSES = (PARTY_OPEN, PARTY_FULL, PARTY_CLOSED)


def recompute_status(current: int, maximum: int, status: str) -> str:
    """closed is sticky; otherwise full iff the party is at capacity."""
    if status == PARTY_CLOSED:
        return PARTY_CLOSED
    if current >= maximum:
        return PARTY_FULL
    return PARTY_OPEN


class Party(Base):
    __tablename__ = "parties"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    estimated_price = Column(Float, nullable=False)
    max_participants = Column(Integer, nullable=False)
    current_participants = Column(Integer, nullable=False, default=1)
    status = Column(String(16), nullable=False, default=PARTY_OPEN, index=True)  # open|full|closed
    image_url = Column(String(1000), nullable=True)
    additional_fields = Column(JSONType, nullable=False, default=dict)
    is_global = Column(Boolean, nullable=False, default=False, index=True)
    # Only set for local parties
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now())

    owner = relationship("User", foreign_keys=[owner_id], lazy="joined")
    members = relationship(
        "PartyMember",
        back_populates="party",
        cascade="all, delete-orphan",
        order_by="PartyMember.added_at",
    )
    participants = relationship(
        "User",
        secondary="party_members",
        order_by="PartyMember.added_at",
        lazy="selectin",
        viewonly=True,
    )

    __table_args__ = (
        CheckConstraint("status IN ('open', 'full', 'closed')", name="ck_parties_status"),
        CheckConstraint("max_participants >= 1", name="ck_parties_max_participants"),
        CheckConstraint("estimated_price >= 0", name="ck_parties_estimated_price"),
        CheckConstraint("current_participants >= 0", name="ck_parties_current_participants"),
        Index("ix_parties_lat_lon", "latitude", "longitude"),
    )

    @property
    def coordinates(self):
        if self.is_global or self.longitude is None or self.latitude is None:
            return None
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    def refresh_status(self) -> str:
        if self.current_participants is None or self.max_participants is None:
            return self.status
        self.status = recompute_status(self.current_participants, self.max_participants, self.status)
        return self.status


class PartyMember(Base):
    __tablename__ = "party_members"

    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    added_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    party = relationship("Party", back_populates="members")


@event.listens_for(Party, "before_insert")
@event.listens_for(Party, "before_update")
def _apply_status_rule(mapper, connection, target: Party) -> None:
    target.refresh_status()
