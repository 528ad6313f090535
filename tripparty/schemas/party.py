# tripparty/schemas/party.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, constr, field_validator, model_validator

from tripparty.models.party import Party
from tripparty.schemas.user import UserSummary, user_summary

PartyStatus = Literal["open", "full", "closed"]


class PartyCreate(BaseModel):
    location: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: constr(strip_whitespace=True, min_length=1, max_length=5000)
    estimatedPrice: float = Field(..., ge=0, allow_inf_nan=False)
    maxParticipants: int = Field(..., ge=1)
    imageUrl: Optional[str] = None
    additionalFields: Dict[str, Any] = Field(default_factory=dict)
    isGlobal: bool = False
    latitude: Optional[float] = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(None, ge=-180, le=180, allow_inf_nan=False)

    @field_validator("imageUrl")
    @classmethod
    def _blank_image_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode="after")
    def _coordinates_for_local(self):
        if self.isGlobal:
            # Global parties carry no point
            self.latitude = None
            self.longitude = None
        elif self.latitude is None or self.longitude is None:
            raise ValueError("Latitude and longitude are required for local parties")
        return self


class PartyUpdate(BaseModel):
    location: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[constr(strip_whitespace=True, min_length=1, max_length=5000)] = None
    estimatedPrice: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    maxParticipants: Optional[int] = Field(None, ge=1)
    imageUrl: Optional[str] = None
    additionalFields: Optional[Dict[str, Any]] = None
    status: Optional[PartyStatus] = None

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def _required_columns_not_null(self):
        for name in ("location", "description", "estimatedPrice", "maxParticipants", "additionalFields", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class Coordinates(BaseModel):
    type: str = "Point"
    coordinates: List[float]  # [longitude, latitude]


class PartyOut(BaseModel):
    id: int
    location: str
    description: str
    estimatedPrice: float
    maxParticipants: int
    currentParticipants: int
    status: PartyStatus
    isGlobal: bool
    coordinates: Optional[Coordinates] = None
    imageUrl: Optional[str] = None
    additionalFields: Dict[str, Any] = {}
    owner: UserSummary
    participants: List[UserSummary] = []
    distanceKm: Optional[float] = None
    createdAt: datetime
    updatedAt: datetime


def party_out(party: Party, distance_km: Optional[float] = None) -> PartyOut:
    return PartyOut(
        id=party.id,
        location=party.location,
        description=party.description,
        estimatedPrice=party.estimated_price,
        maxParticipants=party.max_participants,
        currentParticipants=party.current_participants,
        status=party.status,
        isGlobal=party.is_global,
        coordinates=party.coordinates,
        imageUrl=party.image_url,
        additionalFields=party.additional_fields or {},
        owner=user_summary(party.owner),
        participants=[user_summary(u) for u in party.participants],
        distanceKm=round(distance_km, 3) if distance_km is not None else None,
        createdAt=party.created_at,
        updatedAt=party.updated_at,
    )


class PartyEnvelope(BaseModel):
    message: Optional[str] = None
    party: PartyOut


class PartySearchFilters(BaseModel):
    isGlobal: bool = False
    location: Optional[str] = None
    maxPrice: Optional[float] = Field(None, ge=0)
    status: Optional[PartyStatus] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    maxDistance: Optional[float] = Field(None, ge=0)  # kilometers

    @property
    def geo_active(self) -> bool:
        return not self.isGlobal and self.latitude is not None and self.longitude is not None


class PartySearchOut(BaseModel):
    parties: List[PartyOut]
    filters: PartySearchFilters


class MyPartiesOut(BaseModel):
    created: List[PartyOut]
    joined: List[PartyOut]
    total: int


class PartyDeletedOut(BaseModel):
    message: str
    deletedPartyId: int
