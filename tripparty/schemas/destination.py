# tripparty/schemas/destination.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class Weather(BaseModel):
    average: str = Field(min_length=1)
    description: str = Field(min_length=1)


class Currency(BaseModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)


class Language(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)


class Attraction(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    iconUrl: str = Field(min_length=1)


class DestinationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    shortDescription: str = Field(min_length=1)
    longDescription: str = Field(min_length=1)
    bannerUrl: str = Field(min_length=1)
    weather: Weather
    currency: Currency
    languages: List[Language] = Field(min_length=1)
    attractions: List[Attraction] = Field(min_length=1)


class DestinationSummary(BaseModel):
    id: int
    name: str
    shortDescription: str
    bannerUrl: str
    weather: Weather
    currency: Currency
    languages: List[Language]
    attractions: List[Attraction]


class DestinationOut(DestinationSummary):
    longDescription: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class DestinationListOut(BaseModel):
    destinations: List[DestinationSummary]
    total: int


class DestinationEnvelope(BaseModel):
    destination: DestinationOut
