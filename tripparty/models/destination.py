# tripparty/models/destination.py
from sqlalchemy import Column, Integer, String, Text, DateTime, func
from tripparty.core.database import Base
from tripparty.models.types import JSONType


class Destination(Base):
    __tablename__ = "destinations"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), unique=True, nullable=False, index=True)
    short_description = Column(Text, nullable=False)
    long_description = Column(Text, nullable=False)
    banner_url = Column(String(1000), nullable=False)
    weather = Column(JSONType, nullable=False)      # {average, description}
    currency = Column(JSONType, nullable=False)     # {code, name, symbol}
    languages = Column(JSONType, nullable=False)    # [{name, code}]
    attractions = Column(JSONType, nullable=False)  # [{name, description, iconUrl}]
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
