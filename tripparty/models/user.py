# tripparty/models/user.py
from sqlalchemy import Column, Integer, String, DateTime, func
from tripparty.core.database import Base
from tripparty.core.config import DEFAULT_PROFILE_PHOTO


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    profile_photo = Column(String(500), nullable=False, default=DEFAULT_PROFILE_PHOTO)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
