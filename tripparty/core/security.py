# tripparty/core/security.py
from passlib.context import CryptContext
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional

from tripparty.core.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_MINUTES

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(p: str) -> str:
    return pwd_ctx.hash(p)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_ctx.verify(plain, hashed)

def create_jwt_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or JWT_EXPIRES_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)

def create_access_token(user_id: int) -> str:
    return create_jwt_token({"sub": str(user_id), "userId": str(user_id)})

def decode_jwt_token(token: str) -> dict:
    """
    Decode and validate JWT token.
    Raises JWTError if token is invalid or expired.
    """
    try:
        # jose.jwt.decode automatically validates expiration when present
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return payload
    except JWTError:
        raise

def verify_token(token: str) -> int:
    """
    Resolve a bearer token to the user id it was issued for.
    Raises JWTError for bad signatures, expired tokens or a missing subject.
    """
    payload = decode_jwt_token(token)
    sub = payload.get("sub") or payload.get("userId")
    if sub is None:
        raise JWTError("Token has no subject")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise JWTError("Token subject is not a user id")
