import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from tripparty.core.database import Database
from tripparty.core.errors import Unauthorized
from tripparty.core.security import verify_token
from tripparty.models.user import User
from tripparty.services.advisor_client import AdvisorClient

logger = logging.getLogger("tripparty.deps")
logger.setLevel(logging.INFO)

bearer_scheme = HTTPBearer(auto_error=False)

def get_database(request: Request) -> Database:
    return request.app.state.database

def get_db(database: Database = Depends(get_database)):
    db = database.session()
    try:
        yield db
    finally:
        db.close()

def get_advisor_client(request: Request) -> AdvisorClient:
    return request.app.state.advisor_client

def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    if token is None or not token.credentials:
        raise Unauthorized("Authentication required")
    try:
        user_id = verify_token(token.credentials)
    except JWTError:
        raise Unauthorized("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"Token presented for unknown user {user_id}")
        raise Unauthorized("Invalid or expired token")
    return user
