from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from tripparty.core.database import Database
from tripparty.core.security import create_access_token, hash_password
from tripparty.main import create_app
from tripparty.models.user import User
from tripparty.services.advisor_tuning import CompletionParams


class FakeAdvisorClient:
    """Records every prompt and answers with a canned reply."""

    def __init__(self, reply: str = "Pack light and book early."):
        self.reply = reply
        self.calls: List[tuple] = []
        self.error = None

    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> str:
        self.calls.append((messages, params))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'tripparty.db'}")
    db.create_all()
    yield db
    db.engine.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def advisor_client():
    return FakeAdvisorClient()


@pytest.fixture
def client(database, advisor_client):
    app = create_app(database=database, advisor_client=advisor_client)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(username: str, password: str = "secret123") -> User:
        user = User(username=username, hashed_password=hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol")


def auth_header(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def local_party(**overrides):
    data = {
        "location": "Lisbon",
        "description": "Weekend in Alfama",
        "estimatedPrice": 300,
        "maxParticipants": 4,
        "latitude": 38.7223,
        "longitude": -9.1393,
    }
    data.update(overrides)
    return data
