import time
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from tripparty.core.errors import AdvisorTimeout, InternalError, ValidationFailed
from tripparty.models.advisor_message import AdvisorMessage, ROLE_ASSISTANT, ROLE_USER
from tripparty.services import advisor
from tripparty.services.advisor_tuning import DEFAULT_PARAMS, TIGHTENED_PARAMS
from tests.conftest import FakeAdvisorClient


def stored(db, user_id):
    return (
        db.query(AdvisorMessage)
        .filter(AdvisorMessage.user_id == user_id)
        .order_by(AdvisorMessage.id)
        .all()
    )


@pytest.mark.asyncio
async def test_fresh_user_prompt_is_system_then_user(db, alice):
    client = FakeAdvisorClient(reply="Try the Douro valley.")

    result = await advisor.ask(db, client, alice.id, "Where should we go in Portugal?")

    prompt, params = client.calls[0]
    assert [m["role"] for m in prompt] == ["system", "user"]
    assert prompt[0]["content"] == advisor.SYSTEM_PROMPT
    assert prompt[1]["content"] == "Where should we go in Portugal?"
    assert params == DEFAULT_PARAMS

    rows = stored(db, alice.id)
    assert [(r.role, r.content) for r in rows] == [
        (ROLE_USER, "Where should we go in Portugal?"),
        (ROLE_ASSISTANT, "Try the Douro valley."),
    ]
    assert result.message == "Try the Douro valley."
    assert [r.role for r in result.history] == [ROLE_USER, ROLE_ASSISTANT]


@pytest.mark.asyncio
async def test_prompt_includes_recent_history_in_order(db, alice):
    client = FakeAdvisorClient()
    for i in range(3):
        client.reply = f"answer {i}"
        await advisor.ask(db, client, alice.id, f"question {i}")

    await advisor.ask(db, client, alice.id, "question 3", limit=2)

    prompt, _ = client.calls[-1]
    assert [m["content"] for m in prompt[1:]] == ["question 2", "answer 2", "question 3"]


@pytest.mark.asyncio
async def test_busy_destination_tightens_params(db, alice):
    client = FakeAdvisorClient()
    await advisor.ask(db, client, alice.id, "Three days in Barcelona?")
    assert client.calls[0][1] == TIGHTENED_PARAMS


@pytest.mark.asyncio
async def test_history_is_scoped_to_party(db, alice):
    client = FakeAdvisorClient()
    await advisor.ask(db, client, alice.id, "about party one", party_id=1)
    await advisor.ask(db, client, alice.id, "about party two", party_id=2)

    prompt, _ = client.calls[-1]
    assert [m["content"] for m in prompt] == [advisor.SYSTEM_PROMPT, "about party two"]


@pytest.mark.asyncio
async def test_blank_message_is_rejected(db, alice):
    client = FakeAdvisorClient()
    with pytest.raises(ValidationFailed):
        await advisor.ask(db, client, alice.id, "   ")
    assert client.calls == []


@pytest.mark.asyncio
async def test_model_failure_stores_nothing(db, alice):
    client = FakeAdvisorClient()
    client.error = AdvisorTimeout("Request timed out")

    with pytest.raises(AdvisorTimeout):
        await advisor.ask(db, client, alice.id, "Plan a week in Japan")
    assert stored(db, alice.id) == []


@pytest.mark.asyncio
async def test_store_failure_rolls_back_both_rows(db, alice):
    client = FakeAdvisorClient()
    with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
        with pytest.raises(InternalError):
            await advisor.ask(db, client, alice.id, "Plan a week in Japan")
    assert stored(db, alice.id) == []


@pytest.mark.asyncio
async def test_get_history_returns_latest_in_chronological_order(database, db, alice):
    client = FakeAdvisorClient()
    for i in range(4):
        client.reply = f"answer {i}"
        await advisor.ask(db, client, alice.id, f"question {i}")

    history = await advisor.get_history(database, db, alice.id, limit=2)

    assert [m.content for m in history.messages] == ["question 3", "answer 3"]
    assert history.total == 8


@pytest.mark.asyncio
async def test_count_timeout_falls_back_to_page_size(database, db, alice):
    client = FakeAdvisorClient()
    for i in range(3):
        await advisor.ask(db, client, alice.id, f"question {i}")

    real_session = database.session

    def slow_session():
        time.sleep(0.5)
        return real_session()

    with patch.object(database, "session", side_effect=slow_session):
        history = await advisor.get_history(database, db, alice.id, limit=4, count_timeout=0.05)

    assert len(history.messages) == 4
    assert history.total == 4


def test_clamp_limit():
    assert advisor.clamp_limit(None) == 5
    assert advisor.clamp_limit(0) == 1
    assert advisor.clamp_limit(500) == 100


@pytest.mark.asyncio
async def test_clear_history(db, alice, bob):
    client = FakeAdvisorClient()
    await advisor.ask(db, client, alice.id, "hello")
    await advisor.ask(db, client, bob.id, "hello")

    assert advisor.clear_history(db, alice.id) == 2
    assert stored(db, alice.id) == []
    assert len(stored(db, bob.id)) == 2
