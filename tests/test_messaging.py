import pytest

from tripparty.core.errors import Forbidden, NotFound, ValidationFailed
from tripparty.models.message import Message
from tripparty.services import messaging
from tripparty.services import parties as party_service
from tests.conftest import auth_header, local_party


@pytest.fixture
def party(db, alice, bob):
    party = party_service.create_party(db, alice.id, local_party())
    party_service.join_party(db, party.id, bob.id)
    return party


def test_party_chat_is_for_participants(db, party, bob, carol):
    messaging.send_party_message(db, party.id, bob.id, "Hello all")

    with pytest.raises(Forbidden):
        messaging.send_party_message(db, party.id, carol.id, "Let me in")
    with pytest.raises(Forbidden):
        messaging.list_party_messages(db, party.id, carol.id)

    msgs = messaging.list_party_messages(db, party.id, bob.id)
    assert [m.content for m in msgs] == ["Hello all"]
    assert msgs[0].is_private is False


def test_private_thread_inside_party(db, party, alice, bob):
    messaging.send_party_message(db, party.id, bob.id, "public")
    messaging.send_party_message(db, party.id, bob.id, "psst", recipient_id=alice.id)
    messaging.reply_as_owner(db, party.id, alice.id, bob.id, "hi bob")

    thread = messaging.list_party_messages(db, party.id, bob.id, private=True, recipient_id=alice.id)
    assert [m.content for m in thread] == ["psst", "hi bob"]

    with pytest.raises(ValidationFailed):
        messaging.list_party_messages(db, party.id, bob.id, private=True)


def test_owner_conversations(db, party, alice, bob, carol):
    party_service.join_party(db, party.id, carol.id)
    messaging.send_party_message(db, party.id, bob.id, "first from bob", recipient_id=alice.id)
    messaging.send_party_message(db, party.id, carol.id, "from carol", recipient_id=alice.id)
    messaging.send_party_message(db, party.id, bob.id, "second from bob", recipient_id=alice.id)

    conversations = messaging.list_owner_conversations(db, party.id, alice.id)
    assert [(u.username, [m.content for m in msgs]) for u, msgs in conversations] == [
        ("bob", ["second from bob", "first from bob"]),
        ("carol", ["from carol"]),
    ]

    with pytest.raises(Forbidden):
        messaging.list_owner_conversations(db, party.id, bob.id)
    with pytest.raises(Forbidden):
        messaging.reply_as_owner(db, party.id, bob.id, carol.id, "not the owner")


def test_direct_messages(db, alice, bob, carol):
    messaging.send_direct_message(db, alice.id, bob.id, "hey bob")
    messaging.send_direct_message(db, bob.id, alice.id, "hey alice")
    messaging.send_direct_message(db, carol.id, alice.id, "hi from carol")

    conversations = messaging.list_direct_conversations(db, alice.id)
    assert [(u.username, len(msgs)) for u, msgs in conversations] == [("carol", 1), ("bob", 2)]

    with pytest.raises(ValidationFailed):
        messaging.send_direct_message(db, alice.id, alice.id, "note to self")
    with pytest.raises(NotFound):
        messaging.send_direct_message(db, alice.id, 999, "anyone?")
    with pytest.raises(ValidationFailed):
        messaging.send_direct_message(db, alice.id, bob.id, "   ")


def test_messages_survive_party_deletion(db, party, alice, bob):
    messaging.send_party_message(db, party.id, bob.id, "see you there")
    party_id = party.id
    party_service.delete_party(db, party_id, alice.id)

    assert db.query(Message).filter(Message.party_id == party_id).count() == 1


def test_message_routes(client, db, party, alice, bob):
    url = f"/api/parties/{party.id}/messages"

    res = client.post(url, json={"content": "Bring sunscreen"}, headers=auth_header(bob))
    assert res.status_code == 201
    assert res.json()["data"]["sender"]["username"] == "bob"

    res = client.get(url, headers=auth_header(alice))
    assert [m["content"] for m in res.json()["messages"]] == ["Bring sunscreen"]

    res = client.post(url, json={"content": "Just for you", "recipientId": alice.id}, headers=auth_header(bob))
    assert res.json()["data"]["isPrivate"] is True

    res = client.get(f"/api/parties/{party.id}/conversations", headers=auth_header(alice))
    conversations = res.json()["conversations"]
    assert conversations[0]["participant"]["username"] == "bob"

    res = client.post(
        f"/api/parties/{party.id}/conversations",
        json={"content": "Thanks!", "recipientId": bob.id},
        headers=auth_header(alice),
    )
    assert res.status_code == 201
    assert res.json()["recipient"]["username"] == "bob"

    res = client.get(url, params={"private": "true"}, headers=auth_header(bob))
    assert res.status_code == 400


def test_direct_message_routes(client, alice, bob):
    res = client.post("/api/conversations", json={"content": "hi", "recipientId": bob.id}, headers=auth_header(alice))
    assert res.status_code == 201

    res = client.get("/api/conversations", headers=auth_header(bob))
    conversations = res.json()["conversations"]
    assert conversations[0]["participant"]["username"] == "alice"
    assert conversations[0]["messages"][0]["content"] == "hi"
