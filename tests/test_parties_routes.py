from tests.conftest import auth_header, local_party


def create(client, user, **overrides):
    res = client.post("/api/parties", json=local_party(**overrides), headers=auth_header(user))
    assert res.status_code == 201, res.text
    return res.json()["party"]


def test_create_requires_auth(client):
    res = client.post("/api/parties", json=local_party())
    assert res.status_code == 401
    assert res.json()["error"] == "Unauthorized"


def test_create_and_get(client, alice):
    party = create(client, alice)
    assert party["currentParticipants"] == 1
    assert party["status"] == "open"
    assert party["owner"]["username"] == "alice"
    assert [p["username"] for p in party["participants"]] == ["alice"]
    assert party["coordinates"] == {"type": "Point", "coordinates": [-9.1393, 38.7223]}

    res = client.get(f"/api/parties/{party['id']}")
    assert res.status_code == 200
    assert res.json()["party"]["id"] == party["id"]


def test_create_local_party_without_coordinates(client, alice):
    res = client.post("/api/parties", json=local_party(latitude=None), headers=auth_header(alice))
    assert res.status_code == 400
    assert res.json()["error"] == "ValidationError"


def test_join_full_and_leave(client, alice, bob, carol):
    party = create(client, alice, maxParticipants=2)

    res = client.post(f"/api/parties/{party['id']}/join", headers=auth_header(bob))
    assert res.status_code == 200
    assert res.json()["party"]["status"] == "full"

    res = client.post(f"/api/parties/{party['id']}/join", headers=auth_header(carol))
    assert res.status_code == 400
    assert res.json()["error"] == "InvalidState"

    res = client.delete(f"/api/parties/{party['id']}/join", headers=auth_header(bob))
    assert res.status_code == 200
    body = res.json()["party"]
    assert body["currentParticipants"] == 1
    assert body["status"] == "open"


def test_owner_cannot_leave(client, alice):
    party = create(client, alice)
    res = client.delete(f"/api/parties/{party['id']}/join", headers=auth_header(alice))
    assert res.status_code == 403
    assert res.json()["error"] == "Forbidden"


def test_update(client, alice, bob):
    party = create(client, alice)
    url = f"/api/parties/{party['id']}"

    res = client.patch(url, json={"description": "Hijacked"}, headers=auth_header(bob))
    assert res.status_code == 403

    res = client.patch(url, json={"ownerId": bob.id}, headers=auth_header(alice))
    assert res.status_code == 400
    assert "ownerId" in res.json()["detail"]

    res = client.patch(url, json={"description": "Fado night", "status": "closed"}, headers=auth_header(alice))
    assert res.status_code == 200
    assert res.json()["party"]["description"] == "Fado night"
    assert res.json()["party"]["status"] == "closed"


def test_delete(client, alice):
    party = create(client, alice)
    res = client.delete(f"/api/parties/{party['id']}", headers=auth_header(alice))
    assert res.status_code == 200
    assert res.json()["deletedPartyId"] == party["id"]

    res = client.get(f"/api/parties/{party['id']}")
    assert res.status_code == 404
    assert res.json()["error"] == "NotFound"


def test_search(client, alice):
    create(client, alice, location="Lisbon")
    create(client, alice, location="Porto", latitude=41.16, longitude=-8.63)
    create(client, alice, location="Online", isGlobal=True)

    res = client.get("/api/parties", params={"latitude": 38.7223, "longitude": -9.1393})
    assert res.status_code == 200
    body = res.json()
    assert [p["location"] for p in body["parties"]] == ["Lisbon"]
    assert body["filters"]["maxDistance"] == 50
    assert body["parties"][0]["distanceKm"] == 0

    res = client.get("/api/parties", params={"isGlobal": "true"})
    assert [p["location"] for p in res.json()["parties"]] == ["Online"]
    assert res.json()["filters"]["maxDistance"] is None


def test_search_rejects_bad_params(client):
    res = client.get("/api/parties", params={"maxPrice": "cheap"})
    assert res.status_code == 400
    res = client.get("/api/parties", params={"latitude": 120, "longitude": 0})
    assert res.status_code == 400


def test_my_parties(client, alice, bob):
    own = create(client, alice)
    other = create(client, bob, location="Madrid")
    client.post(f"/api/parties/{other['id']}/join", headers=auth_header(alice))

    res = client.get("/api/parties/my", headers=auth_header(alice))
    body = res.json()
    assert [p["id"] for p in body["created"]] == [own["id"]]
    assert [p["id"] for p in body["joined"]] == [other["id"]]
    assert body["total"] == 2

    res = client.get("/api/parties/my", params={"type": "created"}, headers=auth_header(alice))
    assert res.json()["joined"] == []

    res = client.get("/api/parties/my", params={"type": "bogus"}, headers=auth_header(alice))
    assert res.status_code == 400
