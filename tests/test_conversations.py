"""Tests for conversation endpoints."""

import uuid


def _start(client, user, other_id):
    return client.post(
        "/api/v1/conversations",
        json={"participant_ids": [user["id"], other_id]},
        headers=user["headers"],
    )


def test_create_then_reuse(client, make_user):
    a, b = make_user("A"), make_user("B")

    first = _start(client, a, b["id"])
    assert first.status_code == 201
    conv = first.json()["data"]
    assert {p["id"] for p in conv["participants"]} == {a["id"], b["id"]}

    again = _start(client, a, b["id"])
    assert again.status_code == 200
    assert again.json()["data"]["id"] == conv["id"]


def test_reuse_is_order_independent(client, make_user):
    a, b = make_user("A"), make_user("B")
    created = _start(client, a, b["id"]).json()["data"]

    from_b = client.post(
        "/api/v1/conversations",
        json={"participant_ids": [a["id"], b["id"]]},
        headers=b["headers"],
    )
    assert from_b.status_code == 200
    assert from_b.json()["data"]["id"] == created["id"]


def test_pair_match_is_exact(client, make_user):
    a, b, c = make_user("A"), make_user("B"), make_user("C")
    ab = _start(client, a, b["id"]).json()["data"]
    ac = _start(client, a, c["id"])
    assert ac.status_code == 201
    assert ac.json()["data"]["id"] != ab["id"]


def test_must_include_caller(client, alice, bob, carol):
    resp = client.post(
        "/api/v1/conversations",
        json={"participant_ids": [bob["id"], carol["id"]]},
        headers=alice["headers"],
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "invalid_input"


def test_participants_must_be_distinct(client, alice):
    resp = client.post(
        "/api/v1/conversations",
        json={"participant_ids": [alice["id"], alice["id"]]},
        headers=alice["headers"],
    )
    assert resp.status_code == 400


def test_exactly_two_participants(client, alice, bob, carol):
    resp = client.post(
        "/api/v1/conversations",
        json={"participant_ids": [alice["id"], bob["id"], carol["id"]]},
        headers=alice["headers"],
    )
    assert resp.status_code == 400

    resp = client.post("/api/v1/conversations", json={"participant_ids": [alice["id"]]}, headers=alice["headers"])
    assert resp.status_code == 400


def test_unknown_partner(client, alice):
    resp = _start(client, alice, str(uuid.uuid4()))
    assert resp.status_code == 404


def test_create_requires_auth(client, alice, bob):
    resp = client.post("/api/v1/conversations", json={"participant_ids": [alice["id"], bob["id"]]})
    assert resp.status_code == 401


def test_list_most_recent_first(client, make_user):
    me, b, c = make_user("Me"), make_user("B"), make_user("C")
    with_b = _start(client, me, b["id"]).json()["data"]
    with_c = _start(client, me, c["id"]).json()["data"]

    client.post(f"/api/v1/conversations/{with_b['id']}/messages", json={"content": "hi"}, headers=me["headers"])

    resp = client.get("/api/v1/conversations", headers=me["headers"])
    assert resp.status_code == 200
    ids = [conv["id"] for conv in resp.json()["data"]]
    assert ids == [with_b["id"], with_c["id"]]
    assert resp.json()["data"][0]["last_message"]["content"] == "hi"
    assert resp.json()["data"][1]["last_message"] is None


def test_list_only_own_conversations(client, make_user, conversation):
    outsider = make_user("Outsider")
    resp = client.get("/api/v1/conversations", headers=outsider["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_get_conversation(client, alice, conversation):
    resp = client.get(f"/api/v1/conversations/{conversation['id']}", headers=alice["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == conversation["id"]


def test_non_participant_cannot_tell_if_conversation_exists(client, carol, conversation):
    existing = client.get(f"/api/v1/conversations/{conversation['id']}", headers=carol["headers"])
    missing = client.get(f"/api/v1/conversations/{uuid.uuid4()}", headers=carol["headers"])
    assert existing.status_code == 403
    assert missing.status_code == 403
    assert existing.json()["error"]["message"] == missing.json()["error"]["message"]
