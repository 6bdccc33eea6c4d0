"""Tests for message endpoints."""

import uuid


def _messages_url(conversation_id: str) -> str:
    return f"/api/v1/conversations/{conversation_id}/messages"


def _pair(client, make_user):
    a, b = make_user("A"), make_user("B")
    conv = client.post(
        "/api/v1/conversations", json={"participant_ids": [a["id"], b["id"]]}, headers=a["headers"]
    ).json()["data"]
    return a, b, conv


def test_send_message(client, alice, conversation):
    resp = client.post(_messages_url(conversation["id"]), json={"content": "Hello Bob"}, headers=alice["headers"])
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["content"] == "Hello Bob"
    assert data["sender_id"] == alice["id"]
    assert data["sender"]["name"] == "Alice"
    assert data["conversation_id"] == conversation["id"]
    assert data["created_at"]


def test_send_blank_message(client, alice, conversation):
    resp = client.post(_messages_url(conversation["id"]), json={"content": "   \n "}, headers=alice["headers"])
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "invalid_input"


def test_content_is_trimmed(client, alice, conversation):
    resp = client.post(_messages_url(conversation["id"]), json={"content": "  padded  "}, headers=alice["headers"])
    assert resp.json()["data"]["content"] == "padded"


def test_non_participant_cannot_send_or_read(client, carol, conversation):
    send = client.post(_messages_url(conversation["id"]), json={"content": "x"}, headers=carol["headers"])
    assert send.status_code == 403

    read = client.get(_messages_url(conversation["id"]), headers=carol["headers"])
    assert read.status_code == 403


def test_messages_require_auth(client, conversation):
    assert client.get(_messages_url(conversation["id"])).status_code == 401
    assert client.post(_messages_url(conversation["id"]), json={"content": "x"}).status_code == 401


def test_list_chronological(client, make_user):
    a, b, conv = _pair(client, make_user)
    for user, text in [(a, "one"), (b, "two"), (a, "three")]:
        client.post(_messages_url(conv["id"]), json={"content": text}, headers=user["headers"])

    resp = client.get(_messages_url(conv["id"]), headers=b["headers"])
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [m["content"] for m in data] == ["one", "two", "three"]
    assert [m["seq"] for m in data] == [1, 2, 3]


def test_list_is_bounded_to_newest_fifty(client, make_user):
    a, b, conv = _pair(client, make_user)
    for i in range(55):
        client.post(_messages_url(conv["id"]), json={"content": f"m{i}"}, headers=a["headers"])

    resp = client.get(_messages_url(conv["id"]), headers=a["headers"])
    data = resp.json()["data"]
    assert len(data) == 50
    assert data[0]["content"] == "m5"
    assert data[-1]["content"] == "m54"
    seqs = [m["seq"] for m in data]
    assert seqs == sorted(seqs)
    assert len(set(seqs)) == len(seqs)

    older = client.get(_messages_url(conv["id"]), params={"before_seq": data[0]["seq"]}, headers=a["headers"])
    assert [m["content"] for m in older.json()["data"]] == [f"m{i}" for i in range(5)]

    small = client.get(_messages_url(conv["id"]), params={"limit": 3}, headers=a["headers"])
    assert [m["content"] for m in small.json()["data"]] == ["m52", "m53", "m54"]


def test_limit_above_fifty_rejected(client, alice, conversation):
    resp = client.get(_messages_url(conversation["id"]), params={"limit": 51}, headers=alice["headers"])
    assert resp.status_code == 400


def test_edit_own_message(client, make_user):
    a, b, conv = _pair(client, make_user)
    sent = client.post(_messages_url(conv["id"]), json={"content": "typo"}, headers=a["headers"]).json()["data"]

    resp = client.patch(f"/api/v1/messages/{sent['id']}", json={"content": "fixed"}, headers=a["headers"])
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["content"] == "fixed"
    assert data["created_at"] == sent["created_at"]
    assert data["seq"] == sent["seq"]

    listed = client.get(_messages_url(conv["id"]), headers=b["headers"]).json()["data"]
    assert listed[-1]["content"] == "fixed"


def test_other_participant_cannot_edit_or_delete(client, make_user):
    a, b, conv = _pair(client, make_user)
    sent = client.post(_messages_url(conv["id"]), json={"content": "mine"}, headers=a["headers"]).json()["data"]

    edit = client.patch(f"/api/v1/messages/{sent['id']}", json={"content": "yours"}, headers=b["headers"])
    assert edit.status_code == 403

    delete = client.delete(f"/api/v1/messages/{sent['id']}", headers=b["headers"])
    assert delete.status_code == 403

    listed = client.get(_messages_url(conv["id"]), headers=a["headers"]).json()["data"]
    assert listed[-1]["content"] == "mine"


def test_edit_blank_rejected(client, make_user):
    a, _, conv = _pair(client, make_user)
    sent = client.post(_messages_url(conv["id"]), json={"content": "x"}, headers=a["headers"]).json()["data"]
    resp = client.patch(f"/api/v1/messages/{sent['id']}", json={"content": "  "}, headers=a["headers"])
    assert resp.status_code == 400


def test_delete_own_message(client, make_user):
    a, b, conv = _pair(client, make_user)
    keep = client.post(_messages_url(conv["id"]), json={"content": "keep"}, headers=a["headers"]).json()["data"]
    drop = client.post(_messages_url(conv["id"]), json={"content": "drop"}, headers=a["headers"]).json()["data"]

    resp = client.delete(f"/api/v1/messages/{drop['id']}", headers=a["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == drop["id"]

    listed = client.get(_messages_url(conv["id"]), headers=b["headers"]).json()["data"]
    assert [m["id"] for m in listed] == [keep["id"]]

    # Gone and not-yours are reported the same way
    again = client.delete(f"/api/v1/messages/{drop['id']}", headers=a["headers"])
    assert again.status_code == 403


def test_missing_message_is_forbidden(client, alice):
    resp = client.patch(f"/api/v1/messages/{uuid.uuid4()}", json={"content": "x"}, headers=alice["headers"])
    assert resp.status_code == 403
