from fastapi.testclient import TestClient

from datetime import datetime, timedelta, timezone
from uuid import uuid4

# API URL prefix
API_PREFIX = "/api/conversations"


def _create(client: TestClient, headers: dict, title: str = "Hello", persona: str = "greenbot") -> dict:
    response = client.post(API_PREFIX, json={"title": title, "persona": persona}, headers=headers)
    assert response.status_code == 201
    return response.json()

def _append(client: TestClient, headers: dict, conversation_id: str, **body) -> dict:
    response = client.post(f"{API_PREFIX}/{conversation_id}/messages", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()

# --- 1. Create / list ---
def test_create_conversation(client: TestClient, auth_headers: dict):
    """
    POST /api/conversations
    1. returns 201 with a UUID id
    2. stores the persona as its display name
    """
    data = _create(client, auth_headers, title="Composting basics", persona="waste")

    assert len(data["id"]) == 36
    assert data["title"] == "Composting basics"
    assert data["persona"] == "Waste Wizard"

def test_conversations_require_auth(client: TestClient):
    assert client.get(API_PREFIX).status_code == 401
    assert client.post(API_PREFIX, json={"title": "x"}).status_code == 401

def test_list_orders_by_last_update(client: TestClient, auth_headers: dict):
    """
    Appending a message moves that conversation to the top of the list.
    """
    first = _create(client, auth_headers, title="first")
    second = _create(client, auth_headers, title="second")

    ids = [c["id"] for c in client.get(API_PREFIX, headers=auth_headers).json()["conversations"]]
    assert ids[:2] == [second["id"], first["id"]]

    _append(client, auth_headers, first["id"], content="bump", sender="user")

    ids = [c["id"] for c in client.get(API_PREFIX, headers=auth_headers).json()["conversations"]]
    assert ids[:2] == [first["id"], second["id"]]

def test_list_is_scoped_to_owner(client: TestClient, new_user, auth_headers: dict):
    mine = _create(client, auth_headers, title="mine")

    other = client.post(
        "/api/login/signup",
        json={"email": f"other-{uuid4().hex[:12]}@example.com", "password": "secret-pass"}
    ).json()
    other_headers = {"Authorization": f"Bearer {other['access_token']}"}

    ids = [c["id"] for c in client.get(API_PREFIX, headers=other_headers).json()["conversations"]]
    assert mine["id"] not in ids
    # foreign conversation ids look like missing ones
    assert client.get(f"{API_PREFIX}/{mine['id']}", headers=other_headers).status_code == 404

# --- 2. Messages ---
def test_messages_load_in_timestamp_order(client: TestClient, auth_headers: dict):
    """
    Messages come back sorted by their timestamp, not by insert order.
    """
    conversation = _create(client, auth_headers)
    base = datetime.now(timezone.utc)

    _append(client, auth_headers, conversation["id"],
            content="second", sender="bot", persona="GreenBot",
            timestamp=(base + timedelta(seconds=5)).isoformat())
    _append(client, auth_headers, conversation["id"],
            content="first", sender="user",
            timestamp=base.isoformat())

    response = client.get(f"{API_PREFIX}/{conversation['id']}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert [m["content"] for m in data["messages"]] == ["first", "second"]
    assert data["messages"][1]["persona"] == "GreenBot"

def test_append_keeps_client_message_id(client: TestClient, auth_headers: dict):
    conversation = _create(client, auth_headers)
    message_id = str(uuid4())

    data = _append(client, auth_headers, conversation["id"], id=message_id, content="hi", sender="user")
    assert data["id"] == message_id

    # same id twice is a conflict
    response = client.post(
        f"{API_PREFIX}/{conversation['id']}/messages",
        json={"id": message_id, "content": "hi", "sender": "user"},
        headers=auth_headers
    )
    assert response.status_code == 409

def test_append_rejects_bad_sender(client: TestClient, auth_headers: dict):
    conversation = _create(client, auth_headers)
    response = client.post(
        f"{API_PREFIX}/{conversation['id']}/messages",
        json={"content": "hi", "sender": "system"},
        headers=auth_headers
    )
    assert response.status_code == 422

def test_non_uuid_conversation_id(client: TestClient, auth_headers: dict):
    response = client.post(
        f"{API_PREFIX}/default/messages",
        json={"content": "hi", "sender": "user"},
        headers=auth_headers
    )
    assert response.status_code == 422

# --- 3. Update / delete ---
def test_update_title_and_persona(client: TestClient, auth_headers: dict):
    conversation = _create(client, auth_headers)

    response = client.patch(
        f"{API_PREFIX}/{conversation['id']}",
        json={"title": "Renamed", "persona": "nature"},
        headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert response.json()["persona"] == "Nature Navigator"

def test_delete_removes_conversation_and_messages(client: TestClient, auth_headers: dict):
    """
    DELETE /api/conversations/{id}
    1. returns 204
    2. the conversation is gone from GET and from the list
    3. a second delete is a 404
    """
    conversation = _create(client, auth_headers)
    _append(client, auth_headers, conversation["id"], content="hi", sender="user")
    _append(client, auth_headers, conversation["id"], content="hello", sender="bot", persona="GreenBot")

    # 1. 204
    response = client.delete(f"{API_PREFIX}/{conversation['id']}", headers=auth_headers)
    assert response.status_code == 204

    # 2. gone
    assert client.get(f"{API_PREFIX}/{conversation['id']}", headers=auth_headers).status_code == 404
    ids = [c["id"] for c in client.get(API_PREFIX, headers=auth_headers).json()["conversations"]]
    assert conversation["id"] not in ids

    # 3. second delete
    assert client.delete(f"{API_PREFIX}/{conversation['id']}", headers=auth_headers).status_code == 404
