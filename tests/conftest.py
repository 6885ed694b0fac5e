import pytest
import json
import os
import tempfile

import httpx
from uuid import uuid4

# Test database; must be configured before the app (and its engine) is imported
_DB_DIR = tempfile.mkdtemp(prefix="greenbot-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"

from fastapi.testclient import TestClient

from main import app
from services.llm import get_http_client
import core.personas


def completion_body(content: str) -> dict:
    """ Minimal chat-completions response body """
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }


class FakeUpstream:
    """
    Stand-in for the LLM providers. Records every request it receives and
    answers with the configured status and body.
    """

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = completion_body("Recycling helps reduce landfill waste.")

    def reply(self, content: str):
        self.status_code = 200
        self.body = completion_body(content)

    def fail(self, status_code: int, body: dict):
        self.status_code = status_code
        self.body = body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture(scope="session") # 'session' scope: one app (and lifespan) for the whole run
def client():
    """
    Shared TestClient; entering it runs the lifespan, which creates the tables.
    """
    with TestClient(app) as c:
        yield c

@pytest.fixture
def upstream():
    """
    Replace the relay's outbound HTTP client with a MockTransport-backed one.
    """
    fake = FakeUpstream()

    async def _http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake.handler)) as c:
            yield c

    app.dependency_overrides[get_http_client] = _http_client
    yield fake
    app.dependency_overrides.pop(get_http_client, None)

@pytest.fixture
def backend_factory(client: TestClient):
    """
    Factory for async clients that call the app in-process (ASGITransport).
    Must be called inside the event loop that uses the client.
    """
    def _factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://testserver"
        )
    return _factory

@pytest.fixture
def new_user(client: TestClient):
    """
    Register a fresh user and return (token response, auth headers).
    """
    email = f"user-{uuid4().hex[:12]}@example.com"
    response = client.post("/api/login/signup", json={"email": email, "password": "secret-pass"})
    assert response.status_code == 201
    data = response.json()
    return data, {"Authorization": f"Bearer {data['access_token']}"}

@pytest.fixture
def auth_headers(new_user):
    return new_user[1]

@pytest.fixture(scope="session")
def personas_file():
    """
    core/data/personas.json as loaded from disk
    """
    with open(core.personas.DATA_FILE, "r", encoding="utf-8") as f:
        return json.load(f)
