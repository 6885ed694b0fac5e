import pytest
import asyncio
import json

import httpx

from client.config import ClientSettings
from client.credentials import LocalKeyCache
from client.errors import (
    AuthRequired, MissingCredential, NetworkError, ProviderError, describe_error
)
from client.router import ProviderRouter
from client.session import AuthSession, SessionProvider
from client.storage import MemoryStorage
from core.providers import Provider

HISTORY = [
    {"role": "system", "content": "You are GreenBot."},
    {"role": "user", "content": "Is glass recyclable?"},
]


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class Recorder:
    """ MockTransport handler returning one canned response """

    def __init__(self, status_code: int = 200, body=None, error: Exception = None):
        self.status_code = status_code
        self.body = body if body is not None else _completion("Yes, endlessly.")
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)


def _session(http: httpx.AsyncClient, signed_in: bool = True) -> SessionProvider:
    session = AuthSession(access_token="token-123", user_id="u1", email="a@example.com")
    return SessionProvider(http, session=session if signed_in else None)

def _run_relay(recorder: Recorder, signed_in: bool = True, provider=Provider.OPENAI):
    async def scenario():
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(recorder), base_url="http://backend"
        ) as backend:
            router = ProviderRouter(
                _session(backend, signed_in), backend, LocalKeyCache(MemoryStorage()), mode="relay"
            )
            return await router.send_chat(HISTORY, provider)
    return asyncio.run(scenario())

def _run_direct(recorder: Recorder, keys: dict, provider=Provider.OPENAI, check_connection: bool = False):
    cache = LocalKeyCache(MemoryStorage())
    for p, key in keys.items():
        cache.set(p, key)

    async def scenario():
        async with httpx.AsyncClient() as backend, \
                httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as provider_http:
            router = ProviderRouter(
                _session(backend, False), backend, cache,
                settings=ClientSettings(), mode="direct", provider_http=provider_http
            )
            if check_connection:
                return await router.test_connection(provider)
            return await router.send_chat(HISTORY, provider)
    return asyncio.run(scenario())

# --- 1. relay mode ---
def test_relay_without_session_makes_no_request():
    recorder = Recorder()
    with pytest.raises(AuthRequired):
        _run_relay(recorder, signed_in=False)
    assert recorder.requests == []

def test_relay_success():
    """
    1. posts messages and provider to /api/ai-chat with the bearer token
    2. returns choices[0].message.content
    """
    recorder = Recorder(body=_completion("Glass can be recycled forever."))

    text = _run_relay(recorder, provider=Provider.GROK)

    # 2.
    assert text == "Glass can be recycled forever."
    # 1.
    request = recorder.requests[0]
    assert request.url.path == "/api/ai-chat"
    assert request.headers["Authorization"] == "Bearer token-123"
    assert json.loads(request.content) == {"messages": HISTORY, "provider": "grok"}

def test_relay_needs_setup():
    recorder = Recorder(400, {"error": "No API keys configured.", "needsSetup": True})
    with pytest.raises(MissingCredential) as exc:
        _run_relay(recorder)
    assert exc.value.needs_setup is True

def test_relay_missing_provider_key():
    recorder = Recorder(400, {"error": "No GROK API key found. Please add it in settings.", "missingKey": True})
    with pytest.raises(MissingCredential) as exc:
        _run_relay(recorder, provider=Provider.GROK)
    assert exc.value.provider == "grok"
    assert exc.value.needs_setup is False

def test_relay_upstream_error_carries_status():
    recorder = Recorder(429, {"error": "OPENAI API error: 429 rate limit exceeded"})
    with pytest.raises(ProviderError) as exc:
        _run_relay(recorder)
    assert exc.value.status_code == 429
    assert "rate limit" in exc.value.body

def test_relay_expired_session():
    recorder = Recorder(401, {"error": "Unauthorized"})
    with pytest.raises(AuthRequired):
        _run_relay(recorder)

def test_relay_transport_error():
    recorder = Recorder(error=httpx.ConnectError("connection refused"))
    with pytest.raises(NetworkError):
        _run_relay(recorder)

def test_relay_malformed_completion():
    recorder = Recorder(body={"choices": []})
    with pytest.raises(ProviderError):
        _run_relay(recorder)

# --- 2. direct mode ---
def test_direct_missing_key_makes_no_request():
    recorder = Recorder()
    with pytest.raises(MissingCredential):
        _run_direct(recorder, keys={Provider.OPENAI: "sk-openai"}, provider=Provider.DEEPSEEK)
    assert recorder.requests == []

def test_direct_success():
    """
    1. posts to the provider URL with the client-held key
    2. payload carries model, messages, temperature and max_tokens
    """
    recorder = Recorder(body=_completion("Yes."))

    assert _run_direct(recorder, keys={Provider.DEEPSEEK: "ds-key"}, provider=Provider.DEEPSEEK) == "Yes."

    # 1.
    request = recorder.requests[0]
    assert str(request.url) == "https://api.deepseek.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer ds-key"
    # 2.
    payload = json.loads(request.content)
    assert payload == {
        "model": "deepseek-chat",
        "messages": HISTORY,
        "temperature": 0.7,
        "max_tokens": 1000,
    }

def test_direct_invalid_key():
    recorder = Recorder(401, {"error": {"message": "Incorrect API key provided"}})
    with pytest.raises(ProviderError) as exc:
        _run_direct(recorder, keys={Provider.OPENAI: "sk-bad"})
    assert exc.value.status_code == 401
    assert "Incorrect API key" in exc.value.body

def test_test_connection():
    recorder = Recorder()
    result = _run_direct(recorder, keys={Provider.GROK: "xai"}, provider=Provider.GROK, check_connection=True)
    assert result == "✓ GROK API connection successful!"

def test_unknown_mode():
    async def scenario():
        async with httpx.AsyncClient() as backend:
            ProviderRouter(_session(backend), backend, LocalKeyCache(MemoryStorage()), mode="carrier-pigeon")

    with pytest.raises(ValueError):
        asyncio.run(scenario())

# --- 3. user-facing error text ---
@pytest.mark.parametrize("error, expected", [
    (MissingCredential("openai"), "no valid API key was found"),
    (ProviderError(401, "bad key"), "invalid or has expired"),
    (ProviderError(402, "payment required"), "insufficient credits"),
    (ProviderError(429, '{"error": {"code": "insufficient_quota"}}'), "insufficient credits"),
    (ProviderError(429, "slow down"), "rate limit"),
    (AuthRequired(), "logged in"),
    (NetworkError("boom"), "try again later"),
    (ProviderError(500, "oops"), "try again later"),
])
def test_describe_error(error, expected):
    text = describe_error(error, "Waste Wizard")
    assert text.startswith("I'm Waste Wizard.")
    assert expected in text
