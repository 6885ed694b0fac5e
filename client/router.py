"""
Provider router: sends a chat history to an LLM and returns the reply text.

Two modes share one entry point:
  * relay (default): the backend's /api/ai-chat injects the caller's stored key
  * direct: the client calls the provider itself with a client-held key
"""
import logging

import httpx

from typing import List, Optional

from core.providers import Provider, build_chat_payload, extract_completion_text
from client.config import ClientSettings
from client.credentials import LocalKeyCache
from client.errors import AuthRequired, MissingCredential, NetworkError, ProviderError
from client.session import SessionProvider

logger = logging.getLogger(__name__)

RELAY_PATH = "/api/ai-chat"
PROBE_MESSAGES = [
    {"role": "system", "content": "You are a helpful assistant."},
    {"role": "user", "content": "Hello, are you working?"},
]


class ProviderRouter:

    def __init__(
        self,
        session: SessionProvider,
        backend: httpx.AsyncClient,
        keys: LocalKeyCache,
        settings: Optional[ClientSettings] = None,
        mode: Optional[str] = None,
        provider_http: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or ClientSettings()
        self.mode = mode or self.settings.ROUTING_MODE
        if self.mode not in ("relay", "direct"):
            raise ValueError(f"Unknown routing mode: {self.mode}")

        self._session = session
        self._backend = backend
        self._keys = keys
        self._provider_http = provider_http

    async def send_chat(self, history: List[dict], provider: Provider) -> str:
        """
        Route one chat-completions request. No retries.

        Raises:
            AuthRequired: relay mode without a session
            MissingCredential: no key available for the provider
            ProviderError: non-2xx response or malformed completion body
            NetworkError: transport failure
        """
        provider = Provider(provider)
        logger.info("Routing %d messages to %s via %s", len(history), provider.value, self.mode)

        if self.mode == "relay":
            return await self._send_relay(history, provider)
        return await self._send_direct(history, provider)

    async def _send_relay(self, history: List[dict], provider: Provider) -> str:
        # 1. Session check happens before any network traffic
        auth = self._session.current
        if auth is None:
            raise AuthRequired()

        # 2. Relay call
        try:
            response = await self._backend.post(
                RELAY_PATH,
                json={"messages": history, "provider": provider.value},
                headers=auth.headers,
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Relay request failed: {e}") from e

        # 3. Error mapping
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("error") or response.text

            if body.get("needsSetup") or body.get("missingKey"):
                raise MissingCredential(
                    provider.value, message, needs_setup=bool(body.get("needsSetup"))
                )
            if response.status_code == 401 and message == "Unauthorized":
                raise AuthRequired("Session expired. Please sign in again.")
            raise ProviderError(response.status_code, response.text, message)

        return self._completion_text(response)

    async def _send_direct(self, history: List[dict], provider: Provider) -> str:
        api_key = self._keys.get(provider)
        if not api_key:
            raise MissingCredential(provider.value)

        payload = build_chat_payload(
            provider, history, self.settings.TEMPERATURE, self.settings.MAX_TOKENS
        )
        headers = {"Authorization": f"Bearer {api_key}"}

        try:
            if self._provider_http is not None:
                response = await self._provider_http.post(
                    provider.endpoint.url, json=payload, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self.settings.HTTPX_TIMEOUT) as client:
                    response = await client.post(
                        provider.endpoint.url, json=payload, headers=headers
                    )
        except httpx.RequestError as e:
            raise NetworkError(f"{provider.label} API request failed: {e}") from e

        if response.is_error:
            logger.warning("%s returned HTTP %s", provider.value, response.status_code)
            raise ProviderError(
                response.status_code, response.text,
                f"{provider.label} API error: {response.status_code}"
            )

        return self._completion_text(response)

    @staticmethod
    def _completion_text(response: httpx.Response) -> str:
        try:
            return extract_completion_text(response.json())
        except ValueError as e:
            raise ProviderError(response.status_code, response.text, str(e)) from e

    async def test_connection(self, provider: Provider) -> str:
        """ Send a fixed probe conversation; raises like send_chat on failure """
        provider = Provider(provider)
        await self.send_chat(PROBE_MESSAGES, provider)
        return f"✓ {provider.label} API connection successful!"
