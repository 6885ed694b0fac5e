"""
Outbound chat-completion calls made by the relay.

The relay is the only place a stored provider key is combined with a network
call; this module performs that call and classifies the outcome without ever
logging the key.
"""
import logging

import httpx

from typing import AsyncGenerator, List

from core.config import settings
from core.providers import Provider, build_chat_payload

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """ Non-2xx response from a provider """

    def __init__(self, provider: Provider, status_code: int, body: str):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider.label} API error: {status_code} {body}")


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """ Outbound HTTP client dependency (overridden in tests) """
    async with httpx.AsyncClient(timeout=settings.HTTPX_TIMEOUT) as client:
        yield client

async def forward_chat(
    client: httpx.AsyncClient,
    provider: Provider,
    api_key: str,
    messages: List[dict],
) -> dict:
    """
    POST the conversation to the provider and return its JSON body verbatim.

    Raises:
        UpstreamError: provider answered with a non-2xx status
        httpx.RequestError: transport failure
        ValueError: the 2xx body is not JSON
    """
    endpoint = provider.endpoint
    payload = build_chat_payload(
        provider, messages,
        temperature=settings.PROVIDER_TEMPERATURE,
        max_tokens=settings.PROVIDER_MAX_TOKENS,
    )
    logger.info("Relaying %d messages to %s (model=%s)", len(messages), provider.value, endpoint.model)

    response = await client.post(
        endpoint.url,
        json=payload,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        },
    )
    if response.is_error:
        logger.warning("%s upstream returned HTTP %s", provider.value, response.status_code)
        raise UpstreamError(provider, response.status_code, response.text)

    return response.json()
