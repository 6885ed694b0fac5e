"""
LLM provider table shared by the relay and the client router.

Each provider carries its chat-completions endpoint, model name and the
credential column it reads, so callers select behaviour from data instead of
branching on provider strings.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ProviderEndpoint:
    url: str
    model: str
    key_field: str


class Provider(str, Enum):
    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    GROK = "grok"

    @property
    def endpoint(self) -> ProviderEndpoint:
        return PROVIDER_ENDPOINTS[self]

    @property
    def label(self) -> str:
        """ Upper-case name used in user-facing messages """
        return self.value.upper()


PROVIDER_ENDPOINTS: Mapping[Provider, ProviderEndpoint] = MappingProxyType({
    Provider.OPENAI: ProviderEndpoint(
        url="https://api.openai.com/v1/chat/completions",
        model="gpt-4o",
        key_field="openai_key",
    ),
    Provider.DEEPSEEK: ProviderEndpoint(
        url="https://api.deepseek.com/v1/chat/completions",
        model="deepseek-chat",
        key_field="deepseek_key",
    ),
    Provider.GROK: ProviderEndpoint(
        url="https://api.x.ai/v1/chat/completions",
        model="grok-beta",
        key_field="grok_key",
    ),
})

DEFAULT_PROVIDER = Provider.OPENAI


def build_chat_payload(
    provider: Provider,
    messages: list,
    temperature: float,
    max_tokens: int,
) -> dict:
    """ Request body for an OpenAI-compatible chat-completions endpoint """
    return {
        "model": provider.endpoint.model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }

def extract_completion_text(payload: dict) -> str:
    """
    Read choices[0].message.content from a chat-completion body.

    Raises:
        ValueError: the body does not carry a completion message
    """
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"Invalid response format from AI service: {e}") from e
    if not isinstance(content, str):
        raise ValueError("Invalid response format from AI service: content is not text")
    return content
