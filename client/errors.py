"""
Error taxonomy of the chat client and its mapping to user-facing text.

Store and provider failures are raised as one of these types and caught at
the orchestrator, which turns them into a single visible chat message.
"""
from typing import Optional


class GreenBotError(Exception):
    """ Base class for recoverable client errors """


class AuthRequired(GreenBotError):
    """ No valid session where one is needed """

    def __init__(self, message: str = "You must be logged in to use the chat. Please sign in."):
        super().__init__(message)


class MissingCredential(GreenBotError):
    """ Provider selected but no key resolvable """

    def __init__(self, provider: str, message: Optional[str] = None, needs_setup: bool = False):
        self.provider = provider
        self.needs_setup = needs_setup
        super().__init__(
            message or f"No {provider.upper()} API key found. Please check your settings."
        )


class ProviderError(GreenBotError):
    """ Upstream LLM API (or the relay) rejected the request """

    def __init__(self, status_code: int, body: str, message: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"Provider error: {status_code} {body}")


class NetworkError(GreenBotError):
    """ Transport failure """


class PersistenceError(GreenBotError):
    """ Store read or write failure """


class ValidationError(GreenBotError):
    """ Malformed identifiers or input """


def describe_error(error: Exception, persona_name: str) -> str:
    """ Chat message shown in place of a reply that could not be produced """
    prefix = f"I'm {persona_name}."

    if isinstance(error, AuthRequired):
        return f"{prefix} {error}"
    if isinstance(error, MissingCredential):
        return (
            f"{prefix} I couldn't access my AI service because no valid API key was found. "
            "Please check your API settings."
        )
    if isinstance(error, ProviderError):
        body = (error.body or "").lower()
        if error.status_code == 401:
            return (
                f"{prefix} The provided API key is invalid or has expired. "
                "Please check your API settings."
            )
        if error.status_code == 402 or "insufficient_quota" in body:
            return (
                f"{prefix} Your API account has insufficient credits. "
                "Please add credits to your API provider account."
            )
        if error.status_code == 429 or "rate limit" in body:
            return f"{prefix} You've hit the rate limit. Please try again in a few minutes."
    return f"{prefix} I'm having trouble connecting to the AI service. Please try again later."
