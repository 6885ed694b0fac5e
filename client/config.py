from pydantic_settings import BaseSettings, SettingsConfigDict

import httpx
from typing import Literal


class ClientSettings(BaseSettings):
    # Backend base URL
    API_URL: str = "http://localhost:8000"
    # "relay": provider calls go through /api/ai-chat; "direct": client-held keys
    ROUTING_MODE: Literal["relay", "direct"] = "relay"
    # Durable key-value file standing in for browser storage
    STORAGE_PATH: str = ".greenbot/storage.json"
    HTTPX_TIMEOUT: float = 60.0
    # Previous messages sent along with a new one
    CONTEXT_WINDOW: int = 6
    TEMPERATURE: float = 0.7
    MAX_TOKENS: int = 1000

    # GREENBOT_* environment variables and .env file
    model_config = SettingsConfigDict(
        env_prefix="GREENBOT_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore"
    )


def create_backend_client(settings: ClientSettings) -> httpx.AsyncClient:
    """ HTTP client bound to the backend base URL """
    return httpx.AsyncClient(base_url=settings.API_URL, timeout=settings.HTTPX_TIMEOUT)
