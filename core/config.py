from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # System environment variables
    DATABASE_URL: str
    FRONTEND_HOST: str = "*"
    HTTPX_TIMEOUT: float = 60.0
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Bind address for the uvicorn entry point
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Bearer token lifetime issued by /api/login
    ACCESS_TOKEN_TTL_MINUTES: int = 60 * 24 * 7

    # Outbound chat-completion parameters used by the relay
    PROVIDER_TEMPERATURE: float = 0.7
    PROVIDER_MAX_TOKENS: int = 1000

    # Load .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore"
    )

# Shared instance
settings = Settings()
