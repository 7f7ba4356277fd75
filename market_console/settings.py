from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    ENV: str = "dev"

    BACKEND_BASE_URL: str = "http://localhost:3001/api"
    ADMIN_TOKEN: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 15.0
    RESOURCE_MAX_ATTEMPTS: int = 3

    WALLET_RPC_URL: str | None = None
    WALLET_PRIVATE_KEY: str | None = None
    DEFAULT_CHAIN_ID: int = 97

    MARKET_TIMEZONE: str = "UTC"
    NAVIGATE_DELAY_SECONDS: float = 2.0
    MARKETS_LIST_PATH: str = "/markets"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    HTTPX_SLOW_REQUEST_THRESHOLD_SECONDS: float = 2.0

    @field_validator("ADMIN_TOKEN", "WALLET_RPC_URL", "WALLET_PRIVATE_KEY", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and value.strip().lower() in {"", "none", "null"}:
            return None
        return value

    @field_validator("BACKEND_BASE_URL", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value):
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value


settings = Settings()
