from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):

    KOFI_VERIFICATION_TOKEN: str | None = None

    AWS_REGION: str = "eu-central-1"
    AWS_PROFILE: str | None = None
    DYNAMODB_TABLE_NAME: str = "donation-ledger"

    REFERENCE_CURRENCY: str = "CHF"
    DISPLAY_CURRENCIES: list[str] = ["JPY", "EUR"]
    DEFAULT_DISPLAY_CURRENCY: str = "JPY"
    RATE_CACHE_TTL_HOURS: int = 12

    FX_API_URL: str = "https://api.exchangerate.host/latest"
    FX_API_ACCESS_KEY: str | None = None
    FX_API_TIMEOUT_SECONDS: float = 5.0

    API_ROOT_PATH: str = ""
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
