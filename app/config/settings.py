import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator


class Settings(BaseModel):
    IEX_TOKEN: str = Field(min_length=1)
    IEX_BASE_URL: str = "https://cloud.iexapis.com/stable"
    IEX_TIMEOUT_SEC: float = Field(default=5.0, gt=0)
    QUOTE_RETRY_INTERVAL_SEC: float = Field(default=5.0, ge=0)
    QUOTE_RETRY_MAX_ATTEMPTS: int | None = None
    QUOTE_RETRY_BACKOFF_FACTOR: float = Field(default=1.0, ge=1.0)
    QUOTE_RETRY_MAX_INTERVAL_SEC: float | None = Field(default=None, gt=0)
    QUOTE_FETCH_WORKERS: int = Field(default=4, ge=2)

    @field_validator("IEX_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("QUOTE_RETRY_MAX_ATTEMPTS")
    @classmethod
    def zero_means_unbounded(cls, value: int | None) -> int | None:
        if value is None or value <= 0:
            return None
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "IEX_TOKEN": os.getenv("IEX_TOKEN"),
            "IEX_BASE_URL": os.getenv("IEX_BASE_URL"),
            "IEX_TIMEOUT_SEC": os.getenv("IEX_TIMEOUT_SEC"),
            "QUOTE_RETRY_INTERVAL_SEC": os.getenv("QUOTE_RETRY_INTERVAL_SEC"),
            "QUOTE_RETRY_MAX_ATTEMPTS": os.getenv("QUOTE_RETRY_MAX_ATTEMPTS", "").strip() or None,
            "QUOTE_RETRY_BACKOFF_FACTOR": os.getenv("QUOTE_RETRY_BACKOFF_FACTOR"),
            "QUOTE_RETRY_MAX_INTERVAL_SEC": os.getenv("QUOTE_RETRY_MAX_INTERVAL_SEC", "").strip() or None,
            "QUOTE_FETCH_WORKERS": os.getenv("QUOTE_FETCH_WORKERS"),
        }
        # unset optional vars fall back to model defaults
        return cls.model_validate({k: v for k, v in raw.items() if v is not None or k == "IEX_TOKEN"})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
