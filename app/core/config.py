from functools import lru_cache
from typing import Any, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    if v is None or v == "":
        return _DEFAULT_CORS.copy()
    if isinstance(v, list):
        return [x for x in v if isinstance(x, str) and x.strip()]
    s = str(v).strip()
    if s.startswith("["):
        import json
        try:
            out = json.loads(s)
        except ValueError:
            return _DEFAULT_CORS.copy()
        return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
    return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # Store: "mongo" or "memory"
    store_backend: Literal["mongo", "memory"] = Field(default="mongo", alias="STORE_BACKEND")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="customer_service", alias="MONGODB_DB_NAME")

    # Account operations
    request_timeout_seconds: float = Field(default=1.0, gt=0, alias="REQUEST_TIMEOUT_SECONDS")
    account_max_write_attempts: int = Field(default=10, ge=1, alias="ACCOUNT_MAX_WRITE_ATTEMPTS")

    # Routes are also mounted under /<prefix>/api/v1/customer; empty disables
    service_path_prefix: str = Field(default="customer-service", alias="SERVICE_PATH_PREFIX")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @field_validator("store_backend", mode="before")
    @classmethod
    def _normalise_store_backend(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))


@lru_cache
def get_settings() -> Settings:
    return Settings()
