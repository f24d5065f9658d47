"""Service configuration.

Every knob is read from the environment (or .env) through pydantic-settings.
Invalid combinations fail at first get_settings() call, not mid-request.
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "gatepass"
    app_version: str = "1.0.0"
    debug: bool = False

    # Firestore service account: inline JSON or a path to the JSON file.
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    store_timeout_seconds: float = Field(default=10.0, gt=0)

    # Where rendered credentials are written
    storage_backend: Literal["local", "s3"] = "local"
    storage_root: str = "/var/gatepass/storage"
    storage_base_url: str | None = None
    storage_prefix: str = "guestPasses"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None

    # Month boundaries for the quota are computed in this IANA zone.
    quota_period_timezone: str = "UTC"
    quota_reservation_attempts: int = Field(default=5, ge=1)
    # Per-user block documents predate unit policies; disable once migrated.
    legacy_user_block_enabled: bool = True
    # Comma-separated membership roles allowed to change policy.
    policy_admin_roles: str = "admin"

    # HTTP surface
    allowed_origins: str = ""
    user_header_name: str = "X-User-ID"
    request_id_header: str = "X-Request-ID"
    request_timeout_seconds: int = Field(default=30, ge=1)
    issue_rate_limit: str = "30/minute"
    redeem_rate_limit: str = "60/minute"

    # Tracing
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    telemetry_environment: str = "development"

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("quota_period_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown quota_period_timezone: {value!r}") from e
        return value

    @model_validator(mode="after")
    def _check_credentials_and_bucket(self) -> "Settings":
        key = self.firebase_service_account_key
        if not (key and key.get_secret_value()) and not self.firebase_service_account_path:
            raise ValueError(
                "Set FIREBASE_SERVICE_ACCOUNT_KEY (service account JSON) "
                "or FIREBASE_SERVICE_ACCOUNT_PATH (path to the JSON file)"
            )
        if self.storage_backend == "s3" and not self.s3_bucket:
            raise ValueError("S3_BUCKET is required when STORAGE_BACKEND=s3")
        return self


@lru_cache
def get_settings() -> Settings:
    """Cached settings. Tests call get_settings.cache_clear() after changing env."""
    return Settings()
