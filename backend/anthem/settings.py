"""Settings for the Anthem users store layer."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    users_table: str = _env_field("Users", "USERS_TABLE")
    # Upper bound for a single round trip to the attribute store
    store_timeout_seconds: float = _env_field(5.0, "STORE_TIMEOUT_SECONDS")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("anthem-users", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")

    # Environment helpers
    def is_prod(self) -> bool:
        return self.environment.lower() in ("prod", "production", "live")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("store_timeout_seconds", mode="after")
    def check_store_timeout(cls, value: float) -> float:  # type: ignore[override]
        if value <= 0:
            raise ValueError("store_timeout_seconds must be positive")
        return value

    @field_validator("obs_log_level", mode="before")
    def normalise_log_level(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return "INFO"
        return str(value).strip().upper()


settings = Settings()
