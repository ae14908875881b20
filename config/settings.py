"""Waitlist API global settings — loaded from environment variables via .env file."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent

_WEAK_SECRETS = ("change-me-in-production", "supersecrettoken", "")


class Settings(BaseSettings):
    """All configuration flows through this class. Never read env vars directly."""

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Environment ──────────────────────────────────────────────
    waitlist_env: Literal["dev", "prod"] = "dev"
    port: int = 3000
    log_level: str = "INFO"
    log_json: bool = False

    # ── Credentials ──────────────────────────────────────────────
    admin_api_key: SecretStr = SecretStr("")
    jwt_secret: SecretStr = SecretStr("change-me-in-production")
    jwt_expiry_hours: int = 1

    # ── Infrastructure ───────────────────────────────────────────
    database_url: SecretStr
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: float = 5.0
    db_connect_timeout: float = 5.0
    db_query_timeout: float = 15.0
    db_auto_create: bool = False

    # ── Frontend ─────────────────────────────────────────────────
    cors_origins: list[str] = ["*"]

    @model_validator(mode="after")
    def _check_prod_secrets(self) -> "Settings":
        """Prevent production deployment with default secrets."""
        if self.waitlist_env == "prod":
            if self.jwt_secret.get_secret_value() in _WEAK_SECRETS:
                msg = (
                    "JWT_SECRET must be set to a strong random value "
                    "in production. Generate one with: openssl rand -hex 32"
                )
                raise ValueError(msg)
            if self.admin_api_key.get_secret_value() in _WEAK_SECRETS:
                msg = "ADMIN_API_KEY must be set to a strong random value in production."
                raise ValueError(msg)
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Singleton settings loader — reads .env once, reuses thereafter."""
    global _settings_instance  # noqa: PLW0603
    if _settings_instance is None:
        _settings_instance = Settings()  # type: ignore[call-arg]
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings_instance  # noqa: PLW0603
    _settings_instance = None
