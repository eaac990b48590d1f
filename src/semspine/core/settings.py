"""
Centralized settings for semspine.

Manifesto:
    One validated, cached settings object replaces scattered constants for
    limits, timeouts and fan-out. Values resolve from ``SEMSPINE_*``
    environment variables and an optional ``.env`` file.

Per-contract ``constraints`` (``defaultLimit`` / ``maxLimit``) take precedence
over the limit defaults here; the defaults only apply when a contract is
silent.

Tags:
    semspine, configuration, settings, pydantic, caching
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SemspineSettings(BaseSettings):
    """semspine runtime configuration.

    All fields can be set via ``SEMSPINE_*`` environment variables (e.g.
    ``SEMSPINE_PLAN_TIMEOUT_SECONDS=5``).
    """

    model_config = SettingsConfigDict(
        env_prefix="SEMSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Compilation ──────────────────────────────────────────────
    default_limit: int = Field(default=50, ge=0, description="Row limit when neither query nor contract sets one")
    max_limit: int = Field(default=200, ge=0, description="Hard row cap when the contract sets none")

    # ── Execution ────────────────────────────────────────────────
    plan_timeout_seconds: float = Field(default=30.0, gt=0)
    max_concurrency: int = Field(default=8, ge=1, description="Plans dispatched at once")

    # ── Lineage ──────────────────────────────────────────────────
    lineage_max_attempts: int = Field(default=3, ge=1)
    lineage_backoff_seconds: float = Field(default=0.2, ge=0)

    # ── Connectors ───────────────────────────────────────────────
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    sample_size: int = Field(default=25, ge=1, description="Rows sampled per endpoint during discovery")

    # ── Policy ───────────────────────────────────────────────────
    policy_enabled: bool = Field(default=False)
    opa_url: str = Field(default="http://localhost:8181/v1/data/translation/allow")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @model_validator(mode="after")
    def _validate_limits(self) -> SemspineSettings:
        if self.default_limit > self.max_limit:
            raise ValueError(
                f"default_limit ({self.default_limit}) exceeds max_limit ({self.max_limit})"
            )
        return self


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SemspineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SemspineSettings:
    """Load, validate, and cache a :class:`SemspineSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = SemspineSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "SemspineSettings",
    "get_settings",
    "clear_settings_cache",
]
