"""Env var config loading with pydantic-settings."""

from __future__ import annotations

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

from armor.headers import FrameOptions, ReferrerOptions

logger = structlog.get_logger()


class ArmorSettings(BaseSettings):
    """Header defaults, overridden by ARMOR_* env vars or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="ARMOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"
    log_json: bool = True

    # Fixed headers
    frame_options: FrameOptions = FrameOptions.SAME_ORIGIN
    referrer_policy: ReferrerOptions = ReferrerOptions.NO_REFERRER

    # CSP: YAML policy file, empty means no CSP header
    csp_policy_file: str = ""
    csp_report_only: bool = False


_settings: ArmorSettings | None = None


def get_settings() -> ArmorSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> ArmorSettings:
    """Load settings from env vars (env vars override model defaults)."""
    global _settings
    _settings = ArmorSettings()
    logger.info(
        "config_loaded",
        frame_options=_settings.frame_options.value,
        referrer_policy=_settings.referrer_policy.value,
        csp_policy_file=_settings.csp_policy_file or None,
    )
    return _settings
