"""
Runtime configuration for the answer bridge.

All settings are read from the environment. `main` loads `.env.local` / `.env`
through python-dotenv before calling `Settings.from_env()`.

Usage:
    from answer_bridge.config import Settings

    settings = Settings.from_env()
    if settings.show_citations:
        ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_ANSWER_URL = "http://127.0.0.1:8011"
DEFAULT_ALLOWLIST_PRESET = "faqs"


def _flag_default_on(name: str) -> bool:
    """Flag that stays on unless explicitly set to "0"."""
    return os.getenv(name, "1").strip() != "0"


def _flag_default_off(name: str) -> bool:
    """Flag that stays off unless set to anything other than "0"."""
    return os.getenv(name, "0").strip() != "0"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric setting", name=name, value=raw)
        return default


def _int_env(name: str, default: int) -> int:
    return int(_float_env(name, float(default)))


@dataclass(frozen=True)
class Settings:
    """Resolved bridge settings."""

    slack_bot_token: str | None = None
    slack_app_token: str | None = None
    slack_signing_secret: str | None = None

    answer_url: str = DEFAULT_ANSWER_URL
    admin_token: str = ""
    request_timeout: float = 60.0

    show_citations: bool = True
    show_ribbon: bool = False
    thinking_enabled: bool = True

    allowlist_preset: str = DEFAULT_ALLOWLIST_PRESET
    allowlist_override: str = ""

    support_phone: str = ""
    support_email: str = ""

    poll_interval: float = 2.0
    conversation_ttl: float = 24 * 3600
    conversation_max_threads: int = 5000
    event_dedupe_ttl: float = 120.0

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """
        Build settings from environment variables.

        The admin token prefers RACEN_ADMIN_TOKEN and falls back to the legacy
        IPHONE_SPECS_SYNC_TOKEN used by earlier deployments.

        Returns:
            Settings populated from the current environment
        """
        admin_token = (
            os.getenv("RACEN_ADMIN_TOKEN") or os.getenv("IPHONE_SPECS_SYNC_TOKEN") or ""
        ).strip()

        return cls(
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN"),
            slack_app_token=os.getenv("SLACK_APP_TOKEN"),
            slack_signing_secret=os.getenv("SLACK_SIGNING_SECRET"),
            answer_url=(os.getenv("RACEN_ANSWER_URL") or DEFAULT_ANSWER_URL).rstrip("/"),
            admin_token=admin_token,
            request_timeout=_float_env("ANSWER_TIMEOUT_SECONDS", 60.0),
            show_citations=_flag_default_on("SLACK_SHOW_CITATIONS"),
            show_ribbon=_flag_default_off("ANSWER_DEBUG_FLAGS"),
            thinking_enabled=_flag_default_on("SLACK_THINKING_ENABLE"),
            allowlist_preset=os.getenv("SLACK_ALLOWLIST_PRESET") or DEFAULT_ALLOWLIST_PRESET,
            allowlist_override=os.getenv("RETRIEVE_SOURCE_ALLOWLIST", "").strip(),
            support_phone=os.getenv("SUPPORT_PHONE", "").strip(),
            support_email=os.getenv("SUPPORT_EMAIL", "").strip(),
            poll_interval=_float_env("INGEST_POLL_INTERVAL_SECONDS", 2.0),
            conversation_ttl=_float_env("CONVERSATION_TTL_SECONDS", 24 * 3600),
            conversation_max_threads=_int_env("CONVERSATION_MAX_THREADS", 5000),
            event_dedupe_ttl=_float_env("SLACK_EVENT_DEDUP_TTL_SECONDS", 120.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
