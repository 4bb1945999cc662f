# ==============================================================================
# config_utils.py  –  Process settings from environment / .env
#
# Centralizes:
#   • notify config document URL
#   • Discord webhooks (game alerts + log forwarding)
#   • watched CCRL live rooms and poll cadence
# ==============================================================================

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

ROOT_ENV = Path(__file__).resolve().parents[2] / ".env"

_PREFIX = "KNIGHTWATCH_"
DEFAULT_POLL_INTERVAL = 30.0  # seconds
DEFAULT_HTTP_TIMEOUT = 10.0  # seconds


class ConfigError(RuntimeError):
    """Raised when required process settings are missing or malformed."""


@dataclass(frozen=True)
class Settings:
    config_url: str
    notify_webhook: str
    rooms: Tuple[str, ...]
    log_webhook: Optional[str] = None
    log_mention: Optional[str] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    metrics_port: Optional[int] = None


# ------------------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------------------


def _env(name: str) -> Optional[str]:
    """Return a stripped env var, treating empty strings as unset."""
    value = os.getenv(_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _required(name: str) -> str:
    value = _env(name)
    if value is None:
        raise ConfigError(f"Missing required setting `{_PREFIX + name}`")
    return value


def _number(name: str, default: Optional[float], cast=float):
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"`{_PREFIX + name}` must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"`{_PREFIX + name}` must be positive, got {raw!r}")
    return value


def _parse_rooms(raw: str) -> Tuple[str, ...]:
    """Split a comma separated list of room codes, dropping blanks."""
    return tuple(code.strip() for code in raw.split(",") if code.strip())


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------


def load_settings(env_file: Optional[Path] = ROOT_ENV) -> Settings:
    """
    Build `Settings` from the environment.

    Notes
    -----
    • ``env_file`` is loaded first with ``override=False``, so values already
      present in the real environment win over the file.
    • Raises `ConfigError` when a required value is missing; the caller treats
      this as fatal at startup.
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)

    rooms = _parse_rooms(_required("ROOMS"))
    if not rooms:
        raise ConfigError(f"`{_PREFIX}ROOMS` does not name any room")

    return Settings(
        config_url=_required("CONFIG_URL"),
        notify_webhook=_required("NOTIFY_WEBHOOK"),
        rooms=rooms,
        log_webhook=_env("LOG_WEBHOOK"),
        log_mention=_env("LOG_MENTION"),
        poll_interval=_number("POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        http_timeout=_number("HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        metrics_port=_number("METRICS_PORT", None, cast=int),
    )
