# ==============================================================================
# logging_utils.py  –  Console, file and webhook log destinations
#
# Features:
#   ✔ Console + timestamped file output
#   ✔ Optional Discord webhook handler selected at startup
#   ✔ Idempotent: clears handlers before re-adding
# ==============================================================================

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from knightwatch.notify.discord import DEFAULT_TIMEOUT, send_message

# ------------------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------------------

_FMT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DEFAULT_LEVEL = logging.INFO


# ------------------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------------------


def _file_logging_enabled() -> bool:
    return os.getenv("KNIGHTWATCH_LOG_TO_FILE", "true").strip().lower() in {
        "1",
        "true",
        "yes",
    }


def _detect_logs_dir() -> Path:
    """
    Detect where logs should be stored.

    • KNIGHTWATCH_LOG_DIR set → that directory
    • Otherwise               → <repo>/logs
    """
    override = os.getenv("KNIGHTWATCH_LOG_DIR")
    if override:
        return Path(override)

    return Path(__file__).resolve().parents[2] / "logs"


def _init_file_handler(
    logs_dir: Path, logger_name: str, fmt: logging.Formatter
) -> Optional[logging.Handler]:
    """
    Create a timestamped FileHandler if directory is writable.
    Falls back to console logging if not.
    """
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        file_path = logs_dir / f"{logger_name}_{timestamp}.log"

        fh = logging.FileHandler(file_path, encoding="utf-8")
        fh.setFormatter(fmt)
        return fh
    except OSError:
        logging.getLogger().warning("Cannot write logs to %s", logs_dir)
        return None


# ------------------------------------------------------------------------------
# Webhook destination
# ------------------------------------------------------------------------------


class WebhookHandler(logging.Handler):
    """
    Forward log records to a Discord webhook.

    WARNING and above are prefixed with a mention of ``mention_id`` (when set)
    and a red marker so they stand out in the channel.
    """

    def __init__(
        self,
        webhook_url: str,
        mention_id: Optional[str] = None,
        level: int = logging.INFO,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(level)
        self.webhook_url = webhook_url
        self.mention_id = mention_id
        self.timeout = timeout
        self.setFormatter(logging.Formatter("%(message)s"))

    def _render(self, record: logging.LogRecord) -> str:
        message = self.format(record)
        if record.levelno < logging.WARNING:
            return message

        prefix = f"<@!{self.mention_id}> " if self.mention_id else ""
        return f"{prefix}:red_circle: {message}"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            send_message(self.webhook_url, self._render(record), timeout=self.timeout)
        except Exception:
            self.handleError(record)


# ------------------------------------------------------------------------------
# Public factory
# ------------------------------------------------------------------------------


def setup_logger(
    name: str,
    level: int = _DEFAULT_LEVEL,
    logs_dir: Union[str, Path, None] = None,
) -> logging.Logger:
    """
    Return a fresh `logging.Logger`.

    Parameters
    ----------
    name : str
        Logger name (used in file naming).
    level : int
        Logging level (INFO by default).
    logs_dir : str | Path | None
        Override log directory (default: auto-detect).
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers for idempotency
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(_FMT)

    # Console handler
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    # File handler
    if _file_logging_enabled():
        target_dir = Path(logs_dir) if logs_dir else _detect_logs_dir()
        file_handler = _init_file_handler(target_dir, name, formatter)
        if file_handler:
            logger.addHandler(file_handler)

    return logger


def attach_webhook_handler(
    logger: logging.Logger,
    webhook_url: Optional[str],
    mention_id: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[WebhookHandler]:
    """
    Add a `WebhookHandler` to ``logger`` when a webhook URL is configured.

    Returns the handler (or None when logging stays console/file only).
    ``timeout`` bounds each webhook post.
    """
    if not webhook_url:
        return None

    for existing in list(logger.handlers):
        if isinstance(existing, WebhookHandler):
            logger.removeHandler(existing)

    handler = WebhookHandler(webhook_url, mention_id, timeout=timeout)
    logger.addHandler(handler)
    return handler
