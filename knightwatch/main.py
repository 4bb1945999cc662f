#!/usr/bin/env python3
# ==============================================================================
#  knightwatch - main.py
#  Purpose: long-running CCRL live watcher
#           (settings → logging → notify config → poll loop)
# ==============================================================================

import logging
import sys
from pathlib import Path

# ------------------------------------------------------------------------------
# Paths & Imports
# ------------------------------------------------------------------------------

SRC_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SRC_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from knightwatch.notify.config_loader import fetch_notify_config
from knightwatch.pipeline.run_watch import WatchState, run_watch
from knightwatch.utils.config_utils import ConfigError, load_settings
from knightwatch.utils.logging_utils import attach_webhook_handler, setup_logger
from knightwatch.utils.metrics import start_metrics_server

# ------------------------------------------------------------------------------
# Logging Setup
# ------------------------------------------------------------------------------

ROOT_LOGGER_NAME = "knightwatch"

logger = setup_logger("knightwatch.main")

# ------------------------------------------------------------------------------
# Stage Wrapper
# ------------------------------------------------------------------------------


def _stage(title, fn):
    """
    Run a stage with start → finish logging and full stacktrace on error.

    The webhook handler is attached before any stage runs, so a failure here
    reaches the log channel without re-reading configuration.
    """
    logger.info("%s – started", title)
    try:
        result = fn()
        logger.info("%s – finished", title)
        return result
    except Exception:
        logger.exception("%s – failed", title)
        raise


def main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Invalid settings: %s", exc)
        sys.exit(1)

    # Module loggers are children of "knightwatch"; records propagate here.
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.INFO)
    attach_webhook_handler(
        root, settings.log_webhook, settings.log_mention, timeout=settings.http_timeout
    )

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)

    try:
        notify_config = _stage(
            "Load Notify Config",
            lambda: fetch_notify_config(settings.config_url, settings.http_timeout),
        )
    except Exception:
        sys.exit(1)

    state = WatchState(notify_config=notify_config)
    _stage("Watch CCRL Live", lambda: run_watch(settings, state))


if __name__ == "__main__":
    main()
