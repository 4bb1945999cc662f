# ==============================================================================
# metrics.py  –  Prometheus counters for the watch loop
#
# Exposed only when KNIGHTWATCH_METRICS_PORT is configured.
# ==============================================================================

from __future__ import annotations

import os

from prometheus_client import Counter, Histogram, start_http_server

from knightwatch.utils.logging_utils import setup_logger

LOGGER = setup_logger("knightwatch.metrics")

job = os.getenv("JOB_NAME", "knightwatch")

FETCH_ERRORS = Counter(
    "knightwatch_fetch_errors_total",
    "PGN fetches that failed at the transport or HTTP level",
    ["room", "job"],
)

PARSE_ERRORS = Counter(
    "knightwatch_parse_errors_total",
    "Fetched PGN documents discarded as malformed",
    ["room", "job"],
)

GAMES_SEEN = Counter(
    "knightwatch_games_seen_total",
    "New out-of-book games added to the seen set",
    ["job"],
)

NOTIFICATIONS = Counter(
    "knightwatch_notifications_total",
    "Game notifications by delivery status",
    ["status", "job"],
)

CONFIG_RELOADS = Counter(
    "knightwatch_config_reloads_total",
    "Notify config refreshes by outcome",
    ["status", "job"],
)

CYCLE_DURATION = Histogram(
    "knightwatch_cycle_duration_seconds",
    "Duration of one fetch → notify cycle over all rooms",
    ["job"],
)


def start_metrics_server(port: int) -> None:
    """Start the Prometheus HTTP endpoint; failure to bind is fatal."""
    LOGGER.info("Starting metrics server on port %d…", port)
    start_http_server(port)
    LOGGER.info("Metrics server started.")
