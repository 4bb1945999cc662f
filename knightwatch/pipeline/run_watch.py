#!/usr/bin/env python3
# ==============================================================================
# run_watch.py
# ------------------------------------------------------------------------------
# Poll loop: decides which fetched games are new, who should hear about them,
# and marks them seen.
#
# Per cycle:
#   1. Refresh the notify config (keep the old one if the fetch fails)
#   2. Fetch + parse the current game of every room
#   3. For each out-of-book game not yet seen:
#        • collect recipients from engine subscriptions + tournament rules
#        • send one notification if anyone is left
#        • mark the fingerprint seen (even if delivery failed)
#   4. Sleep `poll_interval`
# ==============================================================================

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set, Tuple

import requests

from knightwatch.identity.game_identity import fingerprint, is_out_of_book
from knightwatch.identity.seen_games import SeenGames
from knightwatch.ingestion.ccrl_live import CcrlLiveRoom, get_current_games
from knightwatch.notify.config_loader import fetch_notify_config
from knightwatch.notify.notifier import NotifyContent, send_notification
from knightwatch.notify.rules import NotifyConfig, NotifyConfigError, should_notify
from knightwatch.utils.config_utils import Settings
from knightwatch.utils.logging_utils import setup_logger
from knightwatch.utils.metrics import (
    CONFIG_RELOADS,
    CYCLE_DURATION,
    GAMES_SEEN,
    NOTIFICATIONS,
    job,
)
from knightwatch.utils.pgn_parser import GameRecord

LOGGER = setup_logger("knightwatch.run_watch")

FetchGames = Callable[[Sequence[CcrlLiveRoom]], List[Tuple[CcrlLiveRoom, GameRecord]]]
SendNotification = Callable[[NotifyContent], None]
LoadNotifyConfig = Callable[[], NotifyConfig]


@dataclass
class WatchState:
    """Everything that survives between cycles; owned by the poll loop."""

    notify_config: NotifyConfig
    seen: SeenGames = field(default_factory=SeenGames)


# ------------------------------------------------------------------------------
# Decisions
# ------------------------------------------------------------------------------


def collect_recipients(game: GameRecord, notify_config: NotifyConfig) -> Set[str]:
    """Users subscribed to either player whose rules allow this tournament."""
    recipients: Set[str] = set()

    for engine, users in notify_config.engines.items():
        if not (game.white_player.matches(engine) or game.black_player.matches(engine)):
            continue

        for user in users:
            if should_notify(user.rules, game.event_or_site):
                recipients.add(user.user_id)

    return recipients


def process_game(
    room: CcrlLiveRoom,
    game: GameRecord,
    state: WatchState,
    send: SendNotification,
) -> Optional[NotifyContent]:
    """
    Handle one fetched game; return the notification sent (or attempted).

    In-book games are left alone entirely: their fingerprint would still
    change as more book moves arrive.
    """
    if not is_out_of_book(game):
        return None

    fp = fingerprint(game)
    if state.seen.contains(fp):
        return None

    LOGGER.info(
        "[%s] Saw game %s: %s vs %s (%s)",
        room.code,
        fp.digest(),
        game.white_player,
        game.black_player,
        game.event_or_site or "unknown event",
    )

    content: Optional[NotifyContent] = None
    recipients = collect_recipients(game, state.notify_config)

    if recipients:
        content = NotifyContent(
            white_player=str(game.white_player),
            black_player=str(game.black_player),
            event=game.event_or_site,
            room=room,
            mentions=frozenset(recipients),
        )
        try:
            send(content)
            NOTIFICATIONS.labels(status="sent", job=job).inc()
            LOGGER.info("[%s] Notified %d user(s)", room.code, len(recipients))
        except requests.RequestException as exc:
            NOTIFICATIONS.labels(status="failed", job=job).inc()
            LOGGER.error("[%s] Failed to send notification: %s", room.code, exc)

    if state.seen.add(fp):
        GAMES_SEEN.labels(job=job).inc()

    return content


def refresh_notify_config(state: WatchState, load: LoadNotifyConfig) -> bool:
    """
    Reload the notify config; True if the content changed.

    On failure the previously loaded config stays in effect.
    """
    try:
        new_config = load()
    except (requests.RequestException, NotifyConfigError) as exc:
        CONFIG_RELOADS.labels(status="failed", job=job).inc()
        LOGGER.error("Unable to refresh notify config, keeping previous: %s", exc)
        return False

    if new_config == state.notify_config:
        CONFIG_RELOADS.labels(status="unchanged", job=job).inc()
        return False

    state.notify_config = new_config
    CONFIG_RELOADS.labels(status="changed", job=job).inc()
    LOGGER.info(
        "Notify config changed – now watching %d engine(s)", len(new_config.engines)
    )
    return True


def run_cycle(
    rooms: Sequence[CcrlLiveRoom],
    state: WatchState,
    fetch: FetchGames,
    send: SendNotification,
) -> List[NotifyContent]:
    """One fetch → decide → notify pass over all rooms."""
    sent: List[NotifyContent] = []

    with CYCLE_DURATION.labels(job=job).time():
        for room, game in fetch(rooms):
            content = process_game(room, game, state, send)
            if content is not None:
                sent.append(content)

    return sent


# ==============================================================================
# Main loop
# ==============================================================================


def run_watch(
    settings: Settings,
    state: WatchState,
    max_cycles: Optional[int] = None,
) -> None:
    """Poll forever (or for ``max_cycles``) using the real HTTP collaborators."""
    rooms = [CcrlLiveRoom(code) for code in settings.rooms]

    def fetch(rs: Sequence[CcrlLiveRoom]) -> List[Tuple[CcrlLiveRoom, GameRecord]]:
        return get_current_games(rs, timeout=settings.http_timeout)

    def send(content: NotifyContent) -> None:
        send_notification(settings.notify_webhook, content, timeout=settings.http_timeout)

    def load() -> NotifyConfig:
        return fetch_notify_config(settings.config_url, timeout=settings.http_timeout)

    LOGGER.info(
        "Watching %d room(s): %s", len(rooms), ", ".join(r.code for r in rooms)
    )

    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        # The initial config is loaded by the caller before the first cycle.
        if cycles:
            refresh_notify_config(state, load)
        run_cycle(rooms, state, fetch, send)
        cycles += 1

        LOGGER.debug("Sleeping %s s before next cycle…", settings.poll_interval)
        time.sleep(settings.poll_interval)
