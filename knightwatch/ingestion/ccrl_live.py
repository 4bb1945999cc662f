# ==============================================================================
# ccrl_live.py
# ------------------------------------------------------------------------------
# Fetches the current broadcast PGN of each watched CCRL live room and parses
# it with `parse_pgn`.
#
# Per room and cycle:
#   • transport / HTTP error  → logged, room skipped
#   • no active broadcast     → room skipped quietly
#   • malformed PGN           → logged, document discarded
#   • otherwise               → (room, GameRecord) returned
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import requests

from knightwatch.utils.config_utils import DEFAULT_HTTP_TIMEOUT
from knightwatch.utils.logging_utils import setup_logger
from knightwatch.utils.metrics import FETCH_ERRORS, PARSE_ERRORS, job
from knightwatch.utils.pgn_parser import GameRecord, PgnParseError, parse_pgn

LOGGER = setup_logger("knightwatch.ccrl_live")

BASE_URL = "https://ccrl.live"

HTTP = requests.Session()
HTTP.headers.update({"Accept": "application/x-chess-pgn, text/plain"})


@dataclass(frozen=True)
class CcrlLiveRoom:
    code: str

    @property
    def url(self) -> str:
        return f"{BASE_URL}/{self.code}"

    @property
    def pgn_url(self) -> str:
        return f"{BASE_URL}/{self.code}/pgn"


def get_current_pgn(
    room: CcrlLiveRoom, timeout: float = DEFAULT_HTTP_TIMEOUT
) -> Optional[str]:
    """
    Return the room's current PGN text, or None when nothing is broadcasting.

    Redirects are not followed: an idle room redirects away from its PGN.
    """
    resp = HTTP.get(room.pgn_url, allow_redirects=False, timeout=timeout)
    resp.raise_for_status()

    if resp.status_code != requests.codes.ok:
        LOGGER.debug("[%s] HTTP %s – no active broadcast", room.code, resp.status_code)
        return None

    return resp.text


def get_current_games(
    rooms: Iterable[CcrlLiveRoom], timeout: float = DEFAULT_HTTP_TIMEOUT
) -> List[Tuple[CcrlLiveRoom, GameRecord]]:
    """Fetch and parse every room; failures only affect their own room."""
    games: List[Tuple[CcrlLiveRoom, GameRecord]] = []

    for room in rooms:
        try:
            pgn_text = get_current_pgn(room, timeout=timeout)
        except requests.RequestException as exc:
            LOGGER.error("Unable to fetch PGN for room %s: %s", room.code, exc)
            FETCH_ERRORS.labels(room=room.code, job=job).inc()
            continue

        if pgn_text is None:
            continue

        try:
            game = parse_pgn(pgn_text)
        except PgnParseError as exc:
            LOGGER.error("Discarding malformed PGN from room %s: %s", room.code, exc)
            PARSE_ERRORS.labels(room=room.code, job=job).inc()
            continue

        games.append((room, game))

    return games
