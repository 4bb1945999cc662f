# ==============================================================================
# seen_games.py  –  In-memory set of already handled game fingerprints
#
# Grows for the life of the process: no eviction, no persistence.
# ==============================================================================

from __future__ import annotations

import threading
from typing import Set

from knightwatch.identity.game_identity import GameFingerprint


class SeenGames:
    def __init__(self) -> None:
        self._fingerprints: Set[GameFingerprint] = set()
        self._lock = threading.Lock()

    def contains(self, fp: GameFingerprint) -> bool:
        with self._lock:
            return fp in self._fingerprints

    def add(self, fp: GameFingerprint) -> bool:
        """Insert ``fp``; True only if it was not already present."""
        with self._lock:
            if fp in self._fingerprints:
                return False
            self._fingerprints.add(fp)
            return True

    def __contains__(self, fp: object) -> bool:
        return self.contains(fp)  # type: ignore[arg-type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._fingerprints)
