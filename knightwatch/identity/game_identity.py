# ==============================================================================
# game_identity.py  –  "Is this the same broadcast game?"
#
# Two fetches of one broadcast differ in length but share players, date and
# the opening book line. The fingerprint is built from exactly those, so a
# game only becomes identifiable once it has left book.
#
# Known limitation: a replay with the same players, date and book line
# fingerprints identically to the original game.
# ==============================================================================

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Tuple

from knightwatch.utils.pgn_parser import GameRecord


@dataclass(frozen=True)
class GameFingerprint:
    white_player: str
    black_player: str
    date: str
    book_moves: Tuple[str, ...]

    def digest(self) -> str:
        """Short stable hex id for log lines."""
        payload = "\x1f".join(
            (self.white_player, self.black_player, self.date, *self.book_moves)
        )
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:12]


def is_out_of_book(game: GameRecord) -> bool:
    """True once any played move is not a book move."""
    return any(not move.is_book for move in game.moves)


def fingerprint(game: GameRecord) -> GameFingerprint:
    """Players (as displayed), date and the book moves in order."""
    return GameFingerprint(
        white_player=game.white_player.display,
        black_player=game.black_player.display,
        date=game.date,
        book_moves=tuple(move.san for move in game.moves if move.is_book),
    )
