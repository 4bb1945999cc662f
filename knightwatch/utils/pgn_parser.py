# ==============================================================================
# pgn_parser.py  –  Book-annotated PGN → GameRecord
#
# CCRL live broadcasts annotate every ply with a comment. Book moves carry the
# literal comment "(Book)"; engine moves carry a PV + eval + time comment.
# Only the main line is read, side variations are skipped wholesale.
# ==============================================================================

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import List, Optional, Tuple

import chess
import chess.pgn

from knightwatch.identity.engine_names import EngineName

WHITE_HEADER_KEY = "White"
BLACK_HEADER_KEY = "Black"
DATE_HEADER_KEY = "Date"
SITE_HEADER_KEY = "Site"
EVENT_HEADER_KEY = "Event"
BOOK_MOVE_COMMENT_VALUE = "(Book)"


class PgnParseError(ValueError):
    """Raised for any PGN that cannot yield a complete `GameRecord`."""


@dataclass(frozen=True)
class Move:
    san: str
    is_book: bool


@dataclass(frozen=True)
class GameRecord:
    white_player: EngineName
    black_player: EngineName
    date: str
    event_or_site: str
    moves: Tuple[Move, ...]


# ------------------------------------------------------------------------------
# Visitor
# ------------------------------------------------------------------------------


class _GameRecordVisitor(chess.pgn.BaseVisitor[GameRecord]):
    """Collect headers and (move, is-book) pairs while python-chess tokenises."""

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.moves: List[Move] = []
        self.pending_san: Optional[str] = None

    def visit_header(self, tagname: str, tagvalue: str) -> None:
        self.headers[tagname] = tagvalue

    def visit_move(self, board: chess.Board, move: chess.Move) -> None:
        if self.pending_san is not None:
            raise PgnParseError(
                f"Move {self.pending_san!r} is not followed by an annotation"
            )
        self.pending_san = board.san(move)

    def visit_comment(self, comment: str) -> None:
        if self.pending_san is None:
            raise PgnParseError(f"Comment {comment!r} has no preceding move")

        is_book = comment.strip() == BOOK_MOVE_COMMENT_VALUE
        self.moves.append(Move(self.pending_san, is_book))
        self.pending_san = None

    def begin_variation(self) -> chess.pgn.SkipType:
        return chess.pgn.SKIP

    def handle_error(self, error: Exception) -> None:
        raise PgnParseError(f"Unreadable movetext: {error}") from error

    def result(self) -> GameRecord:
        # A trailing un-annotated move (document caught mid-write) is dropped.
        for key in (WHITE_HEADER_KEY, BLACK_HEADER_KEY, DATE_HEADER_KEY):
            if key not in self.headers:
                raise PgnParseError(f"Missing required header `{key}`")
        if not self.moves:
            raise PgnParseError("Game has no annotated moves")

        return GameRecord(
            white_player=EngineName(self.headers[WHITE_HEADER_KEY]),
            black_player=EngineName(self.headers[BLACK_HEADER_KEY]),
            date=self.headers[DATE_HEADER_KEY],
            event_or_site=self.headers.get(
                SITE_HEADER_KEY, self.headers.get(EVENT_HEADER_KEY, "")
            ),
            moves=tuple(self.moves),
        )


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------


def parse_pgn(text: str) -> GameRecord:
    """
    Parse exactly one game from ``text``.

    Parameters
    ----------
    text : str
        Raw PGN as served by a CCRL live room.

    Returns
    -------
    GameRecord
        Players, date, tournament and the main line with book flags.

    Raises
    ------
    PgnParseError
        On a comment without a move, a move without a comment, missing
        White/Black/Date headers, an empty move list or no game at all.
    """
    # python-chess ends a game at the first blank line inside the movetext.
    # CCRL live serves the movetext as one block, so nothing after such a
    # line is read.
    record = chess.pgn.read_game(io.StringIO(text), Visitor=_GameRecordVisitor)
    if record is None:
        raise PgnParseError("No game found in document")
    return record
