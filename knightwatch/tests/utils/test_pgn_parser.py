# ==============================================================================
# test_pgn_parser.py  –  Tests for book-annotated PGN parsing
# ==============================================================================

from pathlib import Path

import pytest

from knightwatch.utils.pgn_parser import Move, PgnParseError, parse_pgn

DATA_DIR = Path(__file__).resolve().parents[1] / "data"

HEADERS = (
    '[Site "114th Amateur D11"]\n'
    '[Date "2025.01.06"]\n'
    '[White "RookieMonster 1.9.9 64-bit"]\n'
    '[Black "Betsabe_II 2023"]\n\n'
)


# ------------------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------------------
@pytest.fixture
def sample_pgn() -> str:
    return (DATA_DIR / "ccrl_sample.pgn").read_text(encoding="utf-8")


# ------------------------------------------------------------------------------
# Happy path
# ------------------------------------------------------------------------------
def test_parse_full_broadcast(sample_pgn):
    game = parse_pgn(sample_pgn)

    assert game.white_player.display == "RookieMonster 1.9.9 64-bit"
    assert game.black_player.display == "Betsabe_II 2023"
    assert game.date == "2025.01.06"
    assert game.event_or_site == "114th Amateur D11"
    assert len(game.moves) == 160


def test_book_flags_follow_comments(sample_pgn):
    game = parse_pgn(sample_pgn)

    book = [m for m in game.moves if m.is_book]
    assert len(book) == 16
    assert all(m.is_book for m in game.moves[:16])
    assert game.moves[16] == Move("e4", False)
    assert game.moves[8] == Move("Qa4+", True)


def test_moves_keep_source_order():
    game = parse_pgn(
        HEADERS + "1. d4 {(Book)} Nf6 {(Book)} 2. c4 {(c4 e6) 0.20/18 12} e6 {0.10/17 9}"
    )

    assert [m.san for m in game.moves] == ["d4", "Nf6", "c4", "e6"]
    assert [m.is_book for m in game.moves] == [True, True, False, False]


@pytest.mark.parametrize("comment", ["book", "(book)", "(Book) 0.00/1 0", "(Nf6) 0.12/20 30"])
def test_only_exact_sentinel_marks_book(comment):
    game = parse_pgn(HEADERS + "1. d4 {(Book)} Nf6 {" + comment + "}")

    assert game.moves[1] == Move("Nf6", False)


def test_event_used_when_site_missing():
    pgn = (
        '[Event "CCRL Blitz"]\n[Date "2025.02.01"]\n'
        '[White "Lunar 2.0"]\n[Black "Luna"]\n\n1. e4 {(Book)}'
    )

    assert parse_pgn(pgn).event_or_site == "CCRL Blitz"


def test_unknown_headers_ignored():
    pgn = '[Round "3"]\n[ECO "D80"]\n' + HEADERS + "1. d4 {(Book)}"

    game = parse_pgn(pgn)
    assert game.date == "2025.01.06"
    assert len(game.moves) == 1


def test_variations_are_skipped():
    pgn = HEADERS + (
        "1. d4 {(Book)} Nf6 {(Book)} (1... d5 {(Book)} 2. c4 {(Book)}) "
        "2. c4 {(Book)} e6 {(e6 Nc3) 0.15/20 11}"
    )

    game = parse_pgn(pgn)
    assert [m.san for m in game.moves] == ["d4", "Nf6", "c4", "e6"]


def test_trailing_unannotated_move_is_dropped():
    game = parse_pgn(HEADERS + "1. d4 {(Book)} Nf6 {(Book)} 2. c4")

    assert [m.san for m in game.moves] == ["d4", "Nf6"]


def test_movetext_ends_at_blank_line():
    game = parse_pgn(HEADERS + "1. d4 {(Book)}\n\n Nf6 {(Nf6) 0.12/18 3}")

    assert game.moves == (Move("d4", True),)


# ------------------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------------------
def test_comment_without_preceding_move_fails():
    with pytest.raises(PgnParseError, match="no preceding move"):
        parse_pgn(HEADERS + "{(Book)} 1. d4 {(Book)}")


def test_second_comment_on_one_move_fails():
    with pytest.raises(PgnParseError, match="no preceding move"):
        parse_pgn(HEADERS + "1. d4 {(Book)} {0.10/12 5} Nf6 {(Book)}")


def test_move_without_annotation_fails():
    with pytest.raises(PgnParseError, match="not followed by an annotation"):
        parse_pgn(HEADERS + "1. d4 Nf6 {(Book)}")


@pytest.mark.parametrize("missing", ["White", "Black", "Date"])
def test_missing_required_header_fails(missing):
    headers = "".join(
        line + "\n"
        for line in HEADERS.strip().splitlines()
        if not line.startswith(f"[{missing} ")
    )

    with pytest.raises(PgnParseError, match=missing):
        parse_pgn(headers + "\n1. d4 {(Book)}")


def test_headers_without_moves_fail():
    with pytest.raises(PgnParseError, match="no annotated moves"):
        parse_pgn(HEADERS)


def test_empty_document_fails():
    with pytest.raises(PgnParseError, match="No game"):
        parse_pgn("")


def test_unreadable_move_fails():
    with pytest.raises(PgnParseError, match="Unreadable"):
        parse_pgn(HEADERS + "1. d4 {(Book)} Ke5 {(Book)}")
