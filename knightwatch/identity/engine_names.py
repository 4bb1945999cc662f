# ==============================================================================
# engine_names.py  –  Canonical engine names for equality checks
#
# Broadcast names carry noise such as "RookieMonster 1.9.9 64-bit" while the
# notify config says "rookiemonster". Both sides are normalised and compared
# for exact equality; substring matching would let "Luna" match "Lunar".
# ==============================================================================

from __future__ import annotations

import re

BITNESS_MARKER = "64-bit"
_VERSION_RE = re.compile(r"v?\d+(\.\d+)?(\.\d+)?$")


def _strip_noise(name: str) -> str:
    if name.endswith(BITNESS_MARKER):
        name = name[: -len(BITNESS_MARKER)].rstrip()
    return _VERSION_RE.sub("", name).rstrip()


def normalize(raw: str) -> str:
    """
    Canonicalise an engine name.

    Case-folds, trims, then strips a trailing ``64-bit`` marker and a trailing
    version token (``2``, ``v2.0``, ``1.9.9``). The stripping repeats until
    nothing changes, so ``normalize`` is idempotent even for names such as
    ``"Foo 2 3"``.

    >>> normalize("RookieMonster 1.9.9 64-bit")
    'rookiemonster'
    """
    name = raw.casefold().strip()
    while True:
        stripped = _strip_noise(name)
        if stripped == name:
            return name
        name = stripped


class EngineName:
    """
    A player name as broadcast, compared by its normalised form.

    Only another `EngineName` compares equal; use `matches` against a raw string.
    """

    __slots__ = ("display", "normalized")

    def __init__(self, display: str) -> None:
        self.display = display
        self.normalized = normalize(display)

    def matches(self, other: str) -> bool:
        return self.normalized == normalize(other)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EngineName):
            return self.normalized == other.normalized
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.normalized)

    def __str__(self) -> str:
        return self.display

    def __repr__(self) -> str:
        return f"EngineName({self.display!r})"
