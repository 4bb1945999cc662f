# ==============================================================================
# notifier.py  –  One Discord alert per new qualifying game
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from knightwatch.ingestion.ccrl_live import CcrlLiveRoom
from knightwatch.notify.discord import DEFAULT_TIMEOUT, send_embed_message


@dataclass(frozen=True)
class NotifyContent:
    white_player: str
    black_player: str
    event: str
    room: CcrlLiveRoom
    mentions: FrozenSet[str] = field(default_factory=frozenset)


def format_notification(content: NotifyContent) -> Tuple[str, str]:
    """Return the embed (title, description) for ``content``."""
    title = (
        f":white_medium_square: {content.white_player} vs. "
        f":black_medium_square: {content.black_player} starting"
    )
    mentions = " ".join(f"<@!{user_id}>" for user_id in sorted(content.mentions))

    lines = []
    if content.event:
        lines.append(f"Tournament: {content.event}")
    lines.append(f"Watch live: {content.room.url}")
    lines.append(f"cc. {mentions}")
    return title, "\n".join(lines)


def send_notification(
    webhook_url: str, content: NotifyContent, timeout: float = DEFAULT_TIMEOUT
) -> None:
    title, description = format_notification(content)
    send_embed_message(webhook_url, title, description, timeout=timeout)
