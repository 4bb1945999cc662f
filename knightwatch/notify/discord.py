# ==============================================================================
# discord.py  –  Minimal Discord webhook client
#
# Two payload shapes:
#   • plain content messages (log forwarding)
#   • single-embed messages with user mentions enabled (game alerts)
# Both raise `requests.HTTPError` on a non-2xx response.
# ==============================================================================

from __future__ import annotations

from typing import Any, Dict

import requests

USERNAME = "knightwatch"
DEFAULT_TIMEOUT = 10  # seconds


def send_message(webhook_url: str, message: str, timeout: float = DEFAULT_TIMEOUT) -> None:
    """Post a plain text message."""
    _call_webhook(webhook_url, {"username": USERNAME, "content": message}, timeout)


def send_embed_message(
    webhook_url: str,
    title: str,
    description: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """Post a single embed; `<@!id>` mentions in the description will ping."""
    payload = {
        "username": USERNAME,
        "allowed_mentions": {"parse": ["users"]},
        "embeds": [{"title": title, "description": description}],
    }
    _call_webhook(webhook_url, payload, timeout)


def _call_webhook(webhook_url: str, body: Dict[str, Any], timeout: float) -> None:
    resp = requests.post(webhook_url, json=body, timeout=timeout)
    resp.raise_for_status()
