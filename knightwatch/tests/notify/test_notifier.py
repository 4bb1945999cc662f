# ==============================================================================
# test_notifier.py  –  Discord payloads + config download
#   requests is patched; nothing leaves the process.
# ==============================================================================

from unittest.mock import MagicMock, patch

import pytest
import requests

from knightwatch.ingestion.ccrl_live import CcrlLiveRoom
from knightwatch.notify.config_loader import fetch_notify_config
from knightwatch.notify.discord import send_embed_message, send_message
from knightwatch.notify.notifier import (
    NotifyContent,
    format_notification,
    send_notification,
)
from knightwatch.notify.rules import NotifyConfigError

WEBHOOK = "https://discord.example/api/webhooks/1/abc"


@pytest.fixture
def content():
    return NotifyContent(
        white_player="RookieMonster 1.9.9 64-bit",
        black_player="Betsabe_II 2023",
        event="114th Amateur D11",
        room=CcrlLiveRoom("933"),
        mentions=frozenset({"222", "111"}),
    )


# ------------------------------------------------------------------------------
# Formatting
# ------------------------------------------------------------------------------
def test_format_notification(content):
    title, description = format_notification(content)

    assert title == (
        ":white_medium_square: RookieMonster 1.9.9 64-bit vs. "
        ":black_medium_square: Betsabe_II 2023 starting"
    )
    assert description.splitlines() == [
        "Tournament: 114th Amateur D11",
        "Watch live: https://ccrl.live/933",
        "cc. <@!111> <@!222>",
    ]


# ------------------------------------------------------------------------------
# Webhook calls
# ------------------------------------------------------------------------------
def test_send_notification_posts_embed(content):
    with patch("knightwatch.notify.discord.requests.post") as mock_post:
        send_notification(WEBHOOK, content)

    (url,), kwargs = mock_post.call_args
    assert url == WEBHOOK
    body = kwargs["json"]
    assert body["allowed_mentions"] == {"parse": ["users"]}
    assert body["embeds"][0]["title"].endswith("starting")
    mock_post.return_value.raise_for_status.assert_called_once()


def test_send_message_plain_content():
    with patch("knightwatch.notify.discord.requests.post") as mock_post:
        send_message(WEBHOOK, "hello")

    assert mock_post.call_args.kwargs["json"] == {
        "username": "knightwatch",
        "content": "hello",
    }


def test_webhook_http_error_propagates():
    with patch("knightwatch.notify.discord.requests.post") as mock_post:
        mock_post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        with pytest.raises(requests.HTTPError):
            send_embed_message(WEBHOOK, "t", "d")


# ------------------------------------------------------------------------------
# Config download
# ------------------------------------------------------------------------------
def test_fetch_notify_config():
    resp = MagicMock()
    resp.text = '{"users": {"111": {"engines": ["Lunar"]}}}'

    with patch("knightwatch.notify.config_loader.requests.get", return_value=resp) as mock_get:
        config = fetch_notify_config("https://config.example/notify.json")

    assert [u.user_id for u in config.engines["Lunar"]] == ["111"]
    assert mock_get.call_args.kwargs["allow_redirects"] is False


def test_fetch_notify_config_accepts_json5():
    resp = MagicMock()
    resp.text = """{
        // watched engines
        users: {
            "111": {
                engines: ["RookieMonster", 'Lunar',],
                rules: [{pattern: "^WC", action: "ignore"},],
            },
        },
    }"""

    with patch("knightwatch.notify.config_loader.requests.get", return_value=resp):
        config = fetch_notify_config("https://config.example/notify.json")

    assert set(config.engines) == {"RookieMonster", "Lunar"}
    (user,) = config.engines["RookieMonster"]
    assert user.user_id == "111"
    assert [r.pattern for r in user.rules] == ["^WC"]


def test_fetch_notify_config_bad_json():
    resp = MagicMock()
    resp.text = "{users: "

    with patch("knightwatch.notify.config_loader.requests.get", return_value=resp):
        with pytest.raises(NotifyConfigError):
            fetch_notify_config("https://config.example/notify.json")
