# ==============================================================================
# config_loader.py  –  Fetch the notify config document over HTTP
# ==============================================================================

from __future__ import annotations

import json5
import requests

from knightwatch.notify.rules import NotifyConfig, NotifyConfigError, build_notify_config
from knightwatch.utils.config_utils import DEFAULT_HTTP_TIMEOUT


def fetch_notify_config(
    config_url: str, timeout: float = DEFAULT_HTTP_TIMEOUT
) -> NotifyConfig:
    """
    Download and build the notify config.

    The document is JSON5: comments, unquoted keys and trailing commas are
    accepted.

    Raises `requests.RequestException` on transport/HTTP failure and
    `NotifyConfigError` on a body that is not a valid config document.
    """
    resp = requests.get(config_url, allow_redirects=False, timeout=timeout)
    resp.raise_for_status()

    try:
        document = json5.loads(resp.text)
    except ValueError as exc:
        raise NotifyConfigError(f"Config at {config_url} is not valid JSON5") from exc

    return build_notify_config(document)
