# ==============================================================================
# rules.py  –  Per-user tournament notify rules
# ------------------------------------------------------------------------------
# Config document shape:
#
#   {
#     "users": {
#       "106120945231466496": {
#         "engines": ["RookieMonster", "Lunar"],
#         "rules": [
#           {"pattern": "^WC", "action": "ignore"},
#           {"pattern": ".*",  "action": "notify"}
#         ]
#       }
#     }
#   }
#
# Rules are evaluated in order; the first matching pattern decides.
# ==============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple


class NotifyConfigError(ValueError):
    """Raised when a notify config document is structurally invalid."""


class NotifyAction(str, Enum):
    NOTIFY = "notify"
    IGNORE = "ignore"


@dataclass(frozen=True)
class NotifyRule:
    pattern: str
    action: NotifyAction

    def matches(self, event_name: str) -> bool:
        return re.search(self.pattern, event_name) is not None


@dataclass(frozen=True)
class UserNotifyConfig:
    user_id: str
    rules: Tuple[NotifyRule, ...] = ()


@dataclass
class NotifyConfig:
    """Engine name (as configured) → users subscribed to it."""

    engines: Dict[str, List[UserNotifyConfig]]


def should_notify(rules: Sequence[NotifyRule], event_name: str) -> bool:
    """First matching rule wins; no match means notify."""
    for rule in rules:
        if rule.matches(event_name):
            return rule.action is NotifyAction.NOTIFY
    return True


# ------------------------------------------------------------------------------
# Document → NotifyConfig
# ------------------------------------------------------------------------------


def _build_rule(user_id: str, raw: Any) -> NotifyRule:
    if not isinstance(raw, Mapping) or "pattern" not in raw or "action" not in raw:
        raise NotifyConfigError(f"User {user_id}: rule needs `pattern` and `action`")

    pattern = raw["pattern"]
    if not isinstance(pattern, str):
        raise NotifyConfigError(f"User {user_id}: pattern must be a string")
    try:
        re.compile(pattern)
    except re.error as exc:
        raise NotifyConfigError(f"User {user_id}: bad pattern {pattern!r} – {exc}") from exc

    try:
        action = NotifyAction(str(raw["action"]).lower())
    except ValueError as exc:
        raise NotifyConfigError(
            f"User {user_id}: unknown action {raw['action']!r}"
        ) from exc

    return NotifyRule(pattern, action)


def build_notify_config(document: Any) -> NotifyConfig:
    """
    Invert the per-user document into an engine → subscribers mapping.

    Rule order is preserved exactly as written for every user.
    """
    if not isinstance(document, Mapping) or not isinstance(
        document.get("users"), Mapping
    ):
        raise NotifyConfigError("Config document needs a `users` object")

    engines: Dict[str, List[UserNotifyConfig]] = {}

    for user_id, user_doc in document["users"].items():
        if not isinstance(user_doc, Mapping):
            raise NotifyConfigError(f"User {user_id}: entry must be an object")

        engine_names = user_doc.get("engines")
        if not isinstance(engine_names, list) or not all(
            isinstance(e, str) for e in engine_names
        ):
            raise NotifyConfigError(f"User {user_id}: `engines` must be a list of names")

        raw_rules = user_doc.get("rules", [])
        if not isinstance(raw_rules, list):
            raise NotifyConfigError(f"User {user_id}: `rules` must be a list")

        user = UserNotifyConfig(
            user_id=str(user_id),
            rules=tuple(_build_rule(user_id, r) for r in raw_rules),
        )
        for engine in engine_names:
            engines.setdefault(engine, []).append(user)

    return NotifyConfig(engines=engines)
