"""Recover structured avatar replies from free-form LLM output.

Models are asked for JSON but regularly wrap it in prose or code fences, so
parsing runs an ordered list of strategies and falls back to a canned apology
when none of them yields a value.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable

from modules.core import events

logger = logging.getLogger(__name__)

_FAILED = object()


def _parse_whole(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return _FAILED


def _parse_braced(raw: str) -> Any:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return _FAILED
    try:
        return json.loads(raw[start : end + 1])
    except ValueError:
        return _FAILED


STRATEGIES: list[Callable[[str], Any]] = [_parse_whole, _parse_braced]


def fallback_message() -> dict[str, str]:
    return {
        "text": events.TEXT_UNPARSEABLE,
        "facialExpression": events.EXPRESSION_SAD,
        "animation": events.ANIMATION_IDLE,
    }


def _unwrap(value: Any) -> Any:
    if isinstance(value, dict) and "messages" in value:
        return value["messages"]
    return value


def normalize_message(item: Any) -> dict[str, str]:
    if not isinstance(item, dict):
        return {
            "text": "" if item is None else str(item),
            "facialExpression": events.EXPRESSION_DEFAULT,
            "animation": events.ANIMATION_IDLE,
        }

    text = item.get("text")
    expression = item.get("facialExpression")
    animation = item.get("animation")
    return {
        "text": "" if text is None else str(text),
        "facialExpression": expression if expression in events.FACIAL_EXPRESSIONS else events.EXPRESSION_DEFAULT,
        "animation": animation if animation in events.ANIMATIONS else events.ANIMATION_IDLE,
    }


def parse_reply(raw: str | None, max_messages: int = 3) -> list[dict[str, str]]:
    """Return at most `max_messages` normalized message dicts for `raw`."""
    raw = raw or ""
    value: Any = _FAILED
    for strategy in STRATEGIES:
        value = strategy(raw)
        if value is not _FAILED:
            break
        logger.warning("Reply parse strategy failed: strategy=%s", strategy.__name__)

    if value is _FAILED:
        return [fallback_message()]

    value = _unwrap(value)
    if value is None:
        return [fallback_message()]
    if not isinstance(value, list):
        value = [value]
    if not value:
        return [fallback_message()]

    messages = [normalize_message(item) for item in value]
    if len(messages) > max_messages:
        logger.info("Reply truncated: received=%s kept=%s", len(messages), max_messages)
    return messages[:max_messages]
