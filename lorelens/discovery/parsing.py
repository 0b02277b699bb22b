from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```json\s*|\s*```")
_ARRAY_RE = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")


class ResponseParseError(ValueError):
    """The model reply did not contain a recoverable JSON array."""


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def recover_json_array(text: str) -> list[Any]:
    """Pull the outermost ``[{...}]`` span out of free text and parse it."""
    match = _ARRAY_RE.search(text)
    if not match:
        raise ResponseParseError("Could not extract JSON array")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ResponseParseError("Extracted span is not valid JSON") from exc
    logger.info("Recovered JSON array from model reply with regex")
    return parsed


def extract_json_array(text: str) -> list[Any]:
    """
    Parse a model reply that should be a JSON array.

    Code fences are stripped first. If the cleaned text still does not parse,
    or parses to something other than a list, the regex recovery is tried.
    """
    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        return recover_json_array(text)
    if not isinstance(parsed, list):
        return recover_json_array(text)
    return parsed


def is_number(value: Any) -> bool:
    """True for ints and floats that are finite as a float. ``json.loads`` also yields NaN and infinities."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def as_index(value: Any) -> int | None:
    """Return a whole-number index, or ``None`` for anything else."""
    if not is_number(value):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def is_valid_score(entry: Any) -> bool:
    return (
        isinstance(entry, dict)
        and is_number(entry.get("index"))
        and is_number(entry.get("score"))
        and isinstance(entry.get("explanation"), str)
    )


def is_valid_score_list(scores: Any) -> bool:
    return isinstance(scores, list) and bool(scores) and all(is_valid_score(s) for s in scores)
