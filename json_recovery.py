"""Recover a JSON value from free-form model output.

Models wrap JSON in markdown fences, use typographic quotes, leave trailing
commas, single-quote keys and values, or stop mid-structure when they run out
of tokens. ``parse_json_from_text`` runs a fixed sequence of increasingly
aggressive candidates and returns the first one that parses.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

FENCE_START_PATTERN = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
FENCE_END_PATTERN = re.compile(r"\s*```\s*$")
TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")
SINGLE_QUOTED_KEY_PATTERN = re.compile(r"([{,]\s*)'([^']+?)'\s*:")
SINGLE_QUOTED_VALUE_PATTERN = re.compile(r":\s*'([^'\\]*(?:\\.[^'\\]*)*)'")

CLOSER_FOR = {"{": "}", "[": "]"}


class JsonRecoveryError(ValueError):
    """Raised when no recovery strategy yields parseable JSON."""


def normalize_potential_json(text: str) -> str:
    text = re.sub(r"[“”]", '"', text)
    text = re.sub(r"[‘’]", "'", text)
    text = FENCE_START_PATTERN.sub("", text, count=1)
    text = FENCE_END_PATTERN.sub("", text, count=1)
    return text.strip()


def sanitize_json_like(text: str) -> str:
    """Regex rewrite of loose JSON dialect. Not a tokenizer: apostrophes inside
    double-quoted strings can be rewritten too."""
    text = TRAILING_COMMA_PATTERN.sub(r"\1", text)
    text = SINGLE_QUOTED_KEY_PATTERN.sub(r'\1"\2":', text)
    text = SINGLE_QUOTED_VALUE_PATTERN.sub(r': "\1"', text)
    return text


def _first_opener(text: str) -> int:
    starts = [idx for idx in (text.find("{"), text.find("[")) if idx != -1]
    if not starts:
        raise JsonRecoveryError("No JSON found in model response")
    return min(starts)


def extract_first_json_candidate(text: str) -> str:
    """Return the first balanced ``{...}`` or ``[...]`` span of ``text``."""
    start = _first_opener(text)
    opener = text[start]
    closer = CLOSER_FOR[opener]
    depth = 0
    in_string = False
    escaped = False

    for idx in range(start, len(text)):
        char = text[idx]
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start:idx + 1]

    raise JsonRecoveryError("Incomplete JSON structure in model response")


def repair_truncated_json(text: str) -> str:
    """Close whatever structure was left open when the output was cut off.

    Stray closers are dropped. Data that was never emitted cannot be
    recovered; only dangling syntax is closed.
    """
    start = _first_opener(text)
    out: List[str] = []
    expected: List[str] = []
    in_string = False
    escaped = False

    for char in text[start:]:
        if escaped:
            escaped = False
            out.append(char)
            continue
        if char == "\\":
            escaped = True
            out.append(char)
            continue
        if char == '"':
            in_string = not in_string
            out.append(char)
            continue
        if in_string:
            out.append(char)
            continue
        if char in CLOSER_FOR:
            expected.append(CLOSER_FOR[char])
            out.append(char)
        elif char in ("}", "]"):
            if expected and expected[-1] == char:
                expected.pop()
                out.append(char)
        else:
            out.append(char)

    if escaped:
        out.pop()
    if in_string:
        out.append('"')
    out.extend(reversed(expected))
    return "".join(out)


def _candidate_or_repair(text: str) -> Optional[str]:
    try:
        return extract_first_json_candidate(text)
    except JsonRecoveryError as exc:
        if str(exc).startswith("No JSON found"):
            return None
        return repair_truncated_json(text)


def _repair_then_sanitize(text: str) -> Optional[str]:
    try:
        return sanitize_json_like(repair_truncated_json(text))
    except JsonRecoveryError:
        return None


def parse_json_from_text(text: str) -> Any:
    """Parse ``text`` into a JSON value, tolerating common model output defects."""
    normalized = normalize_potential_json(text or "")
    if not normalized:
        raise JsonRecoveryError("Empty model response")

    candidate = _candidate_or_repair(normalized)
    attempts: List[Optional[str]] = [
        normalized,
        candidate,
        sanitize_json_like(normalized),
        sanitize_json_like(candidate) if candidate is not None else None,
        _repair_then_sanitize(normalized),
        _repair_then_sanitize(candidate) if candidate is not None else None,
    ]

    seen = set()
    last_error: Optional[Exception] = None
    for attempt in attempts:
        if attempt is None or attempt in seen:
            continue
        seen.add(attempt)
        try:
            return json.loads(attempt)
        except json.JSONDecodeError as exc:
            last_error = exc

    if candidate is None:
        raise JsonRecoveryError("No JSON found in model response")
    raise JsonRecoveryError(f"Unable to parse JSON from model response: {last_error}")


__all__ = [
    "JsonRecoveryError",
    "extract_first_json_candidate",
    "normalize_potential_json",
    "parse_json_from_text",
    "repair_truncated_json",
    "sanitize_json_like",
]
