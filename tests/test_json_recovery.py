import json

import pytest

from json_recovery import (
    JsonRecoveryError,
    extract_first_json_candidate,
    normalize_potential_json,
    parse_json_from_text,
    repair_truncated_json,
    sanitize_json_like,
)


def test_clean_json_parses_unchanged():
    payload = {"decision": "Ship", "scores": [0.1, 0.9], "nested": {"ok": True, "note": None}}
    assert parse_json_from_text(json.dumps(payload)) == payload


def test_fenced_loose_dialect_is_recovered():
    text = "```json\n{'decision': 'Ship it', 'score': 0.8,}\n```"
    assert parse_json_from_text(text) == {"decision": "Ship it", "score": 0.8}


def test_prose_around_json_is_ignored():
    text = 'Here is the result: {"a": [1, 2]} hope this helps {"b": 3}'
    assert parse_json_from_text(text) == {"a": [1, 2]}


def test_top_level_array_is_extracted():
    assert parse_json_from_text("result: [1, 2, 3] done") == [1, 2, 3]


def test_smart_quotes_are_normalized():
    assert parse_json_from_text("{“a”: “b”}") == {"a": "b"}


def test_truncated_structure_is_closed():
    text = '{"items": [{"name": "a"}, {"name": "b"'
    repaired = repair_truncated_json(text)
    assert repaired.endswith("}]}")
    assert parse_json_from_text(text) == {"items": [{"name": "a"}, {"name": "b"}]}


def test_truncated_string_is_closed():
    assert parse_json_from_text('{"note": "unfinished') == {"note": "unfinished"}


def test_repair_drops_stray_closers():
    assert repair_truncated_json('{"a": 1]}') == '{"a": 1}'


def test_extract_skips_braces_inside_strings():
    assert extract_first_json_candidate('{"a": "}"} trailing') == '{"a": "}"}'


def test_extract_reports_incomplete_structure():
    with pytest.raises(JsonRecoveryError, match="Incomplete JSON structure"):
        extract_first_json_candidate('{"a": [1, 2')


def test_apostrophe_inside_double_quotes_survives_when_valid():
    assert parse_json_from_text('{"a": "can\'t stop"}') == {"a": "can't stop"}


def test_apostrophe_inside_single_quoted_value_is_not_recoverable():
    # The regex rewrite is not a tokenizer; an embedded apostrophe ends the value early.
    with pytest.raises(JsonRecoveryError, match="Unable to parse JSON"):
        parse_json_from_text("{'a': 'can't stop'}")


def test_no_json_raises():
    with pytest.raises(JsonRecoveryError, match="No JSON found in model response"):
        parse_json_from_text("I cannot help with that request.")


@pytest.mark.parametrize("text", ["", "   ", "```json\n```", None])
def test_empty_response_raises(text):
    with pytest.raises(JsonRecoveryError, match="Empty model response"):
        parse_json_from_text(text)


def test_normalize_strips_fences_only_at_edges():
    assert normalize_potential_json("```\n{\"a\": \"```\"}\n```") == '{"a": "```"}'


def test_sanitize_rewrites_loose_dialect():
    assert sanitize_json_like("{'k': 'v', 'n': [1, 2,],}") == '{"k": "v", "n": [1, 2]}'
