import threading

import pytest
from pydantic import BaseModel, ValidationError

from errors import AppError, ErrorKind, model_output_invalid, model_timeout
from json_recovery import JsonRecoveryError
from llm_base import (
    PRIMARY,
    RETRY,
    STRICT_SYSTEM_PROMPT,
    GenerationRequest,
    build_messages,
    classify_provider_failure,
    compile_pattern,
    compute_timeout_seconds,
    generate_with_single_retry,
    message_text,
    run_with_timeout,
    validate_text_output,
)

PATTERN = compile_pattern(r"connect|refused|\b429\b")


class Verdict(BaseModel):
    decision: str
    confidence: float


def _request(**kwargs):
    return GenerationRequest(system_prompt="You analyze decisions.", user_prompt="Decide.", schema=Verdict, **kwargs)


class ScriptedAttempt:
    """Attempt callable that replays outcomes and records each call."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, request, mode, retry_reason):
        self.calls.append((mode, retry_reason))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def _run(attempt, snippet_chars=800):
    return generate_with_single_retry(
        _request(),
        attempt,
        provider="fake",
        model="fake-model",
        provider_error_pattern=PATTERN,
        snippet_chars=snippet_chars,
    )


def test_request_requires_pydantic_schema():
    with pytest.raises(ValueError):
        GenerationRequest(system_prompt="s", user_prompt="u", schema=dict)


def test_timeout_scales_with_token_budget():
    assert compute_timeout_seconds(None, 1200, 0.05, 40, 90) == 60.0
    assert compute_timeout_seconds(100, 1200, 0.05, 40, 90) == 40
    assert compute_timeout_seconds(4000, 1200, 0.05, 40, 90) == 90
    assert compute_timeout_seconds(None, 1000, 0.045, 30, 90) == 45.0


def test_run_with_timeout_raises_model_timeout():
    release = threading.Event()
    try:
        with pytest.raises(AppError) as excinfo:
            run_with_timeout(lambda: release.wait(2), 0.05, "Slow call")
    finally:
        release.set()
    assert excinfo.value.kind is ErrorKind.MODEL_TIMEOUT
    assert "Slow call timed out after 50ms" in str(excinfo.value)


def test_run_with_timeout_propagates_task_errors():
    def boom():
        raise RuntimeError("connection refused")

    with pytest.raises(RuntimeError, match="connection refused"):
        run_with_timeout(boom, 1.0, "call")


def test_primary_success_uses_one_attempt():
    value = Verdict(decision="go", confidence=0.9)
    attempt = ScriptedAttempt(value)
    assert _run(attempt) is value
    assert attempt.calls == [(PRIMARY, None)]


def test_invalid_output_spends_exactly_one_retry():
    value = Verdict(decision="go", confidence=0.9)
    attempt = ScriptedAttempt(model_output_invalid("Unable to parse JSON"), value)
    assert _run(attempt) is value
    assert attempt.calls == [(PRIMARY, None), (RETRY, "Unable to parse JSON")]


def test_two_invalid_outputs_raise_with_both_snippets():
    attempt = ScriptedAttempt(
        model_output_invalid("first bad", {"raw_output": "x" * 50}),
        model_output_invalid("second bad", {"raw_output": "retry text"}),
    )
    with pytest.raises(AppError) as excinfo:
        _run(attempt, snippet_chars=10)

    error = excinfo.value
    assert error.kind is ErrorKind.MODEL_OUTPUT_INVALID
    assert str(error) == "fake returned invalid structured output after retry"
    assert error.details["first_failure_reason"] == "first bad"
    assert error.details["reason"] == "second bad"
    assert error.details["first_output_snippet"] == "x" * 10
    assert error.details["retry_output_snippet"] == "retry text"
    assert len(attempt.calls) == 2


def test_timeout_is_terminal_and_not_retried():
    timeout = model_timeout("fake timed out after 50ms")
    attempt = ScriptedAttempt(timeout, Verdict(decision="go", confidence=0.5))
    with pytest.raises(AppError) as excinfo:
        _run(attempt)
    assert excinfo.value is timeout
    assert len(attempt.calls) == 1


def test_transport_failure_becomes_provider_unavailable():
    original = RuntimeError("connection refused by host")
    attempt = ScriptedAttempt(original)
    with pytest.raises(AppError) as excinfo:
        _run(attempt)
    assert excinfo.value.kind is ErrorKind.PROVIDER_UNAVAILABLE
    assert excinfo.value.cause is original
    assert len(attempt.calls) == 1


def test_transport_failure_on_retry_is_terminal():
    attempt = ScriptedAttempt(model_output_invalid("bad"), RuntimeError("Error code: 429"))
    with pytest.raises(AppError) as excinfo:
        _run(attempt)
    assert excinfo.value.kind is ErrorKind.PROVIDER_UNAVAILABLE
    assert len(attempt.calls) == 2


def test_classify_provider_failure():
    assert classify_provider_failure(JsonRecoveryError("x"), "p", "m", PATTERN) is None
    assert classify_provider_failure(model_output_invalid("x"), "p", "m", PATTERN) is None
    assert classify_provider_failure(RuntimeError("something odd"), "p", "m", PATTERN) is None

    class ConnectTimeout(Exception):
        pass

    classified = classify_provider_failure(ConnectTimeout(""), "p", "m", PATTERN)
    assert classified is not None and classified.kind is ErrorKind.PROVIDER_UNAVAILABLE


def test_classify_ignores_schema_errors():
    with pytest.raises(ValidationError) as excinfo:
        Verdict.model_validate({"decision": "go"})
    assert classify_provider_failure(excinfo.value, "p", "m", PATTERN) is None


def test_validate_text_output_recovers_and_validates():
    value = validate_text_output('```json\n{"decision": "go", "confidence": 0.7}\n```', Verdict, "p", "m")
    assert value == Verdict(decision="go", confidence=0.7)


def test_validate_text_output_keeps_raw_output_on_failure():
    with pytest.raises(AppError) as excinfo:
        validate_text_output('{"decision": "go"}', Verdict, "p", "m")
    assert excinfo.value.kind is ErrorKind.MODEL_OUTPUT_INVALID
    assert excinfo.value.details["raw_output"] == '{"decision": "go"}'

    with pytest.raises(AppError, match="p returned empty output"):
        validate_text_output("  ", Verdict, "p", "m")


def test_retry_messages_are_strict_and_carry_reason():
    messages = build_messages(_request(), RETRY, "Unable to parse JSON", include_schema=True)
    system, user = messages[0][1], messages[1][1]
    assert system.startswith(STRICT_SYSTEM_PROMPT)
    assert '"confidence"' in system
    assert "Failure reason: Unable to parse JSON" in user
    assert messages[0][0] == "system" and messages[1][0] == "human"


def test_primary_messages_keep_caller_prompt():
    messages = build_messages(_request(), PRIMARY, None, include_schema=False)
    assert messages[0][1].startswith("You analyze decisions.")
    assert "JSON Schema" not in messages[0][1]


def test_message_text_flattens_content_blocks():
    class Message:
        content = [{"type": "text", "text": '{"a": '}, "1}", {"type": "tool_use"}]

    assert message_text(Message()) == '{"a": 1}'
    assert message_text("plain") == "plain"
