"""
LLM adapter contract and the structured-generation protocol.

Both provider adapters expose the same capability surface (identity, health
probe, ``generate_json``) and delegate the primary/strict-retry sequence to
``generate_with_single_retry``. An adapter only supplies one ``attempt``
callable that performs a single provider invocation and returns a value
already validated against the request schema.
"""

from __future__ import annotations

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Pattern, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from errors import AppError, ErrorKind, model_output_invalid, model_timeout, provider_unavailable
from json_recovery import JsonRecoveryError, parse_json_from_text
from logging_utils import log_exception

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

PRIMARY = "primary"
RETRY = "retry"

STRICT_SYSTEM_PROMPT = "\n".join(
    [
        "You are a strict structured-output engine.",
        "Return valid JSON that exactly matches the schema.",
        "Do not include markdown, prose, or commentary.",
    ]
)


class ProviderKind(str, Enum):
    LOCAL = "local"
    HOSTED = "hosted"


@dataclass(frozen=True)
class GenerationRequest:
    """One structured generation call: prompts, expected shape and sampling knobs."""

    system_prompt: str
    user_prompt: str
    schema: Type[BaseModel]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    def __post_init__(self) -> None:
        if not (isinstance(self.schema, type) and issubclass(self.schema, BaseModel)):
            raise ValueError("GenerationRequest.schema must be a pydantic model class")

    def schema_json(self) -> str:
        return json.dumps(self.schema.model_json_schema(), ensure_ascii=False)


@runtime_checkable
class LLMAdapter(Protocol):
    """Capability contract shared by every provider adapter."""

    name: str
    model: str
    kind: ProviderKind

    def is_healthy(self) -> bool:
        ...

    def generate_json(self, request: GenerationRequest) -> BaseModel:
        ...


Attempt = Callable[[GenerationRequest, str, Optional[str]], BaseModel]


def compute_timeout_seconds(
    max_tokens: Optional[int],
    default_tokens: int,
    seconds_per_token: float,
    min_seconds: float,
    max_seconds: float,
) -> float:
    budget = max_tokens if max_tokens else default_tokens
    return max(min_seconds, min(max_seconds, round(budget * seconds_per_token, 3)))


def run_with_timeout(task: Callable[[], Any], timeout_seconds: float, context: str) -> Any:
    """Race ``task`` against a timer.

    On expiry the caller stops waiting and gets a ModelTimeout; the worker
    thread is abandoned, not cancelled.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="llm-call")
    future = executor.submit(task)
    try:
        return future.result(timeout=timeout_seconds)
    except FutureTimeoutError as exc:
        raise model_timeout(
            f"{context} timed out after {int(timeout_seconds * 1000)}ms",
            {"timeout_seconds": timeout_seconds},
            cause=exc,
        )
    finally:
        executor.shutdown(wait=False)


def snippet(text: Optional[str], limit: int = 800) -> str:
    return (text or "")[:limit]


def message_text(message: Any) -> str:
    """Flatten a chat message's content (string or content blocks) to text."""
    content = getattr(message, "content", message)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)
    return str(content)


def validate_text_output(raw_text: str, schema: Type[T], provider: str, model: str) -> T:
    """Run free text through JSON recovery, then validate it against ``schema``."""
    details = {"provider": provider, "model": model, "raw_output": raw_text}
    if not raw_text or not raw_text.strip():
        raise model_output_invalid(f"{provider} returned empty output", details)
    try:
        value = parse_json_from_text(raw_text)
        return schema.model_validate(value)
    except (JsonRecoveryError, ValidationError) as exc:
        raise model_output_invalid(str(exc), details, cause=exc)


def build_messages(request: GenerationRequest, mode: str, retry_reason: Optional[str], include_schema: bool):
    """System/user message pair for a primary or strict retry attempt."""
    schema_lines = ["Follow this JSON Schema exactly:", request.schema_json()] if include_schema else []
    if mode == RETRY:
        system = "\n\n".join([STRICT_SYSTEM_PROMPT, *schema_lines])
        user_parts = [
            request.user_prompt,
            "Previous output failed structured parsing.",
            f"Failure reason: {retry_reason}" if retry_reason else "",
            "Retry now and return only valid JSON matching the schema.",
        ]
    else:
        system = "\n\n".join(
            [
                request.system_prompt,
                "Return ONLY valid JSON. Do not include markdown, prose, or code fences.",
                *schema_lines,
            ]
        )
        user_parts = [request.user_prompt, "Return strict JSON that validates against the schema."]
    user = "\n\n".join(part for part in user_parts if part)
    return [("system", system), ("human", user)]


def classify_provider_failure(
    exc: BaseException,
    provider: str,
    model: str,
    provider_error_pattern: Pattern[str],
) -> Optional[AppError]:
    """Return a terminal error for provider-level and timeout failures, else None."""
    if isinstance(exc, AppError):
        if exc.kind in (ErrorKind.PROVIDER_UNAVAILABLE, ErrorKind.MODEL_TIMEOUT):
            return exc
        return None
    if isinstance(exc, (JsonRecoveryError, ValidationError)):
        return None
    if provider_error_pattern.search(str(exc)) or provider_error_pattern.search(type(exc).__name__):
        return provider_unavailable(
            f"{provider} request failed at the provider/transport layer.",
            {"provider": provider, "model": model, "reason": str(exc)},
            cause=exc,
        )
    return None


def _raw_output(exc: BaseException) -> str:
    if isinstance(exc, AppError):
        return str(exc.details.get("raw_output") or "")
    return ""


def generate_with_single_retry(
    request: GenerationRequest,
    attempt: Attempt,
    *,
    provider: str,
    model: str,
    provider_error_pattern: Pattern[str],
    snippet_chars: int = 800,
) -> BaseModel:
    """Primary attempt plus at most one strict retry.

    Provider-level failures and timeouts are terminal and never retried. Only
    output failures (unparseable, empty, schema mismatch) spend the retry.
    """
    try:
        return attempt(request, PRIMARY, None)
    except Exception as primary_error:
        terminal = classify_provider_failure(primary_error, provider, model, provider_error_pattern)
        if terminal is not None:
            log_exception(logger, terminal, context=f"{provider} primary attempt", model=model)
            if terminal is primary_error:
                raise
            raise terminal from primary_error
        first_reason = str(primary_error) or type(primary_error).__name__
        first_output = _raw_output(primary_error)
        logger.warning(f"{provider} ({model}) primary output rejected, retrying strictly: {first_reason[:200]}")

    try:
        return attempt(request, RETRY, first_reason)
    except Exception as retry_error:
        terminal = classify_provider_failure(retry_error, provider, model, provider_error_pattern)
        if terminal is not None:
            log_exception(logger, terminal, context=f"{provider} retry attempt", model=model)
            if terminal is retry_error:
                raise
            raise terminal from retry_error
        details: Dict[str, Any] = {
            "provider": provider,
            "model": model,
            "reason": str(retry_error) or type(retry_error).__name__,
            "first_failure_reason": first_reason,
            "first_output_snippet": snippet(first_output, snippet_chars),
            "retry_output_snippet": snippet(_raw_output(retry_error), snippet_chars),
        }
        error = model_output_invalid(
            f"{provider} returned invalid structured output after retry", details, cause=retry_error
        )
        log_exception(logger, error, context=f"{provider} retry attempt")
        raise error from retry_error


def compile_pattern(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


__all__ = [
    "Attempt",
    "GenerationRequest",
    "LLMAdapter",
    "PRIMARY",
    "ProviderKind",
    "RETRY",
    "build_messages",
    "classify_provider_failure",
    "compile_pattern",
    "compute_timeout_seconds",
    "generate_with_single_retry",
    "message_text",
    "run_with_timeout",
    "snippet",
    "validate_text_output",
]
