"""
Hosted provider adapter (Anthropic).

Uses the chat model's native structured-output mode. When the native parse
comes back empty, the raw tool arguments or text go through JSON recovery
and schema validation instead.
"""

import json
import logging
from typing import Any, Callable, Optional, Type

from langchain_anthropic import ChatAnthropic
from pydantic import BaseModel

from config import CoreConfig
from errors import model_output_invalid, provider_unavailable
from llm_base import (
    RETRY,
    GenerationRequest,
    ProviderKind,
    build_messages,
    compile_pattern,
    compute_timeout_seconds,
    generate_with_single_retry,
    message_text,
    run_with_timeout,
    validate_text_output,
)

logger = logging.getLogger(__name__)

HOSTED_PROVIDER_ERROR_PATTERN = compile_pattern(
    r"auth|\b401\b|\b403\b|\b429\b|quota|rate.?limit|\brate\b|connect"
)

LLMFactory = Callable[[float, int], Any]


class AnthropicAdapter:
    """Structured generation against the hosted Anthropic API."""

    name = "anthropic"
    kind = ProviderKind.HOSTED

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        llm_factory: Optional[LLMFactory] = None,
        default_temperature: float = CoreConfig.DEFAULT_TEMPERATURE,
        default_max_tokens: int = CoreConfig.HOSTED_DEFAULT_MAX_TOKENS,
        snippet_chars: int = CoreConfig.OUTPUT_SNIPPET_CHARS,
    ):
        self.api_key = (CoreConfig.ANTHROPIC_API_KEY if api_key is None else api_key).strip()
        self.model = model or CoreConfig.ANTHROPIC_MODEL
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.snippet_chars = snippet_chars
        self._llm_factory = llm_factory or self._default_llm_factory

    def _default_llm_factory(self, temperature: float, max_tokens: int) -> ChatAnthropic:
        # max_retries=0: one attempt is exactly one provider invocation
        return ChatAnthropic(
            model=self.model,
            api_key=self.api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            max_retries=0,
        )

    def is_healthy(self) -> bool:
        return bool(self.api_key)

    def timeout_seconds(self, request: GenerationRequest, mode: str) -> float:
        if mode == RETRY:
            return CoreConfig.HOSTED_RETRY_TIMEOUT_SECONDS
        return compute_timeout_seconds(
            request.max_tokens,
            self.default_max_tokens,
            CoreConfig.HOSTED_SECONDS_PER_TOKEN,
            CoreConfig.HOSTED_TIMEOUT_MIN_SECONDS,
            CoreConfig.HOSTED_TIMEOUT_MAX_SECONDS,
        )

    def _attempt(self, request: GenerationRequest, mode: str, retry_reason: Optional[str]) -> BaseModel:
        if not self.api_key:
            raise provider_unavailable(
                "Anthropic API key is not configured.",
                {"provider": self.name, "model": self.model},
            )

        if mode == RETRY:
            temperature = 0.0
        elif request.temperature is not None:
            temperature = request.temperature
        else:
            temperature = self.default_temperature

        llm = self._llm_factory(temperature, request.max_tokens or self.default_max_tokens)
        structured = llm.with_structured_output(request.schema, include_raw=True)
        messages = build_messages(request, mode, retry_reason, include_schema=False)

        logger.debug(f"Anthropic {mode} attempt: model={self.model} temperature={temperature}")
        result = run_with_timeout(
            lambda: structured.invoke(messages),
            self.timeout_seconds(request, mode),
            f"Anthropic response ({self.model})",
        )
        return self._coerce_result(result, request.schema)

    def _coerce_result(self, result: Any, schema: Type[BaseModel]) -> BaseModel:
        if not isinstance(result, dict):
            result = {"parsed": result, "raw": None}

        parsed = result.get("parsed")
        if isinstance(parsed, schema):
            return parsed
        if parsed is not None:
            return validate_text_output(json.dumps(parsed, default=str), schema, self.name, self.model)

        raw = result.get("raw")
        tool_calls = getattr(raw, "tool_calls", None) or []
        if tool_calls:
            raw_text = json.dumps(tool_calls[0].get("args") or {}, default=str)
        else:
            raw_text = message_text(raw)

        if not raw_text.strip() or raw_text.strip() == "{}":
            raise model_output_invalid(
                "Anthropic returned empty structured output",
                {"provider": self.name, "model": self.model, "raw_output": raw_text},
            )
        return validate_text_output(raw_text, schema, self.name, self.model)

    def generate_json(self, request: GenerationRequest) -> BaseModel:
        return generate_with_single_retry(
            request,
            self._attempt,
            provider=self.name,
            model=self.model,
            provider_error_pattern=HOSTED_PROVIDER_ERROR_PATTERN,
            snippet_chars=self.snippet_chars,
        )
