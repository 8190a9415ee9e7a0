"""
Local provider adapter (Ollama).

Talks to Ollama through its OpenAI-compatible ``/v1`` endpoint in JSON mode
and always runs the returned text through JSON recovery before schema
validation. Health is probed against the native ``/api/tags`` listing.
"""

import logging
from typing import Any, Callable, Optional

import requests
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from config import CoreConfig
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

LOCAL_PROVIDER_ERROR_PATTERN = compile_pattern(r"connect|ECONN|socket|refused|unreachable|\b404\b|not found")

LLMFactory = Callable[[float, Optional[int]], Any]


class OllamaAdapter:
    """Structured generation against a locally hosted Ollama server."""

    name = "ollama"
    kind = ProviderKind.LOCAL

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        llm_factory: Optional[LLMFactory] = None,
        http_get: Optional[Callable[..., Any]] = None,
        default_temperature: float = CoreConfig.DEFAULT_TEMPERATURE,
        default_max_tokens: int = CoreConfig.LOCAL_DEFAULT_MAX_TOKENS,
        health_timeout: float = CoreConfig.LOCAL_HEALTH_TIMEOUT_SECONDS,
        snippet_chars: int = CoreConfig.OUTPUT_SNIPPET_CHARS,
    ):
        self.base_url = (base_url or CoreConfig.OLLAMA_BASE_URL).rstrip("/")
        self.model = model or CoreConfig.OLLAMA_MODEL
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.health_timeout = health_timeout
        self.snippet_chars = snippet_chars
        self._llm_factory = llm_factory or self._default_llm_factory
        self._http_get = http_get or requests.get

    def _default_llm_factory(self, temperature: float, max_tokens: Optional[int]) -> ChatOpenAI:
        llm_params = {
            "api_key": "ollama",
            "base_url": f"{self.base_url}/v1",
            "model": self.model,
            "temperature": temperature,
            "response_format": {"type": "json_object"},
            # one attempt is exactly one provider invocation
            "max_retries": 0,
        }
        if max_tokens:
            llm_params["max_tokens"] = max_tokens
        return ChatOpenAI(**llm_params)

    def is_healthy(self) -> bool:
        url = f"{self.base_url}/api/tags"
        try:
            response = run_with_timeout(
                lambda: self._http_get(url, timeout=self.health_timeout),
                self.health_timeout,
                "Ollama health check",
            )
            response.raise_for_status()
            models = (response.json() or {}).get("models") or []
            return len(models) > 0
        except Exception as exc:
            logger.debug(f"Ollama health probe failed at {url}: {exc}")
            return False

    def timeout_seconds(self, request: GenerationRequest) -> float:
        return compute_timeout_seconds(
            request.max_tokens,
            self.default_max_tokens,
            CoreConfig.LOCAL_SECONDS_PER_TOKEN,
            CoreConfig.LOCAL_TIMEOUT_MIN_SECONDS,
            CoreConfig.LOCAL_TIMEOUT_MAX_SECONDS,
        )

    def _attempt(self, request: GenerationRequest, mode: str, retry_reason: Optional[str]) -> BaseModel:
        if mode == RETRY:
            temperature = 0.0
        elif request.temperature is not None:
            temperature = request.temperature
        else:
            temperature = self.default_temperature

        llm = self._llm_factory(temperature, request.max_tokens)
        messages = build_messages(request, mode, retry_reason, include_schema=True)

        logger.debug(f"Ollama {mode} attempt: model={self.model} temperature={temperature}")
        response = run_with_timeout(
            lambda: llm.invoke(messages),
            self.timeout_seconds(request),
            f"Ollama response ({self.model})",
        )
        return validate_text_output(message_text(response), request.schema, self.name, self.model)

    def generate_json(self, request: GenerationRequest) -> BaseModel:
        return generate_with_single_retry(
            request,
            self._attempt,
            provider=self.name,
            model=self.model,
            provider_error_pattern=LOCAL_PROVIDER_ERROR_PATTERN,
            snippet_chars=self.snippet_chars,
        )
