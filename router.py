"""
Router: Explicit provider routing for local vs hosted vs auto

Provides deterministic, testable provider selection. Health is probed fresh
on every resolution so a recovering or degrading provider is picked up on
the next call.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from config import CoreConfig
from errors import provider_unavailable
from llm_base import LLMAdapter, ProviderKind

logger = logging.getLogger(__name__)

PREFERENCES = ("local", "hosted", "auto")
AUTO_PRIORITIES = ("local_first", "hosted_first")


@dataclass(frozen=True)
class ResolvedLLM:
    """Adapter chosen for one call"""
    provider: ProviderKind
    adapter: LLMAdapter
    model: str


class ProviderRouter:
    """Chooses a healthy adapter for a provider preference."""

    def __init__(self, local: LLMAdapter, hosted: LLMAdapter, auto_priority: str = "local_first"):
        if auto_priority not in AUTO_PRIORITIES:
            raise ValueError(f"auto_priority must be one of {AUTO_PRIORITIES} (got {auto_priority!r})")
        self.local = local
        self.hosted = hosted
        self.auto_priority = auto_priority

    def adapter_for(self, provider: ProviderKind) -> ResolvedLLM:
        """Adapter for an already resolved provider, without probing."""
        adapter = self.local if ProviderKind(provider) == ProviderKind.LOCAL else self.hosted
        return ResolvedLLM(provider=ProviderKind(provider), adapter=adapter, model=adapter.model)

    def _probe(self, provider: ProviderKind) -> Optional[ResolvedLLM]:
        resolved = self.adapter_for(provider)
        try:
            healthy = bool(resolved.adapter.is_healthy())
        except Exception as e:
            logger.warning(f"Health probe for {resolved.adapter.name} raised: {e}")
            healthy = False
        logger.debug(f"Health probe {resolved.adapter.name} ({resolved.model}): {'healthy' if healthy else 'unhealthy'}")
        return resolved if healthy else None

    def _auto_order(self) -> List[ProviderKind]:
        if self.auto_priority == "hosted_first":
            return [ProviderKind.HOSTED, ProviderKind.LOCAL]
        return [ProviderKind.LOCAL, ProviderKind.HOSTED]

    def resolve(self, preference: str) -> ResolvedLLM:
        """
        Resolve a provider preference to a healthy adapter.

        Args:
            preference: "local", "hosted" or "auto"

        Returns:
            ResolvedLLM for the selected provider

        Raises:
            AppError(PROVIDER_UNAVAILABLE) when no acceptable provider is healthy
        """
        if preference not in PREFERENCES:
            raise ValueError(f"preference must be one of {PREFERENCES} (got {preference!r})")

        if preference == "local":
            resolved = self._probe(ProviderKind.LOCAL)
            if resolved is None:
                raise provider_unavailable(
                    "Local provider requested, but Ollama is unavailable. Start Ollama and pull the configured model.",
                    {"preference": "local", "provider": self.local.name, "model": self.local.model},
                )
            return resolved

        if preference == "hosted":
            resolved = self._probe(ProviderKind.HOSTED)
            if resolved is None:
                raise provider_unavailable(
                    "Hosted provider requested, but Anthropic is unavailable. Check API key and model configuration.",
                    {"preference": "hosted", "provider": self.hosted.name, "model": self.hosted.model},
                )
            return resolved

        tried: List[Tuple[str, str]] = []
        for provider in self._auto_order():
            resolved = self._probe(provider)
            if resolved is not None:
                logger.info(f"Auto routing selected {resolved.adapter.name} ({resolved.model})")
                return resolved
            adapter = self.adapter_for(provider).adapter
            tried.append((adapter.name, adapter.model))

        raise provider_unavailable(
            "No healthy LLM provider available. Configure ANTHROPIC_API_KEY or run Ollama locally.",
            {
                "preference": preference,
                "auto_priority": self.auto_priority,
                "unavailable": [name for name, _ in tried],
                "models": dict(tried),
            },
        )


def build_default_router(
    config: type = CoreConfig,
    local_factory: Optional[Callable[[], LLMAdapter]] = None,
    hosted_factory: Optional[Callable[[], LLMAdapter]] = None,
) -> ProviderRouter:
    """Construct a router from configuration. Each call builds fresh adapters."""
    from anthropic_adapter import AnthropicAdapter
    from ollama_adapter import OllamaAdapter

    local = local_factory() if local_factory else OllamaAdapter(
        base_url=config.OLLAMA_BASE_URL, model=config.OLLAMA_MODEL
    )
    hosted = hosted_factory() if hosted_factory else AnthropicAdapter(
        api_key=config.ANTHROPIC_API_KEY, model=config.ANTHROPIC_MODEL
    )
    return ProviderRouter(local=local, hosted=hosted, auto_priority=config.LLM_AUTO_PRIORITY)
