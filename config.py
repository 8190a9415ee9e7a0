"""
Core Configuration

Provider endpoints, credentials and generation windows for the structured
generation core. Values are read once from the environment; adapters receive
them as plain constructor arguments so tests never depend on this module.
"""

import os

try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass


class CoreConfig:
    """Provider and generation settings used across the runtime."""

    # Hosted provider (Anthropic)
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5")

    # Local provider (Ollama)
    OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/")
    OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")

    # Auto routing order: "local_first" or "hosted_first"
    LLM_AUTO_PRIORITY = os.getenv("LLM_AUTO_PRIORITY", "local_first")

    DEFAULT_TEMPERATURE = float(os.getenv("LLM_DEFAULT_TEMPERATURE", "0.2"))

    # Timeout windows in seconds; the per-call timeout scales with the token budget
    HOSTED_DEFAULT_MAX_TOKENS = int(os.getenv("ANTHROPIC_DEFAULT_MAX_TOKENS", "1200"))
    HOSTED_TIMEOUT_MIN_SECONDS = float(os.getenv("ANTHROPIC_TIMEOUT_MIN", "40"))
    HOSTED_TIMEOUT_MAX_SECONDS = float(os.getenv("ANTHROPIC_TIMEOUT_MAX", "90"))
    HOSTED_SECONDS_PER_TOKEN = 0.05
    HOSTED_RETRY_TIMEOUT_SECONDS = float(os.getenv("ANTHROPIC_RETRY_TIMEOUT", "45"))

    LOCAL_DEFAULT_MAX_TOKENS = int(os.getenv("OLLAMA_DEFAULT_MAX_TOKENS", "1000"))
    LOCAL_TIMEOUT_MIN_SECONDS = float(os.getenv("OLLAMA_TIMEOUT_MIN", "30"))
    LOCAL_TIMEOUT_MAX_SECONDS = float(os.getenv("OLLAMA_TIMEOUT_MAX", "90"))
    LOCAL_SECONDS_PER_TOKEN = 0.045
    LOCAL_HEALTH_TIMEOUT_SECONDS = float(os.getenv("OLLAMA_HEALTH_TIMEOUT", "3.5"))

    # Raw model output kept on ModelOutputInvalid errors
    OUTPUT_SNIPPET_CHARS = int(os.getenv("LLM_OUTPUT_SNIPPET_CHARS", "800"))

    # Visualization contracts
    VIZ_SCHEMA_VERSION = 2
    RUBRIC_PASS_THRESHOLD = 0.85

    LOG_DIR = os.getenv("CORE_LOG_DIR", "logs")
