# CUI // SP-CTI
"""Optional AI augmentation (local Ollama or cloud Gemini)."""

from segspec.llm.analyzer import (  # noqa: F401
    analyze,
    merge_ai_dependencies,
    parse_response,
    redact_secrets,
    resolve_provider,
)
from segspec.llm.providers import AIProvider, GeminiProvider, OllamaProvider  # noqa: F401
