# CUI // SP-CTI
"""AI-assisted dependency discovery.

Collects configuration-looking files from the project tree, asks an AI
backend to list the network endpoints they mention, and merges the answers
into the scan as Medium-confidence facts tagged ``[AI]``. Facts whose
canonical key the rule-based extractors already produced are dropped.

Providers:
    local  Ollama + NuExtract, one request per file, fully offline
    cloud  Gemini, all files batched in one request (secrets redacted first)
    auto   local if reachable, else cloud if GEMINI_API_KEY is set
"""

import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set

from segspec.config import DEFAULT_CONFIG
from segspec.llm.providers import AIProvider, GeminiProvider, OllamaProvider
from segspec.model.dependency import Confidence, NetworkDependency
from segspec.resilience.errors import AIUnavailableError
from segspec.walker.walker import DEFAULT_SKIP_DIRS, iter_files

logger = logging.getLogger("segspec.llm.analyzer")

AI_PREFIX = "[AI] "
AI_SOURCE_FILE = "ai-analysis"

CONFIG_EXTENSIONS = frozenset({
    ".yml", ".yaml", ".properties", ".env", ".xml", ".json",
    ".toml", ".ini", ".cfg", ".conf", ".gradle",
})
CONFIG_FILENAMES = frozenset({"Dockerfile", "docker-compose.yml", "docker-compose.yaml", "Makefile"})

BINARY_SNIFF_BYTES = 512

NUEXTRACT_TEMPLATE = (
    "<|input|>\n"
    "Extract all network dependencies (hosts, ports, service connections) "
    "from this configuration file:\n"
    "\n"
    "{content}\n"
    "<|output|>\n"
    '[{{"host": "", "port": 0, "protocol": "", "service_type": "", "description": ""}}]'
)

GEMINI_PREAMBLE = (
    "Extract all network dependencies from these configuration files.\n"
    "For each dependency, return a JSON object with: host, port (integer), "
    "protocol (TCP/UDP), service_type, description.\n"
    "Return ONLY a JSON array. No explanation, no markdown fences.\n"
    "\n"
)

CLOUD_NOTICE = ("Note: config files will be sent to Google Gemini API. "
                "Use --ai local for fully offline analysis.")

NO_BACKEND_MESSAGE = (
    "no AI backend available - choose one:\n\n"
    "  Local (offline, private):  ollama pull nuextract && segspec analyze --ai local <path>\n"
    "  Cloud (zero install):      export GEMINI_API_KEY=... && segspec analyze --ai cloud <path>\n\n"
    "  Get a free Gemini key at:  https://aistudio.google.com/apikey"
)

# ---------------------------------------------------------------------------
# Secret redaction
# ---------------------------------------------------------------------------

_SECRET_KEY_RE = re.compile(
    r"(?i)((?:password|passwd|secret|token|api_key|apikey|"
    r"AWS_SECRET_ACCESS_KEY|AWS_SESSION_TOKEN))([=: ]+)(.+)"
)
_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+){1,2}")
_KEY_PREFIX_RE = re.compile(
    r"\b(sk-[A-Za-z0-9]{10,}|AKIA[A-Z0-9]{12,}|ghp_[A-Za-z0-9]{20,}|gho_[A-Za-z0-9]{20,})"
)


def redact_secrets(content: str) -> str:
    """Replace likely secret values with ``[REDACTED]``, keeping the keys."""
    content = _SECRET_KEY_RE.sub(r"\1\2[REDACTED]", content)
    content = _JWT_RE.sub("[REDACTED]", content)
    return _KEY_PREFIX_RE.sub("[REDACTED]", content)


# ---------------------------------------------------------------------------
# File collection
# ---------------------------------------------------------------------------

@dataclass
class FileEntry:
    path: str
    content: str


def is_config_file(name: str) -> bool:
    return name in CONFIG_FILENAMES or os.path.splitext(name)[1] in CONFIG_EXTENSIONS


def is_binary(data: bytes) -> bool:
    """A null byte in the first 512 bytes marks the file as binary."""
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def collect_files(root, skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
                  max_file_bytes: int = 100 * 1024,
                  max_content_bytes: int = 50 * 1024) -> List[FileEntry]:
    """Gather config file contents under ``root`` within the size caps.

    Files over ``max_file_bytes`` are skipped; the last file admitted is
    truncated so the UTF-8 total never exceeds ``max_content_bytes``.
    """
    root_path = Path(root)
    files: List[FileEntry] = []
    total = 0

    for path in iter_files(root_path, skip_dirs):
        if total >= max_content_bytes:
            break
        if not is_config_file(path.name):
            continue
        try:
            if path.stat().st_size > max_file_bytes:
                continue
            data = path.read_bytes()
        except OSError as exc:
            logger.debug("Skipping %s: %s", path, exc)
            continue
        if is_binary(data):
            continue

        encoded = data.decode("utf-8", errors="replace").encode("utf-8")
        remaining = max_content_bytes - total
        if len(encoded) > remaining:
            # cut on a character boundary
            encoded = encoded[:remaining].decode("utf-8", errors="ignore").encode("utf-8")
        files.append(FileEntry(path.relative_to(root_path).as_posix(), encoded.decode("utf-8")))
        total += len(encoded)

    return files


# ---------------------------------------------------------------------------
# Prompts and responses
# ---------------------------------------------------------------------------

def build_nuextract_prompt(entry: FileEntry) -> str:
    return NUEXTRACT_TEMPLATE.format(content=entry.content)


def build_gemini_prompt(files: List[FileEntry]) -> str:
    parts = [GEMINI_PREAMBLE]
    for entry in files:
        parts.append(f"--- file: {entry.path} ---\n{redact_secrets(entry.content)}\n\n")
    return "".join(parts)


def _strip_fences(text: str) -> str:
    text = text.strip()
    for prefix in ("```json", "```"):
        if text.startswith(prefix):
            text = text[len(prefix):]
            break
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _as_port(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_response(text: str, service_name: str) -> List[NetworkDependency]:
    """Decode the model's JSON array into facts attributed to ``service_name``.

    Raises:
        AIUnavailableError: the response is not a JSON array.
    """
    cleaned = _strip_fences(text)
    try:
        items = json.loads(cleaned)
    except ValueError as exc:
        raise AIUnavailableError(
            f"parsing AI JSON response: {exc} (response was: {cleaned[:200]})"
        ) from exc
    if not isinstance(items, list):
        raise AIUnavailableError(f"AI response is not a JSON array: {cleaned[:200]}")

    deps = []
    for item in items:
        if not isinstance(item, dict):
            continue
        host = str(item.get("host") or "").strip()
        if not host:
            continue
        description = str(item.get("description") or item.get("service_type") or "")
        if not description.startswith(AI_PREFIX):
            description = AI_PREFIX + description
        deps.append(NetworkDependency(
            source=service_name,
            target=host,
            port=_as_port(item.get("port")),
            protocol=str(item.get("protocol") or "TCP"),
            description=description,
            confidence=Confidence.MEDIUM,
            source_file=AI_SOURCE_FILE,
        ))
    return deps


def merge_ai_dependencies(existing_keys: Set[str],
                          facts: Iterable[NetworkDependency]) -> List[NetworkDependency]:
    """Keep AI facts whose canonical key is new, normalized for display.

    ``existing_keys`` is updated in place so repeated calls (one per file in
    local mode) also drop duplicates among AI answers.
    """
    merged = []
    for fact in facts:
        description = fact.description
        if not description.startswith(AI_PREFIX):
            description = AI_PREFIX + description
        normalized = NetworkDependency(
            source=fact.source,
            target=fact.target,
            port=fact.port,
            protocol=fact.protocol,
            description=description,
            confidence=Confidence.MEDIUM,
            source_file=AI_SOURCE_FILE,
        )
        key = normalized.key()
        if key in existing_keys:
            continue
        existing_keys.add(key)
        merged.append(normalized)
    return merged


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------

def _ai_config(config: Optional[dict]) -> dict:
    return (config or DEFAULT_CONFIG).get("ai", DEFAULT_CONFIG["ai"])


def build_ollama(config: Optional[dict] = None) -> OllamaProvider:
    ai_cfg = _ai_config(config)
    ollama_cfg = ai_cfg.get("ollama", {})
    return OllamaProvider(
        base_url=ollama_cfg.get("base_url", "http://localhost:11434"),
        model=ollama_cfg.get("model", "nuextract"),
        timeout=ai_cfg.get("http_timeout_seconds", 30),
        max_retries=ai_cfg.get("max_retries", 1),
    )


def build_gemini(api_key: str, config: Optional[dict] = None) -> GeminiProvider:
    ai_cfg = _ai_config(config)
    gemini_cfg = ai_cfg.get("gemini", {})
    return GeminiProvider(
        api_key=api_key,
        model=gemini_cfg.get("model", "gemini-2.0-flash"),
        base_url=gemini_cfg.get("base_url", "https://generativelanguage.googleapis.com/v1beta/models"),
        timeout=ai_cfg.get("http_timeout_seconds", 30),
        max_retries=ai_cfg.get("max_retries", 1),
    )


def resolve_provider(name: str = "auto", config: Optional[dict] = None) -> AIProvider:
    """Pick the AI backend for ``name`` ('auto', 'local' or 'cloud').

    Raises:
        AIUnavailableError: the requested backend is unreachable or unknown.
    """
    name = (name or "auto").strip().lower()
    api_key = os.environ.get("GEMINI_API_KEY", "")

    if name == "local":
        ollama = build_ollama(config)
        if not ollama.check_availability():
            raise AIUnavailableError(ollama.unavailable_message, provider="local")
        return ollama

    if name == "cloud":
        if not api_key:
            raise AIUnavailableError(
                "GEMINI_API_KEY not set - get a free key at https://aistudio.google.com/apikey",
                provider="cloud",
            )
        return build_gemini(api_key, config)

    if name == "auto":
        ollama = build_ollama(config)
        if ollama.check_availability():
            return ollama
        if api_key:
            return build_gemini(api_key, config)
        raise AIUnavailableError(NO_BACKEND_MESSAGE)

    raise AIUnavailableError(
        f"unknown AI provider {name!r} - use 'local', 'cloud', or omit for auto-detect"
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def analyze(root, existing: Iterable[NetworkDependency], provider: AIProvider,
            service_name: Optional[str] = None, config: Optional[dict] = None,
            notice_stream=None) -> List[NetworkDependency]:
    """Ask ``provider`` about the config files under ``root``.

    Returns only facts not already present in ``existing``. In local mode a
    failure on one file is logged and the remaining files are still tried;
    in cloud mode the single batched request must succeed.
    """
    ai_cfg = _ai_config(config)
    walker_cfg = (config or DEFAULT_CONFIG).get("walker", DEFAULT_CONFIG["walker"])
    files = collect_files(
        root,
        skip_dirs=walker_cfg.get("skip_dirs", DEFAULT_SKIP_DIRS),
        max_file_bytes=ai_cfg.get("max_file_bytes", 100 * 1024),
        max_content_bytes=ai_cfg.get("max_content_bytes", 50 * 1024),
    )
    if not files:
        logger.info("No config files to send for AI analysis")
        return []

    service_name = service_name or Path(root).resolve().name
    existing_keys = {dep.key() for dep in existing}
    results: List[NetworkDependency] = []

    if isinstance(provider, GeminiProvider):
        print(CLOUD_NOTICE, file=notice_stream or sys.stderr)
        text = provider.generate(build_gemini_prompt(files))
        results.extend(merge_ai_dependencies(existing_keys, parse_response(text, service_name)))
        return results

    for entry in files:
        try:
            text = provider.generate(build_nuextract_prompt(entry))
            facts = parse_response(text, service_name)
        except AIUnavailableError as exc:
            logger.warning("AI analysis of %s failed: %s", entry.path, exc)
            continue
        results.extend(merge_ai_dependencies(existing_keys, facts))

    logger.info("AI analysis added %d dependencies from %d files", len(results), len(files))
    return results

