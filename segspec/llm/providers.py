# CUI // SP-CTI
"""AI backends for dependency extraction.

Both providers talk plain REST through ``requests``:

- ``OllamaProvider``: local Ollama server, ``/api/tags`` for the availability
  check and ``/api/generate`` (non-streaming) with the NuExtract model.
- ``GeminiProvider``: Google Gemini ``generateContent`` with the key passed
  in the ``x-goog-api-key`` header.

Every failure is raised as ``AIUnavailableError``; connection errors,
timeouts and overload statuses are flagged retryable and retried with
backoff.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import requests

from segspec.resilience.errors import AIUnavailableError
from segspec.resilience.retry import RetryPolicy, call_with_retry

logger = logging.getLogger("segspec.llm.providers")

TRANSIENT_HTTP_ERRORS = (requests.ConnectionError, requests.Timeout)
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})
OLLAMA_SETUP_HINT = "install from https://ollama.com and run: ollama pull {model}"


class AIProvider(ABC):
    """One AI backend that turns a prompt into response text."""

    def __init__(self, timeout: float = 30, max_retries: int = 1):
        self._timeout = timeout
        self._retry_policy = RetryPolicy(max_retries=max_retries)

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short identifier: 'local' or 'cloud'."""

    @abstractmethod
    def check_availability(self) -> bool:
        """True if the backend can accept requests right now."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send ``prompt`` and return the model's text output."""

    def _post_json(self, url: str, payload: Dict[str, Any],
                   headers: Dict[str, str] = None) -> Dict[str, Any]:
        """POST JSON and return the decoded body.

        Connection errors, timeouts and HTTP 429/502/503/504 are retried
        under the provider's policy; other failures raise at once.
        """

        def _send() -> requests.Response:
            try:
                resp = requests.post(url, json=payload, headers=headers, timeout=self._timeout)
            except requests.RequestException as exc:
                raise AIUnavailableError(
                    f"{self.provider_name} request failed: {exc}",
                    provider=self.provider_name,
                    retryable=isinstance(exc, TRANSIENT_HTTP_ERRORS),
                ) from exc
            if resp.status_code != 200:
                raise AIUnavailableError(
                    f"{self.provider_name} returned HTTP {resp.status_code}: {resp.text[:200]}",
                    provider=self.provider_name,
                    retryable=resp.status_code in RETRYABLE_STATUS_CODES,
                )
            return resp

        resp = call_with_retry(_send, self._retry_policy, f"{self.provider_name} POST {url}")
        try:
            return resp.json()
        except ValueError as exc:
            raise AIUnavailableError(
                f"{self.provider_name} returned invalid JSON: {exc}",
                provider=self.provider_name,
            ) from exc


# ---------------------------------------------------------------------------
# Ollama (local)
# ---------------------------------------------------------------------------

class OllamaProvider(AIProvider):
    """Local Ollama server running the NuExtract model."""

    def __init__(self, base_url: str = "http://localhost:11434", model: str = "nuextract",
                 timeout: float = 30, max_retries: int = 1):
        super().__init__(timeout=timeout, max_retries=max_retries)
        self._base_url = base_url.rstrip("/")
        self._model = model

    @property
    def provider_name(self) -> str:
        return "local"

    @property
    def unavailable_message(self) -> str:
        return f"Ollama not reachable at {self._base_url} - " + OLLAMA_SETUP_HINT.format(model=self._model)

    def check_availability(self) -> bool:
        """GET /api/tags and look for the model, with or without a tag suffix."""
        try:
            resp = requests.get(f"{self._base_url}/api/tags", timeout=self._timeout)
            if resp.status_code != 200:
                return False
            models = resp.json().get("models", [])
        except (requests.RequestException, ValueError) as exc:
            logger.debug("Ollama availability check failed: %s", exc)
            return False

        for entry in models:
            name = entry.get("name", "") if isinstance(entry, dict) else ""
            if name == self._model or name.startswith(self._model + ":"):
                return True
        return False

    def generate(self, prompt: str) -> str:
        data = self._post_json(
            f"{self._base_url}/api/generate",
            {"model": self._model, "prompt": prompt, "stream": False},
        )
        text = data.get("response", "") if isinstance(data, dict) else ""
        if not text:
            raise AIUnavailableError("empty response from Ollama", provider=self.provider_name)
        return text


# ---------------------------------------------------------------------------
# Gemini (cloud)
# ---------------------------------------------------------------------------

class GeminiProvider(AIProvider):
    """Google Gemini via the public generateContent REST endpoint."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash",
                 base_url: str = "https://generativelanguage.googleapis.com/v1beta/models",
                 timeout: float = 30, max_retries: int = 1):
        super().__init__(timeout=timeout, max_retries=max_retries)
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")

    @property
    def provider_name(self) -> str:
        return "cloud"

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/{self._model}:generateContent"

    def check_availability(self) -> bool:
        return bool(self._api_key)

    def generate(self, prompt: str) -> str:
        data = self._post_json(
            self.endpoint,
            {"contents": [{"parts": [{"text": prompt}]}]},
            headers={"x-goog-api-key": self._api_key},
        )
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AIUnavailableError("empty response from Gemini", provider=self.provider_name) from exc
