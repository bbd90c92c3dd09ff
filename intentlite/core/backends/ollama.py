"""Ollama-backed intent extractor for intentlite.

Asks a model served by Ollama to classify the utterance against the
active domain configuration and return JSON. Prompting and reply
validation live in ``prompt.py`` and are shared with the OpenAI extractor.

Ollama API documentation: https://github.com/ollama/ollama/blob/main/docs/api.md
"""

from __future__ import annotations

import json
import logging

import httpx

from ..intent import ExtractionResult, IntentEngine
from . import ExtractorError, ExtractorUnavailableError
from .base import IntentExtractor
from .prompt import build_prompt, parse_model_reply, reply_to_result

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2:latest"


class OllamaExtractor(IntentExtractor):
    """Intent extraction through an Ollama model.

    Example:
        extractor = OllamaExtractor(IntentEngine(), model="llama3.2:latest")
        result = await extractor.extract_intent("add contact Alice")
        await extractor.close()

    Attributes:
        engine: Rule engine whose configuration defines tasks and variables
        model: Ollama model name
        _endpoint: Ollama API base URL
        _client: httpx.AsyncClient, created on first use
    """

    def __init__(
        self,
        engine: IntentEngine | None = None,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        temperature: float = 0.1,
        max_tokens: int = 256,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the extractor.

        Args:
            engine: Engine providing the domain configuration
                (built-in default when None)
            model: Model name in Ollama
            endpoint: Ollama API base URL
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (num_predict)
            timeout: HTTP timeout in seconds
        """
        self.engine = engine if engine is not None else IntentEngine()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._endpoint = endpoint.rstrip("/")
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "ollama"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def is_available(self) -> bool:
        """Check if Ollama responds on /api/tags (2 second timeout)."""
        try:
            async with httpx.AsyncClient(timeout=2.0) as client:
                response = await client.get(f"{self._endpoint}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def extract_intent(self, text: str) -> ExtractionResult:
        """Extract the intent by prompting the model.

        Raises:
            ExtractorUnavailableError: If Ollama cannot be reached
            ExtractorError: On an error status or an unparsable reply
        """
        if not text or not text.strip():
            return ExtractionResult.unknown(source=self.name)

        config = self.engine.config
        payload = {
            "model": self.model,
            "prompt": build_prompt(text, config),
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }

        client = self._get_client()
        try:
            response = await client.post(f"{self._endpoint}/api/generate", json=payload)
        except httpx.ConnectError as e:
            raise ExtractorUnavailableError(
                f"Cannot connect to Ollama at {self._endpoint}. "
                "Is Ollama running? Try: ollama serve"
            ) from e
        except httpx.TimeoutException as e:
            raise ExtractorUnavailableError(
                f"Timeout waiting for Ollama at {self._endpoint}"
            ) from e

        if response.status_code != 200:
            error_msg = f"Ollama API error (status {response.status_code})"
            try:
                data = response.json()
                if "error" in data:
                    error_msg = f"Ollama error: {data['error']}"
            except (json.JSONDecodeError, KeyError, TypeError):
                pass
            raise ExtractorError(error_msg)

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise ExtractorError(f"Failed to decode Ollama response: {e}") from e
        if not isinstance(body, dict):
            raise ExtractorError(f"Unexpected Ollama response: {type(body).__name__}")

        reply = parse_model_reply(str(body.get("response", "")))
        return reply_to_result(reply, config, self.name)

    async def close(self) -> None:
        """Close the HTTP client. Idempotent."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["OllamaExtractor", "build_prompt", "parse_model_reply"]
