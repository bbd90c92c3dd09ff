"""OpenAI-compatible intent extractor for intentlite.

Sends the extraction prompt to a /v1/chat/completions endpoint (OpenAI, or
any server speaking the same API) and validates the JSON reply against the
active domain configuration.
"""

from __future__ import annotations

import json
import logging

import httpx

from ..intent import ExtractionResult, IntentEngine
from . import ExtractorError, ExtractorUnavailableError
from .base import IntentExtractor
from .prompt import SYSTEM_PROMPT, build_prompt, parse_model_reply, reply_to_result

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.openai.com"
DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIExtractor(IntentExtractor):
    """Intent extraction through an OpenAI-compatible chat completion API.

    Example:
        extractor = OpenAIExtractor(IntentEngine(), api_key="sk-...")
        result = await extractor.extract_intent("add contact Alice")
        await extractor.close()

    Attributes:
        engine: Rule engine whose configuration defines tasks and variables
        model: Chat model name
        _endpoint: API base URL (without the /v1 suffix)
        _api_key: Bearer token
        _client: httpx.AsyncClient, created on first use
    """

    def __init__(
        self,
        engine: IntentEngine | None = None,
        api_key: str | None = None,
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
            api_key: API key sent as a Bearer token
            model: Chat model name
            endpoint: API base URL. Default: https://api.openai.com
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: HTTP timeout in seconds

        Raises:
            ExtractorUnavailableError: If no API key is given
        """
        if not api_key:
            raise ExtractorUnavailableError("OpenAI API key is required")

        self.engine = engine if engine is not None else IntentEngine()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "openai"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def is_available(self) -> bool:
        """Check if the API answers /v1/models with our key (2 second timeout)."""
        try:
            async with httpx.AsyncClient(timeout=2.0) as client:
                response = await client.get(
                    f"{self._endpoint}/v1/models",
                    headers=self._get_headers(),
                )
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def extract_intent(self, text: str) -> ExtractionResult:
        """Extract the intent by prompting the chat model.

        Raises:
            ExtractorUnavailableError: If the API cannot be reached
            ExtractorError: On an error status, an empty or unparsable reply
        """
        if not text or not text.strip():
            return ExtractionResult.unknown(source=self.name)

        config = self.engine.config
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(text, config)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        client = self._get_client()
        try:
            response = await client.post(
                f"{self._endpoint}/v1/chat/completions",
                json=payload,
                headers=self._get_headers(),
            )
        except httpx.ConnectError as e:
            raise ExtractorUnavailableError(
                f"Cannot connect to OpenAI API at {self._endpoint}"
            ) from e
        except httpx.TimeoutException as e:
            raise ExtractorUnavailableError(
                f"Timeout waiting for OpenAI API at {self._endpoint}"
            ) from e

        if response.status_code != 200:
            error_msg = f"OpenAI API error (status {response.status_code})"
            try:
                data = response.json()
                if "error" in data:
                    error_detail = data["error"]
                    if isinstance(error_detail, dict):
                        error_detail = error_detail.get("message", error_detail)
                    error_msg = f"OpenAI error: {error_detail}"
            except (json.JSONDecodeError, KeyError, TypeError):
                pass
            raise ExtractorError(error_msg)

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise ExtractorError(f"Failed to decode OpenAI response: {e}") from e

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExtractorError("No response from OpenAI") from e

        reply = parse_model_reply(str(content or ""))
        return reply_to_result(reply, config, self.name)

    async def close(self) -> None:
        """Close the HTTP client. Idempotent."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["OpenAIExtractor"]
