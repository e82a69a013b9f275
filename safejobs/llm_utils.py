"""
Shared LLM utilities for Safe Jobs.

Provides the client for the Gemini generative language API and the tolerant
JSON extraction used on its free-text responses.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from .config import LLMConfig

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}


@dataclass
class LLMResponse:
    """Result of an LLM API call."""
    success: bool
    response_text: str
    raw_response: dict
    error: Optional[str] = None


class LLMClient:
    """
    Client for text generation via the Gemini REST API.

    Never raises for transport or API errors; failures come back as an
    unsuccessful LLMResponse so callers can fall back to their defaults.
    """

    def __init__(self, llm_config: LLMConfig, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the LLM client.

        Args:
            llm_config: LLM configuration.
            client: Optional preconfigured HTTP client (used by tests).
        """
        self.config = llm_config
        # Normalize base URL - remove trailing slash to prevent double-slash issues
        self.base_url = llm_config.base_url.rstrip('/')
        self.model = llm_config.model
        self.api_key = llm_config.api_key

        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(llm_config.timeout, connect=10.0)
        )

        logger.debug(f"LLM client initialized: base_url={self.base_url}, model={self.model}")

    @property
    def model_url(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}"

    async def check_available(self) -> bool:
        """
        Check that the API key works and the configured model exists.

        Returns:
            True if the model endpoint responds.
        """
        if not self.api_key:
            logger.warning("Gemini API key not configured")
            return False

        try:
            response = await self.client.get(
                self.model_url, headers={"x-goog-api-key": self.api_key}
            )
            if response.status_code != 200:
                logger.warning(f"Model '{self.model}' not available: {response.status_code}")
                return False
            return True
        except Exception as e:
            logger.error(f"Gemini availability check failed: {e}")
            return False

    async def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The prompt to send to the LLM.
            temperature: Override the default temperature.
            max_tokens: Override the default output token limit.

        Returns:
            LLMResponse with the result.
        """
        if not self.api_key:
            return _failed("Gemini API key not configured")

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature if temperature is not None else self.config.temperature,
                "maxOutputTokens": max_tokens if max_tokens is not None else self.config.max_tokens,
            },
        }

        try:
            response = await self.client.post(
                f"{self.model_url}:generateContent",
                headers={"x-goog-api-key": self.api_key},
                json=payload,
            )
        except httpx.TimeoutException:
            return _failed("Gemini request timed out")
        except httpx.ConnectError:
            return _failed(f"Could not connect to Gemini at {self.base_url}")
        except Exception as e:
            return _failed(f"Unexpected error during LLM request: {e}")

        if response.status_code != 200:
            return _failed(f"Gemini API error: {response.status_code}")

        try:
            result = response.json()
        except ValueError:
            return _failed("Gemini returned a non-JSON response")

        return LLMResponse(success=True, response_text=_extract_text(result), raw_response=result)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


def _failed(error_msg: str) -> LLMResponse:
    logger.error(error_msg)
    return LLMResponse(success=False, response_text="", raw_response={}, error=error_msg)


def _extract_text(result: dict) -> str:
    """Concatenate the text parts of the first candidate; "" for any other shape."""
    if not isinstance(result, dict):
        return ""
    candidates = result.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"] for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


def _balanced_end(text: str, start: int) -> Optional[int]:
    """
    Index just past the bracket group opening at text[start], or None.

    Brackets inside JSON strings are ignored.
    """
    opener = text[start]
    closer = _CLOSERS[opener]
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i + 1

    return None


def parse_json_payload(text: str, expected: type = dict) -> Optional[Union[dict, list]]:
    """
    Pull a JSON object (or array) out of free-form model output.

    Tries, in order: a strict parse of the whole text; each balanced
    {...} (or [...]) substring from left to right. Returns None when
    nothing of the expected type parses.

    Args:
        text: Raw model output.
        expected: dict or list.

    Returns:
        The parsed payload, or None.
    """
    if not text or not text.strip():
        return None

    try:
        data = json.loads(text.strip())
        if isinstance(data, expected):
            return data
    except json.JSONDecodeError:
        pass

    opener = "[" if expected is list else "{"
    start = text.find(opener)
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            try:
                data = json.loads(text[start:end])
                if isinstance(data, expected):
                    return data
            except json.JSONDecodeError:
                pass
        start = text.find(opener, start + 1)

    logger.debug(f"No JSON {expected.__name__} found in response: {text[:200]}")
    return None
