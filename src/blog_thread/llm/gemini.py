"""
Gemini LLM provider implementation.

Talks to the Gemini generateContent REST endpoint with requests. Every
failure is normalised into the pipeline's error taxonomy, checked in this
order at the boundary:

1. network failure or timeout           -> TransportError
2. body is not a JSON object            -> TransportError ("non-JSON response"),
                                           or the sentinel text for extraction calls
3. HTTP status outside 2xx              -> GenerationError (upstream error.message)
4. no text in candidates[0].content     -> GenerationError ("no content returned")

The API key travels in the x-goog-api-key header so it can never leak through
URLs quoted in exception messages.
"""

import requests
from typing import Dict, Any, Optional

from .base import LLMProvider
from ..errors import TransportError, GenerationError, ErrorCode
from ..logging import get_logger, redact
from ..models import GenerateOptions, ResponseFormat, UpstreamTextResult
from ..prompts import CONTENT_NOT_FOUND

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

logger = get_logger("llm")


class GeminiProvider(LLMProvider):
    """Gemini API provider for text generation."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", timeout: float = 30):
        """
        Initialize Gemini provider.

        Args:
            api_key: Gemini API key
            model: Model name (default: gemini-2.5-flash)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = BASE_URL

    def generate(
        self,
        prompt: str,
        system: str = "",
        options: Optional[GenerateOptions] = None
    ) -> UpstreamTextResult:
        """
        Generate text using the Gemini API.

        Raises:
            TransportError: On network failure, timeout or non-JSON body
            GenerationError: On HTTP error status or missing content
        """
        options = options or GenerateOptions()
        if not prompt or not prompt.strip():
            raise GenerationError(ErrorCode.GENERATION_INVALID_OUTPUT, "Prompt must not be empty")

        payload = self._build_payload(prompt, system, options)
        url = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(ErrorCode.TRANSPORT_TIMEOUT, redact(str(e), [self.api_key]) or None)
        except requests.RequestException as e:
            raise TransportError(ErrorCode.TRANSPORT_NETWORK_ERROR, redact(str(e), [self.api_key]))

        data = self._decode_body(response)
        if data is None:
            if options.extraction:
                logger.warning("Non-JSON extraction response (HTTP %s); treating as not found",
                               response.status_code)
                return UpstreamTextResult(text=CONTENT_NOT_FOUND)
            raise TransportError(ErrorCode.TRANSPORT_NON_JSON, "Upstream returned a non-JSON response")

        if not 200 <= response.status_code < 300:
            logger.debug("Gemini error body: %s", data)
            raise GenerationError(
                ErrorCode.GENERATION_HTTP_ERROR,
                redact(self._error_message(data, response.status_code), [self.api_key])
            )

        text = self._parse_response(data)
        if text is None:
            logger.debug("Gemini response without content: %s", data)
            raise GenerationError(ErrorCode.GENERATION_NO_CONTENT, "Upstream returned no content")

        if not text.strip():
            if options.extraction:
                return UpstreamTextResult(text=CONTENT_NOT_FOUND)
            raise GenerationError(ErrorCode.GENERATION_NO_CONTENT, "Upstream returned no content")

        return UpstreamTextResult(text=text.strip())

    def _build_payload(self, prompt: str, system: str, options: GenerateOptions) -> Dict[str, Any]:
        """Build Gemini API request payload."""
        payload: Dict[str, Any] = {
            "contents": [{
                "role": "user",
                "parts": [{"text": prompt}]
            }]
        }

        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        if options.use_search:
            payload["tools"] = [{"google_search": {}}]

        if options.response_format == ResponseFormat.JSON:
            generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
            if options.response_schema:
                generation_config["responseSchema"] = options.response_schema
            payload["generationConfig"] = generation_config

        return payload

    @staticmethod
    def _decode_body(response) -> Optional[Dict[str, Any]]:
        """Return the JSON object body, or None if it is not one."""
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _error_message(data: Dict[str, Any], status_code: int) -> str:
        """Pull error.message from an error body, else synthesise from status."""
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
        return f"Upstream API call failed with HTTP {status_code}"

    @staticmethod
    def _parse_response(data: Dict[str, Any]) -> Optional[str]:
        """Extract concatenated text parts of the first candidate, or None."""
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None

        first = candidates[0]
        if not isinstance(first, dict):
            return None

        content = first.get("content")
        if not isinstance(content, dict):
            return None

        parts = content.get("parts")
        if not isinstance(parts, list):
            return None

        texts = [
            part["text"] for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought")
        ]
        if not texts:
            return None

        return "".join(texts)
