"""
Gemini image backend.

Uses the generateContent endpoint of an image-capable Gemini model with
TEXT+IMAGE response modalities and returns the first inline image part.
"""

from typing import Dict, Any, Optional

from .base import ImageBackend, post_image_request
from ..errors import ImageError, ErrorCode
from ..logging import get_logger
from ..models import ImageResult

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

logger = get_logger("imagegen.gemini")


class GeminiImageBackend(ImageBackend):
    """Image generation via Gemini inline image output."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash-image-preview", timeout: float = 30):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate_image(self, prompt: str) -> ImageResult:
        if not prompt or not prompt.strip():
            raise ImageError(ErrorCode.IMAGE_GENERATION_FAILED, "Image prompt must not be empty")

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        url = f"{BASE_URL}/models/{self.model}:generateContent"
        data = post_image_request(url, payload, self.api_key, self.timeout)

        encoded = self._find_inline_image(data)
        if not encoded:
            logger.error("Gemini image response contained no image data")
            logger.debug("Gemini image raw response: %s", data)
            raise ImageError(ErrorCode.IMAGE_GENERATION_FAILED, "Image backend returned no image")

        return ImageResult.from_base64(encoded)

    @staticmethod
    def _find_inline_image(data: Dict[str, Any]) -> Optional[str]:
        """Return base64 data of the first inline image part, if any."""
        candidates = data.get("candidates")
        if not isinstance(candidates, list):
            return None

        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            content = candidate.get("content")
            if not isinstance(content, dict):
                continue
            parts = content.get("parts")
            if not isinstance(parts, list):
                continue
            for part in parts:
                if not isinstance(part, dict):
                    continue
                # REST responses use camelCase, some proxies snake_case
                inline = part.get("inlineData") or part.get("inline_data")
                if isinstance(inline, dict) and inline.get("data"):
                    return inline["data"]
        return None
