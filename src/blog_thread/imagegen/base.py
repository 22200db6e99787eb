"""
Base image backend interface.

Every backend turns a prompt into a base64 PNG (ImageResult). Which backend
is used is decided once from Settings by get_image_backend(); the pipeline
only ever sees the ImageBackend interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any, TYPE_CHECKING

import requests

from ..errors import ImageError, ConfigError, ErrorCode
from ..logging import redact
from ..models import ImageResult

if TYPE_CHECKING:
    from ..config import Settings


# 1x1 PNG returned by the mock backend
MOCK_PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class ImageBackend(ABC):
    """Base class for all image-generation backends."""

    @abstractmethod
    def generate_image(self, prompt: str) -> ImageResult:
        """
        Generate one image for a prompt.

        Args:
            prompt: Image description (non-empty)

        Returns:
            ImageResult with a non-empty, valid base64 PNG payload

        Raises:
            ImageError: If the backend call fails or returns no image
        """
        pass

    @property
    def name(self) -> str:
        """Backend name for logging."""
        return self.__class__.__name__


class MockImageBackend(ImageBackend):
    """
    Mock image backend for testing.

    Returns a tiny PNG (or a configured payload) and records prompts.
    """

    def __init__(self, payload: str = MOCK_PNG_BASE64, error: Optional[ImageError] = None):
        self.payload = payload
        self.error = error
        self.prompts: List[str] = []

    def generate_image(self, prompt: str) -> ImageResult:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return ImageResult.from_base64(self.payload)

    def reset(self):
        """Clear recorded prompts."""
        self.prompts = []


def post_image_request(
    url: str,
    payload: Dict[str, Any],
    api_key: str,
    timeout: float
) -> Dict[str, Any]:
    """
    POST a JSON request to a Google image endpoint and return the JSON body.

    Shared by the Gemini and Imagen backends; all failures become ImageError
    so the caller can tell image synthesis apart from prompt derivation.
    """
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": api_key,
    }

    try:
        response = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.Timeout:
        raise ImageError(ErrorCode.IMAGE_GENERATION_FAILED, "Image generation request timed out")
    except requests.RequestException as e:
        raise ImageError(
            ErrorCode.IMAGE_GENERATION_FAILED,
            f"Network error during image generation: {redact(str(e), [api_key])}"
        )

    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, dict):
        raise ImageError(ErrorCode.IMAGE_GENERATION_FAILED, "Image backend returned a non-JSON response")

    if not 200 <= response.status_code < 300:
        error = data.get("error")
        message = error.get("message") if isinstance(error, dict) else None
        raise ImageError(
            ErrorCode.IMAGE_GENERATION_FAILED,
            redact(message or f"Image backend failed with HTTP {response.status_code}", [api_key])
        )

    return data


def get_image_backend(settings: "Settings") -> ImageBackend:
    """
    Build the configured image backend.

    Raises:
        ConfigError: If the backend is unknown or its key is missing
    """
    if not settings.image_api_key:
        raise ConfigError(ErrorCode.CONFIG_MISSING_IMAGE_KEY)

    if settings.image_backend == "gemini":
        from .gemini import GeminiImageBackend
        return GeminiImageBackend(
            api_key=settings.image_api_key,
            model=settings.image_model,
            timeout=settings.timeout_seconds,
        )

    elif settings.image_backend == "imagen":
        from .imagen import ImagenBackend
        return ImagenBackend(
            api_key=settings.image_api_key,
            model=settings.image_model,
            timeout=settings.timeout_seconds,
        )

    else:
        raise ConfigError(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Unknown image backend: {settings.image_backend}"
        )
