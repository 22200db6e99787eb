"""
Imagen image backend.

Calls the Imagen predict endpoint with a single sample and returns
predictions[0].bytesBase64Encoded.
"""

from .base import ImageBackend, post_image_request
from ..errors import ImageError, ErrorCode
from ..logging import get_logger
from ..models import ImageResult

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

logger = get_logger("imagegen.imagen")


class ImagenBackend(ImageBackend):
    """Image generation via the Imagen predict API."""

    def __init__(self, api_key: str, model: str = "imagen-3.0-generate-002", timeout: float = 30):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate_image(self, prompt: str) -> ImageResult:
        if not prompt or not prompt.strip():
            raise ImageError(ErrorCode.IMAGE_GENERATION_FAILED, "Image prompt must not be empty")

        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": 1},
        }
        url = f"{BASE_URL}/models/{self.model}:predict"
        data = post_image_request(url, payload, self.api_key, self.timeout)

        predictions = data.get("predictions")
        first = predictions[0] if isinstance(predictions, list) and predictions else None
        encoded = first.get("bytesBase64Encoded") if isinstance(first, dict) else None

        if not encoded:
            # Imagen returns an empty prediction list when safety filters trip
            logger.error("Imagen response contained no predictions")
            raise ImageError(ErrorCode.IMAGE_GENERATION_FAILED, "Image backend returned no image")

        return ImageResult.from_base64(encoded)
