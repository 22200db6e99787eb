"""
Image-generation backends.

Backends share one contract, generate_image(prompt) -> ImageResult, so the
image pipeline is written once and the concrete backend (Gemini inline image
or Imagen) is chosen from configuration.
"""

from .base import ImageBackend, MockImageBackend, get_image_backend
from .gemini import GeminiImageBackend
from .imagen import ImagenBackend

__all__ = [
    "ImageBackend", "MockImageBackend", "GeminiImageBackend",
    "ImagenBackend", "get_image_backend",
]
