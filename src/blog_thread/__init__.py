"""
Blog-Thread: long-form content to social-media thread pipeline

Turns a blog post (pasted text or a URL) into an exactly-N-entry numbered
thread and, optionally, an illustrative image, by orchestrating calls to
generative-AI text and image services.

This package provides:
- URL content extraction with a specific-then-broad fallback
- Thread generation tolerant of structured (JSON) and free-text model output
- An optional image stage with interchangeable backends (Gemini, Imagen)
- A single orchestrator mapping every failure to one error envelope
- A FastAPI endpoint and a command line front end over the same orchestrator
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from .errors import (
    ErrorCode, Stage, BlogThreadError, ConfigError, RequestError,
    TransportError, ExtractionError, GenerationError, ImageError
)
from .models import Task, ThreadEntry, ImageResult
from .config import Settings, load_config, resolve_settings
from .pipeline import Pipeline, handle_request

__all__ = [
    "ErrorCode", "Stage", "BlogThreadError", "ConfigError", "RequestError",
    "TransportError", "ExtractionError", "GenerationError", "ImageError",
    "Task", "ThreadEntry", "ImageResult",
    "Settings", "load_config", "resolve_settings",
    "Pipeline", "handle_request",
]
