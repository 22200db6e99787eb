"""
Error codes and custom exceptions for blog-thread.

Every failure inside the pipeline is raised as a subclass of BlogThreadError
carrying a predefined ErrorCode and the pipeline Stage it belongs to. The
orchestrator is the only place that turns a stage into an HTTP status and a
user-facing message, so components never deal with response codes.

Messages must never contain API keys or raw upstream payloads.
"""

from enum import Enum
from typing import Optional


class Stage(Enum):
    """Pipeline stage an error is attributed to."""

    CONFIG = "config"
    REQUEST = "request"
    TRANSPORT = "transport"
    EXTRACTION = "extraction"
    GENERATION = "generation"
    IMAGE = "image"
    INTERNAL = "internal"


class ErrorCode(Enum):
    """Predefined error codes for structured error handling."""

    # Configuration errors
    CONFIG_FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    CONFIG_INVALID_JSON = "CONFIG_INVALID_JSON"
    CONFIG_VERSION_MISMATCH = "CONFIG_VERSION_MISMATCH"
    CONFIG_INVALID_VALUE = "CONFIG_INVALID_VALUE"
    CONFIG_MISSING_TEXT_KEY = "CONFIG_MISSING_TEXT_KEY"
    CONFIG_MISSING_IMAGE_KEY = "CONFIG_MISSING_IMAGE_KEY"

    # Request shape errors
    REQUEST_INVALID_TASK = "REQUEST_INVALID_TASK"
    REQUEST_INVALID_FIELD = "REQUEST_INVALID_FIELD"
    REQUEST_CONTENT_TOO_LONG = "REQUEST_CONTENT_TOO_LONG"

    # Transport errors
    TRANSPORT_NETWORK_ERROR = "TRANSPORT_NETWORK_ERROR"
    TRANSPORT_TIMEOUT = "TRANSPORT_TIMEOUT"
    TRANSPORT_NON_JSON = "TRANSPORT_NON_JSON"

    # Extraction errors
    EXTRACTION_NOT_FOUND = "EXTRACTION_NOT_FOUND"

    # Generation errors
    GENERATION_HTTP_ERROR = "GENERATION_HTTP_ERROR"
    GENERATION_NO_CONTENT = "GENERATION_NO_CONTENT"
    GENERATION_INVALID_OUTPUT = "GENERATION_INVALID_OUTPUT"
    GENERATION_COUNT_MISMATCH = "GENERATION_COUNT_MISMATCH"
    GENERATION_TWEET_TOO_LONG = "GENERATION_TWEET_TOO_LONG"

    # Image errors
    IMAGE_PROMPT_FAILED = "IMAGE_PROMPT_FAILED"
    IMAGE_GENERATION_FAILED = "IMAGE_GENERATION_FAILED"
    IMAGE_INVALID_PAYLOAD = "IMAGE_INVALID_PAYLOAD"

    # Generic
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Human-readable descriptions for error codes
ERROR_DESCRIPTIONS = {
    # Configuration
    ErrorCode.CONFIG_FILE_NOT_FOUND: "Configuration file not found in search paths",
    ErrorCode.CONFIG_INVALID_JSON: "Configuration file contains invalid JSON",
    ErrorCode.CONFIG_VERSION_MISMATCH: "Configuration version not supported",
    ErrorCode.CONFIG_INVALID_VALUE: "Configuration field has invalid value",
    ErrorCode.CONFIG_MISSING_TEXT_KEY: "API key is not configured.",
    ErrorCode.CONFIG_MISSING_IMAGE_KEY: "Image generation API key is not configured.",

    # Request
    ErrorCode.REQUEST_INVALID_TASK: "Invalid task specified.",
    ErrorCode.REQUEST_INVALID_FIELD: "Request has a missing or invalid field",
    ErrorCode.REQUEST_CONTENT_TOO_LONG: "Content exceeds the word limit",

    # Transport
    ErrorCode.TRANSPORT_NETWORK_ERROR: "Network error reaching the upstream service",
    ErrorCode.TRANSPORT_TIMEOUT: "Upstream request timed out",
    ErrorCode.TRANSPORT_NON_JSON: "Upstream returned a non-JSON response",

    # Extraction
    ErrorCode.EXTRACTION_NOT_FOUND: (
        "Could not retrieve usable content from the URL. "
        "Please paste the text manually."
    ),

    # Generation
    ErrorCode.GENERATION_HTTP_ERROR: "Upstream API call failed",
    ErrorCode.GENERATION_NO_CONTENT: "Upstream returned no content",
    ErrorCode.GENERATION_INVALID_OUTPUT: "Upstream output could not be parsed",
    ErrorCode.GENERATION_COUNT_MISMATCH: "Could not generate tweets. Please try again.",
    ErrorCode.GENERATION_TWEET_TOO_LONG: "Generated tweet exceeds the character limit",

    # Image
    ErrorCode.IMAGE_PROMPT_FAILED: "Failed to generate a detailed image prompt.",
    ErrorCode.IMAGE_GENERATION_FAILED: "Failed to generate image. Please try again.",
    ErrorCode.IMAGE_INVALID_PAYLOAD: "Image backend returned invalid image data",

    # Generic
    ErrorCode.INTERNAL_ERROR: "Unexpected internal error",
}


class BlogThreadError(Exception):
    """Base exception class for all blog-thread errors."""

    stage = Stage.INTERNAL

    def __init__(self, code: ErrorCode, message: Optional[str] = None, stage: Optional[Stage] = None):
        self.code = code
        self.message = message or ERROR_DESCRIPTIONS.get(code, str(code.value))
        if stage is not None:
            self.stage = stage
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class ConfigError(BlogThreadError):
    """Missing credentials or invalid configuration."""
    stage = Stage.CONFIG


class RequestError(BlogThreadError):
    """Malformed task or parameters from the caller."""
    stage = Stage.REQUEST


class TransportError(BlogThreadError):
    """Network failure or unparseable upstream response."""
    stage = Stage.TRANSPORT


class ExtractionError(BlogThreadError):
    """No usable content could be retrieved from a URL."""
    stage = Stage.EXTRACTION


class GenerationError(BlogThreadError):
    """Upstream answered but the content failed validation."""
    stage = Stage.GENERATION


class ImageError(BlogThreadError):
    """Image synthesis failed."""
    stage = Stage.IMAGE
