"""
Data models for the generation pipeline.

All entities are request-scoped: they are created when a request enters the
orchestrator and discarded once the response has been built. Raw request
payloads are parsed into GenerationRequest here so that every missing or
mistyped field becomes an explicit RequestError instead of a crash further
down the pipeline.
"""

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

from .errors import BlogThreadError, RequestError, ImageError, ErrorCode


IMAGE_MIME_TYPE = "image/png"


class Task(Enum):
    """Tasks accepted at the request boundary."""
    CONTENT = "content"
    THREAD = "thread"
    IMAGE = "image"


class ResponseFormat(Enum):
    """Upstream output contract for text calls."""
    TEXT = "text"
    JSON = "json"


@dataclass(frozen=True)
class GenerateOptions:
    """Per-call options for the upstream text model."""
    use_search: bool = False
    response_format: ResponseFormat = ResponseFormat.TEXT
    response_schema: Optional[Dict[str, Any]] = None
    # Extraction calls degrade a non-JSON upstream body to the sentinel text
    extraction: bool = False


@dataclass
class GenerationRequest:
    """A validated request entering the pipeline."""
    task: Task
    url: Optional[str] = None
    content: Optional[str] = None
    tweet_count: Optional[int] = None
    image_prompt: Optional[str] = None
    generate_image: bool = False


@dataclass(frozen=True)
class UpstreamTextResult:
    """Text returned by a single upstream text-model call."""
    text: str


@dataclass
class ThreadEntry:
    """
    One numbered entry of a generated thread.

    `body` always begins with the "index/total" marker; the length check
    counts the marker.
    """
    index: int
    total: int
    body: str

    @property
    def marker(self) -> str:
        return f"{self.index}/{self.total}"

    @property
    def length(self) -> int:
        return len(self.body)

    def exceeds(self, max_chars: int) -> bool:
        return self.length > max_chars

    def to_dict(self, max_chars: int = 280) -> Dict[str, Any]:
        return {
            "index": self.index,
            "total": self.total,
            "body": self.body,
            "length": self.length,
            "overLimit": self.exceeds(max_chars),
        }


@dataclass(frozen=True)
class ImageResult:
    """Base64-encoded PNG produced by an image backend."""
    payload: str
    mime_type: str = IMAGE_MIME_TYPE

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.payload}"

    def decode(self) -> bytes:
        return base64.b64decode(self.payload)

    @classmethod
    def from_base64(cls, payload: Optional[str]) -> "ImageResult":
        """
        Build an ImageResult from an upstream base64 string.

        Raises:
            ImageError: If payload is empty or not valid base64
        """
        if not payload or not isinstance(payload, str):
            raise ImageError(ErrorCode.IMAGE_INVALID_PAYLOAD, "Image payload is empty")

        cleaned = "".join(payload.split())
        try:
            decoded = base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError):
            raise ImageError(ErrorCode.IMAGE_INVALID_PAYLOAD, "Image payload is not valid base64")

        if not decoded:
            raise ImageError(ErrorCode.IMAGE_INVALID_PAYLOAD, "Image payload is empty")

        return cls(payload=cleaned)


@dataclass
class ThreadResult:
    """Outcome of a thread request, possibly with an image attached."""
    entries: List[ThreadEntry]
    warnings: List[str] = field(default_factory=list)
    image: Optional[ImageResult] = None
    image_error: Optional[BlogThreadError] = None

    @property
    def text(self) -> str:
        """Entries joined by blank lines (copy-all format)."""
        return "\n\n".join(entry.body for entry in self.entries)


@dataclass
class PipelineResponse:
    """External response envelope: HTTP status plus JSON body."""
    status: int
    body: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def parse_request(data: Any, min_tweets: int = 3, max_tweets: int = 15) -> GenerationRequest:
    """
    Parse a raw JSON request body into a GenerationRequest.

    Args:
        data: Decoded JSON body
        min_tweets: Smallest accepted tweetCount
        max_tweets: Largest accepted tweetCount

    Returns:
        Validated GenerationRequest

    Raises:
        RequestError: If the task is unknown or required fields are missing
    """
    if not isinstance(data, dict):
        raise RequestError(ErrorCode.REQUEST_INVALID_FIELD, "Request body must be a JSON object.")

    raw_task = data.get("task")
    try:
        task = Task(raw_task)
    except ValueError:
        raise RequestError(ErrorCode.REQUEST_INVALID_TASK)

    url = _optional_str(data, "url")
    content = _optional_str(data, "content")
    image_prompt = _optional_str(data, "imagePrompt")
    generate_image = data.get("generateImage", False)
    if not isinstance(generate_image, bool):
        raise RequestError(ErrorCode.REQUEST_INVALID_FIELD, "Field 'generateImage' must be a boolean.")

    tweet_count = data.get("tweetCount")

    if task == Task.CONTENT:
        if not url:
            raise RequestError(ErrorCode.REQUEST_INVALID_FIELD, "Field 'url' is required for task 'content'.")

    elif task == Task.THREAD:
        if not content and not url:
            raise RequestError(ErrorCode.REQUEST_INVALID_FIELD, "Please paste some text or enter a URL.")
        # bool is an int subclass; reject it explicitly
        if isinstance(tweet_count, bool) or not isinstance(tweet_count, int):
            raise RequestError(ErrorCode.REQUEST_INVALID_FIELD, "Field 'tweetCount' must be an integer.")
        if not min_tweets <= tweet_count <= max_tweets:
            raise RequestError(
                ErrorCode.REQUEST_INVALID_FIELD,
                f"Field 'tweetCount' must be between {min_tweets} and {max_tweets}."
            )

    elif task == Task.IMAGE:
        if not content and not image_prompt:
            raise RequestError(
                ErrorCode.REQUEST_INVALID_FIELD,
                "Field 'content' or 'imagePrompt' is required for task 'image'."
            )

    return GenerationRequest(
        task=task,
        url=url,
        content=content,
        tweet_count=tweet_count if task == Task.THREAD else None,
        image_prompt=image_prompt,
        generate_image=generate_image,
    )


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    """Read an optional string field; blank strings count as absent."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RequestError(ErrorCode.REQUEST_INVALID_FIELD, f"Field '{key}' must be a string.")
    value = value.strip()
    return value or None
