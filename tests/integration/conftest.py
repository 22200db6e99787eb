"""Shared fixtures for integration tests."""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import Mock, patch

import pytest

from blog_thread.config import Settings
from blog_thread.imagegen.base import MOCK_PNG_BASE64


ARTICLE = (
    "Rivers carve canyons slowly, grain by grain, over millions of years. "
    "The Colorado cut the Grand Canyon as the plateau rose beneath it. "
    "Floods do most of the work, moving more sediment in a week than a decade of calm water. "
    "Understanding this pace changes how we think about landscapes and time."
)


def gemini_text(text: str) -> Dict[str, Any]:
    """generateContent body with a single text part."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def gemini_image(data: str = MOCK_PNG_BASE64) -> Dict[str, Any]:
    """generateContent body with an inline PNG part."""
    return {"candidates": [{"content": {"parts": [
        {"text": "Here is the illustration."},
        {"inlineData": {"mimeType": "image/png", "data": data}},
    ]}}]}


def imagen_image(data: str = MOCK_PNG_BASE64) -> Dict[str, Any]:
    """predict body with one prediction."""
    return {"predictions": [{"mimeType": "image/png", "bytesBase64Encoded": data}]}


class FakeUpstream:
    """
    Stand-in for the Google endpoints behind requests.post.

    Replies are queued per model name; each reply is (status_code, body) or
    an exception to raise. Every request is recorded.
    """

    def __init__(self):
        self.replies: Dict[str, List[Any]] = {}
        self.requests: List[Dict[str, Any]] = []

    def queue(self, model: str, body: Any = None, status_code: int = 200, raw: Optional[str] = None):
        self.replies.setdefault(model, []).append((status_code, body, raw))

    def fail(self, model: str, error: Exception):
        self.replies.setdefault(model, []).append(error)

    def calls_to(self, model: str) -> List[Dict[str, Any]]:
        return [r for r in self.requests if f"/models/{model}:" in r["url"]]

    def __call__(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        model = url.rsplit("/models/", 1)[1].split(":", 1)[0]
        queue = self.replies.get(model)
        if not queue:
            raise AssertionError(f"Unexpected upstream call to {model}")

        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply

        status_code, body, raw = reply
        response = Mock()
        response.status_code = status_code
        if raw is not None:
            response.json.side_effect = ValueError("Expecting value")
            response.text = raw
        else:
            response.json.return_value = body
            response.text = _dumps(body)
        return response


def _dumps(body: Any) -> str:
    return json.dumps(body)


@pytest.fixture
def upstream():
    """Patch requests.post with a FakeUpstream for the duration of a test."""
    fake = FakeUpstream()
    with patch("requests.post", side_effect=fake):
        yield fake


@pytest.fixture
def settings():
    """Settings with both keys and default models."""
    return Settings(gemini_api_key="test-gemini-key", image_api_key="test-gemini-key")
