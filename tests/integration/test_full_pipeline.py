"""End-to-end tests: request body in, response envelope out, real clients over a fake upstream."""

import json

import requests
from fastapi.testclient import TestClient

from blog_thread.api import create_app
from blog_thread.config import Settings
from blog_thread.pipeline import Pipeline

from conftest import ARTICLE, gemini_text, gemini_image, imagen_image

TEXT_MODEL = "gemini-2.5-flash"
IMAGE_MODEL = "gemini-2.5-flash-image-preview"
IMAGEN_MODEL = "imagen-3.0-generate-002"
URL = "https://example.com/blog/rivers"


def thread_reply(n):
    return gemini_text(json.dumps([f"{i}/{n} Point {i} about rivers." for i in range(1, n + 1)]))


def test_url_to_thread_with_image(upstream, settings):
    """URL extraction, thread and derived image in one request."""
    upstream.queue(TEXT_MODEL, gemini_text(ARTICLE))
    upstream.queue(TEXT_MODEL, thread_reply(5))
    upstream.queue(TEXT_MODEL, gemini_text("Cinematic canyon at dusk, warm light"))
    upstream.queue(IMAGE_MODEL, gemini_image())

    response = Pipeline(settings).handle({
        "task": "thread", "url": URL, "tweetCount": 5, "generateImage": True
    })

    assert response.status == 200
    assert [e["body"].split(" ", 1)[0] for e in response.body["entries"]] == ["1/5", "2/5", "3/5", "4/5", "5/5"]
    assert response.body["imageUrl"].startswith("data:image/png;base64,")

    text_calls = upstream.calls_to(TEXT_MODEL)
    assert len(text_calls) == 3
    assert text_calls[0]["json"]["tools"] == [{"google_search": {}}]
    assert "tools" not in text_calls[1]["json"]
    assert text_calls[1]["json"]["generationConfig"]["responseMimeType"] == "application/json"
    assert ARTICLE in text_calls[1]["json"]["contents"][0]["parts"][0]["text"]

    image_call = upstream.calls_to(IMAGE_MODEL)[0]
    assert image_call["json"]["contents"][0]["parts"][0]["text"] == "Cinematic canyon at dusk, warm light"


def test_api_key_only_in_header(upstream, settings):
    """The key never appears in a URL."""
    upstream.queue(TEXT_MODEL, gemini_text(ARTICLE))

    Pipeline(settings).handle({"task": "content", "url": URL})

    request = upstream.requests[0]
    assert "test-gemini-key" not in request["url"]
    assert request["headers"]["x-goog-api-key"] == "test-gemini-key"


def test_extraction_fallback_then_not_found(upstream, settings):
    """Sentinel then a non-JSON reply ends in a 404 after two calls."""
    upstream.queue(TEXT_MODEL, gemini_text("Content not found."))
    upstream.queue(TEXT_MODEL, raw="<html>Bad gateway</html>", status_code=502)

    response = Pipeline(settings).handle({"task": "content", "url": URL})

    assert response.status == 404
    assert response.body["stage"] == "extraction"
    assert len(upstream.requests) == 2


def test_extraction_broad_attempt_succeeds(upstream, settings):
    """Broad prompt recovers when the literal extraction is too short."""
    upstream.queue(TEXT_MODEL, gemini_text("Subscribe now!"))
    upstream.queue(TEXT_MODEL, gemini_text(ARTICLE))

    response = Pipeline(settings).handle({"task": "content", "url": URL})

    assert response.status == 200
    assert response.body["text"] == ARTICLE


def test_upstream_http_error_message(upstream, settings):
    """Upstream error.message reaches the caller as a generation error."""
    upstream.queue(TEXT_MODEL, {"error": {"code": 400, "message": "API key not valid."}}, status_code=400)

    response = Pipeline(settings).handle({"task": "thread", "content": ARTICLE, "tweetCount": 3})

    assert response.status == 500
    assert response.body == {"error": "API key not valid.", "stage": "generation"}


def test_network_failure(upstream, settings):
    """Connection errors are transport errors."""
    upstream.fail(TEXT_MODEL, requests.ConnectionError("connection refused"))

    response = Pipeline(settings).handle({"task": "thread", "content": ARTICLE, "tweetCount": 3})

    assert response.status == 500
    assert response.body["stage"] == "transport"


def test_image_failure_partial_success(upstream, settings):
    """Thread entries survive an image backend error."""
    upstream.queue(TEXT_MODEL, thread_reply(5))
    upstream.queue(TEXT_MODEL, gemini_text("A canyon"))
    upstream.queue(IMAGE_MODEL, {"error": {"message": "quota"}}, status_code=429)

    response = Pipeline(settings).handle({
        "task": "thread", "content": ARTICLE, "tweetCount": 5, "generateImage": True
    })

    assert response.status == 200
    assert len(response.body["entries"]) == 5
    assert response.body["imageErrorStage"] == "image"


def test_imagen_backend_direct_prompt(upstream):
    """Imagen backend with direct prompts needs no text call."""
    settings = Settings(
        image_api_key="img-key", image_backend="imagen", image_model=IMAGEN_MODEL, image_prompt_mode="direct"
    )
    upstream.queue(IMAGEN_MODEL, imagen_image())

    response = Pipeline(settings).handle({"task": "image", "content": ARTICLE})

    assert response.status == 200
    assert len(upstream.requests) == 1
    prompt = upstream.requests[0]["json"]["instances"][0]["prompt"]
    assert prompt.startswith("Create a visually compelling digital art image")


def test_http_api_end_to_end(upstream, settings):
    """The HTTP endpoint returns the same envelope."""
    upstream.queue(TEXT_MODEL, thread_reply(3))
    client = TestClient(create_app(settings))

    response = client.post("/api/generate", json={"task": "thread", "content": ARTICLE, "tweetCount": 3})

    assert response.status_code == 200
    assert response.json()["text"].startswith("1/3 Point 1 about rivers.")

    rejected = client.get("/api/generate")
    assert rejected.status_code == 405
    assert rejected.headers["allow"] == "POST"
