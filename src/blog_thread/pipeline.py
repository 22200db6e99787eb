"""
Pipeline orchestrator.

Single entry point between the request boundary (HTTP API or CLI) and the
pipeline components. For each request it:

1. parses and validates the request body (400 on bad shape or unknown task)
2. checks that the credentials the task needs are configured (500 config)
   before any network call is made
3. dispatches to the task handler: content -> extractor, thread ->
   (extractor) + thread generator + optional image stage, image -> image stage
4. maps every failure to one error envelope {"error", "stage"} with the
   HTTP status for its stage

An image failure during a thread request never discards the entries: the
response carries the thread plus "imageError".
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict

from .config import Settings, require_text_credentials, require_image_credentials
from .errors import BlogThreadError, RequestError, ErrorCode, Stage
from .extract import extract_content
from .image_pipeline import create_image, PROMPT_MODE_DERIVED
from .imagegen.base import ImageBackend, get_image_backend
from .llm.base import LLMProvider, get_llm_provider
from .logging import get_logger
from .models import (
    GenerationRequest, PipelineResponse, ResponseFormat, Task, ThreadResult, parse_request
)
from .thread import generate_thread, check_lengths
from .utils import count_words, truncate_words

STATUS_BY_STAGE = {
    Stage.REQUEST: 400,
    Stage.EXTRACTION: 404,
    Stage.CONFIG: 500,
    Stage.TRANSPORT: 500,
    Stage.GENERATION: 500,
    Stage.IMAGE: 500,
    Stage.INTERNAL: 500,
}

logger = get_logger("pipeline")


class Pipeline:
    """
    Request-scoped task dispatcher.

    Holds only immutable Settings and the provider factories; every request
    builds its own providers, so nothing mutable is shared across requests.
    """

    def __init__(
        self,
        settings: Settings,
        llm_factory: Callable[[Settings], LLMProvider] = get_llm_provider,
        image_factory: Callable[[Settings], ImageBackend] = get_image_backend,
    ):
        self.settings = settings
        self.llm_factory = llm_factory
        self.image_factory = image_factory
        self._handlers: Dict[Task, Callable[[GenerationRequest], Dict[str, Any]]] = {
            Task.CONTENT: self._run_content,
            Task.THREAD: self._run_thread,
            Task.IMAGE: self._run_image,
        }

    def handle(self, data: Any) -> PipelineResponse:
        """
        Run one request and return its response envelope.

        Never raises: every failure becomes an error response.
        """
        start = time.time()
        try:
            request = parse_request(data, self.settings.min_tweets, self.settings.max_tweets)
            body = self._handlers[request.task](request)
        except BlogThreadError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled pipeline failure")
            return error_response(BlogThreadError(ErrorCode.INTERNAL_ERROR, stage=Stage.INTERNAL))

        logger.info("Task '%s' completed in %dms", request.task.value, int((time.time() - start) * 1000))
        return PipelineResponse(status=200, body=body)

    # --- task handlers ---

    def _run_content(self, request: GenerationRequest) -> Dict[str, Any]:
        require_text_credentials(self.settings)
        llm = self.llm_factory(self.settings)

        result = extract_content(request.url, llm, min_chars=self.settings.min_content_chars)
        return {"text": result.text}

    def _run_thread(self, request: GenerationRequest) -> Dict[str, Any]:
        if request.content:
            self._check_word_budget(request.content)

        require_text_credentials(self.settings)
        if request.generate_image:
            require_image_credentials(self.settings)

        llm = self.llm_factory(self.settings)
        backend = self.image_factory(self.settings) if request.generate_image else None

        content = request.content
        if not content:
            content = self._fit_word_budget(
                extract_content(request.url, llm, min_chars=self.settings.min_content_chars).text
            )

        if backend is not None and self.settings.concurrent_image:
            result = self._thread_and_image_concurrently(content, request.tweet_count, llm, backend)
        else:
            result = self._thread(content, request.tweet_count, llm)
            if backend is not None:
                self._attach_image(result, lambda: self._image(content, llm, backend))

        return thread_body(result, self.settings.max_tweet_chars)

    def _run_image(self, request: GenerationRequest) -> Dict[str, Any]:
        if request.content and not request.image_prompt:
            self._check_word_budget(request.content)

        needs_text_model = not request.image_prompt and self.settings.image_prompt_mode == PROMPT_MODE_DERIVED
        if needs_text_model:
            require_text_credentials(self.settings)
        require_image_credentials(self.settings)

        llm = self.llm_factory(self.settings) if needs_text_model else None
        backend = self.image_factory(self.settings)

        image = create_image(
            request.content,
            backend,
            mode=self.settings.image_prompt_mode,
            llm_provider=llm,
            image_prompt=request.image_prompt,
        )
        return {"imageUrl": image.data_uri}

    # --- stages ---

    def _thread(self, content: str, tweet_count: int, llm: LLMProvider) -> ThreadResult:
        entries = generate_thread(
            content,
            tweet_count,
            llm,
            output=ResponseFormat(self.settings.thread_output),
            max_chars=self.settings.max_tweet_chars,
        )
        warnings = check_lengths(entries, self.settings.max_tweet_chars, strict=self.settings.strict_length)
        return ThreadResult(entries=entries, warnings=warnings)

    def _image(self, content: str, llm: LLMProvider, backend: ImageBackend):
        return create_image(content, backend, mode=self.settings.image_prompt_mode, llm_provider=llm)

    def _attach_image(self, result: ThreadResult, produce: Callable) -> None:
        """Run the image stage and record either the image or its error."""
        try:
            result.image = produce()
        except BlogThreadError as e:
            logger.warning("Image stage failed, returning thread without image: %s", e)
            result.image_error = e
        except Exception:
            logger.exception("Unexpected image stage failure")
            result.image_error = BlogThreadError(ErrorCode.IMAGE_GENERATION_FAILED, stage=Stage.IMAGE)

    def _thread_and_image_concurrently(
        self,
        content: str,
        tweet_count: int,
        llm: LLMProvider,
        backend: ImageBackend
    ) -> ThreadResult:
        with ThreadPoolExecutor(max_workers=2) as executor:
            thread_future = executor.submit(self._thread, content, tweet_count, llm)
            image_future = executor.submit(self._image, content, llm, backend)

            # Thread failures fail the request; image failures are recorded
            result = thread_future.result()
            self._attach_image(result, image_future.result)

        return result

    # --- content budget ---

    def _check_word_budget(self, content: str) -> None:
        limit = self.settings.max_content_words
        if count_words(content) > limit:
            raise RequestError(
                ErrorCode.REQUEST_CONTENT_TOO_LONG,
                f"Blog content exceeds the {limit}-word limit."
            )

    def _fit_word_budget(self, content: str) -> str:
        limit = self.settings.max_content_words
        words = count_words(content)
        if words > limit:
            logger.warning("Extracted content has %d words; truncating to %d", words, limit)
            return truncate_words(content, limit)
        return content


def thread_body(result: ThreadResult, max_chars: int) -> Dict[str, Any]:
    """Serialise a ThreadResult into the response body."""
    body: Dict[str, Any] = {
        "text": result.text,
        "entries": [entry.to_dict(max_chars) for entry in result.entries],
        "warnings": result.warnings,
    }
    if result.image is not None:
        body["imageUrl"] = result.image.data_uri
    if result.image_error is not None:
        body["imageError"] = result.image_error.message
        body["imageErrorStage"] = result.image_error.stage.value
    return body


def error_response(error: BlogThreadError) -> PipelineResponse:
    """Map a tagged error to the external error envelope."""
    status = STATUS_BY_STAGE.get(error.stage, 500)
    if status >= 500:
        logger.error("Request failed at %s stage: %s", error.stage.value, error)
    else:
        logger.info("Request rejected at %s stage: %s", error.stage.value, error)

    return PipelineResponse(
        status=status,
        body={"error": error.message, "stage": error.stage.value},
    )


def handle_request(data: Any, settings: Settings, **factories) -> PipelineResponse:
    """Convenience wrapper: build a Pipeline and handle one request."""
    return Pipeline(settings, **factories).handle(data)
