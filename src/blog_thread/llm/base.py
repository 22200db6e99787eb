"""
Base LLM provider interface.

Defines the abstract base class every upstream text client implements, a
mock implementation for tests and offline development, and the factory that
builds the configured provider from Settings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..errors import BlogThreadError, ConfigError, ErrorCode
from ..models import GenerateOptions, UpstreamTextResult

if TYPE_CHECKING:
    from ..config import Settings


class LLMProvider(ABC):
    """Base class for all upstream text-generation clients."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system: str = "",
        options: Optional[GenerateOptions] = None
    ) -> UpstreamTextResult:
        """
        Issue exactly one upstream call and return its text.

        Args:
            prompt: The main prompt text (non-empty)
            system: System instruction (if supported)
            options: Search toggle, output format and extraction flag

        Returns:
            UpstreamTextResult with non-empty text

        Raises:
            TransportError: Network failure or non-JSON body (non-extraction calls)
            GenerationError: HTTP error status or missing content
        """
        pass


@dataclass
class LLMCall:
    """Record of an LLM call for testing/debugging."""
    prompt: str
    system: str
    options: GenerateOptions
    response: str


class MockLLMProvider(LLMProvider):
    """
    Mock LLM provider for testing.

    Returns queued responses in order (then the fixed response) and tracks
    all calls for assertions.
    """

    def __init__(
        self,
        response: str = "Mock response",
        responses: Optional[Sequence[str]] = None,
        error: Optional[BlogThreadError] = None
    ):
        """
        Initialize mock provider.

        Args:
            response: Fixed response returned once the queue is empty
            responses: Responses returned in order, one per call
            error: Exception to raise instead of returning a response
        """
        self.response = response
        self.queue: List[str] = list(responses or [])
        self.error = error
        self.calls: List[LLMCall] = []

    def generate(
        self,
        prompt: str,
        system: str = "",
        options: Optional[GenerateOptions] = None
    ) -> UpstreamTextResult:
        """Return the next mock response and track the call."""
        options = options or GenerateOptions()
        text = "" if self.error else (self.queue.pop(0) if self.queue else self.response)
        self.calls.append(LLMCall(prompt=prompt, system=system, options=options, response=text))

        if self.error:
            raise self.error

        return UpstreamTextResult(text=text)

    def reset(self):
        """Clear call history."""
        self.calls = []

    def set_response(self, response: str):
        """Change the response for future calls."""
        self.response = response
        self.queue = []
        self.error = None

    def set_error(self, error: BlogThreadError):
        """Set error to raise for future calls."""
        self.error = error


def get_llm_provider(settings: "Settings") -> LLMProvider:
    """
    Build the text provider from settings.

    Raises:
        ConfigError: If the Gemini API key is missing
    """
    from .gemini import GeminiProvider

    if not settings.gemini_api_key:
        raise ConfigError(ErrorCode.CONFIG_MISSING_TEXT_KEY)

    return GeminiProvider(
        api_key=settings.gemini_api_key,
        model=settings.text_model,
        timeout=settings.timeout_seconds,
    )
