"""
Upstream text-generation clients.

Provides a pluggable interface for text models with one concrete Gemini
implementation. Clients issue exactly one request per call and translate
every transport and protocol failure into a tagged pipeline error; retries
and fallbacks are the pipeline's concern.
"""

from .base import LLMProvider, MockLLMProvider, get_llm_provider
from .gemini import GeminiProvider

__all__ = ["LLMProvider", "MockLLMProvider", "GeminiProvider", "get_llm_provider"]
