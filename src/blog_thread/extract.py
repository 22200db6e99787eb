"""
Content extraction from a URL.

Extraction delegates retrieval to the text model's own search grounding and
runs at most two strictly sequential attempts:

1. Specific: ask for the literal main body text, with a sentinel reply when
   nothing is found.
2. Broad: only if the first attempt returned the sentinel or fewer than
   min_chars characters, ask for a thorough summary instead.

If the broad attempt is also below min_chars the URL is reported as having
no usable content (ExtractionError, a not-found class error).
"""

from dataclasses import dataclass

from .errors import ExtractionError, ErrorCode
from .llm.base import LLMProvider
from .logging import get_logger
from .models import GenerateOptions
from .prompts import (
    CONTENT_NOT_FOUND,
    build_specific_extraction_prompt,
    build_broad_extraction_prompt,
)
from .utils import is_sentinel

MIN_CONTENT_CHARS = 100

EXTRACTION_OPTIONS = GenerateOptions(use_search=True, extraction=True)

logger = get_logger("extract")


@dataclass
class ExtractionResult:
    """Extracted text plus which attempt produced it."""
    text: str
    attempt: str  # "specific" or "broad"


def is_usable(text: str, min_chars: int = MIN_CONTENT_CHARS) -> bool:
    """True if text is neither the sentinel nor shorter than min_chars."""
    if is_sentinel(text, CONTENT_NOT_FOUND):
        return False
    return len(text.strip()) >= min_chars


def extract_content(url: str, llm_provider: LLMProvider, min_chars: int = MIN_CONTENT_CHARS) -> ExtractionResult:
    """
    Extract the main body text of a URL.

    Args:
        url: Page to extract
        llm_provider: Upstream text client (search-grounded)
        min_chars: Minimum trimmed length for a usable result

    Returns:
        ExtractionResult with the usable text

    Raises:
        ExtractionError: If neither attempt yields usable content
        TransportError, GenerationError: Propagated from the upstream client
    """
    specific = build_specific_extraction_prompt(url)
    first = llm_provider.generate(specific.prompt, system=specific.system, options=EXTRACTION_OPTIONS)

    if is_usable(first.text, min_chars):
        logger.info("Specific extraction succeeded for %s (%d chars)", url, len(first.text.strip()))
        return ExtractionResult(text=first.text.strip(), attempt="specific")

    logger.info("Specific extraction unusable for %s (%d chars); trying broad prompt",
                url, len(first.text.strip()))

    broad = build_broad_extraction_prompt(url)
    second = llm_provider.generate(broad.prompt, system=broad.system, options=EXTRACTION_OPTIONS)

    if not is_usable(second.text, min_chars):
        logger.warning("Broad extraction also unusable for %s (%d chars)", url, len(second.text.strip()))
        raise ExtractionError(ErrorCode.EXTRACTION_NOT_FOUND)

    logger.info("Broad extraction succeeded for %s (%d chars)", url, len(second.text.strip()))
    return ExtractionResult(text=second.text.strip(), attempt="broad")
