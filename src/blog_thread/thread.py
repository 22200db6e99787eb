"""
Thread generation.

Converts source text into exactly N numbered thread entries. The upstream
model may answer in either output contract:

- structured: a JSON array of tweet strings, or of objects holding the text
  under "text" / "tweet" / "content" / "body" (optionally wrapped in
  {"tweets": [...]})
- free text: tweets separated by blank lines

Either way numbering is re-derived from position. A leading marker is only
dropped when it matches the entry's own "k/N"; any other leading fraction
belongs to the tweet. A segment count other than N is a generation error.
Nothing is truncated or padded.
"""

import json
import re
from typing import List, Any, Optional

from .errors import GenerationError, ErrorCode
from .llm.base import LLMProvider
from .logging import get_logger
from .models import GenerateOptions, ResponseFormat, ThreadEntry
from .prompts import build_thread_prompt, MAX_TWEET_CHARS
from .utils import strip_marker, format_marker, truncate_text

TEXT_KEYS = ("text", "tweet", "content", "body")
WRAPPER_KEYS = ("tweets", "entries", "thread")

_BLANK_LINE = re.compile(r"\n\s*\n")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

logger = get_logger("thread")


def generate_thread(
    content: str,
    tweet_count: int,
    llm_provider: LLMProvider,
    output: ResponseFormat = ResponseFormat.JSON,
    max_chars: int = MAX_TWEET_CHARS
) -> List[ThreadEntry]:
    """
    Generate a thread of exactly tweet_count entries.

    Args:
        content: Source text (word budget already enforced by the caller)
        tweet_count: Number of entries required
        llm_provider: Upstream text client
        output: Requested output contract
        max_chars: Per-entry ceiling written into the prompt

    Returns:
        Ordered ThreadEntry list of length tweet_count

    Raises:
        GenerationError: If the output cannot be parsed into tweet_count entries
    """
    pair = build_thread_prompt(content, tweet_count, response_format=output, max_chars=max_chars)
    options = GenerateOptions(response_format=output, response_schema=pair.schema)

    result = llm_provider.generate(pair.prompt, system=pair.system, options=options)
    entries = parse_thread_output(result.text, tweet_count)

    logger.info("Generated %d-entry thread (%s output)", len(entries), output.value)
    return entries


def parse_thread_output(text: str, tweet_count: int) -> List[ThreadEntry]:
    """
    Parse upstream output in either contract into entries.

    JSON is tried first when the text looks like JSON; anything else is
    treated as blank-line separated free text.
    """
    segments = _parse_structured(text)
    if segments is None:
        segments = split_free_text(text)

    return build_entries(segments, tweet_count)


def split_free_text(text: str) -> List[str]:
    """Split free-text output on blank lines, dropping empty segments."""
    return [segment.strip() for segment in _BLANK_LINE.split(text.strip()) if segment.strip()]


def structured_segments(data: Any) -> List[str]:
    """
    Turn decoded structured output into a list of tweet strings.

    Raises:
        GenerationError: If the structure is not an array of strings/objects
    """
    if isinstance(data, dict):
        for key in WRAPPER_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break

    if not isinstance(data, list):
        raise GenerationError(ErrorCode.GENERATION_INVALID_OUTPUT, "Structured output is not an array")

    segments = []
    for item in data:
        if isinstance(item, str):
            segments.append(item)
        elif isinstance(item, dict):
            text = next((item[key] for key in TEXT_KEYS if isinstance(item.get(key), str)), None)
            if text is None:
                raise GenerationError(ErrorCode.GENERATION_INVALID_OUTPUT, "Structured entry has no text")
            segments.append(text)
        else:
            raise GenerationError(ErrorCode.GENERATION_INVALID_OUTPUT, "Structured entry is not text")

    return segments


def build_entries(segments: List[str], tweet_count: int) -> List[ThreadEntry]:
    """
    Number segments positionally as "k/N".

    Raises:
        GenerationError: On count mismatch or an empty segment
    """
    if len(segments) != tweet_count:
        logger.warning("Expected %d tweets, upstream produced %d", tweet_count, len(segments))
        raise GenerationError(ErrorCode.GENERATION_COUNT_MISMATCH)

    entries = []
    for index, segment in enumerate(segments, 1):
        text = strip_marker(segment, index, tweet_count)
        if not text:
            raise GenerationError(ErrorCode.GENERATION_INVALID_OUTPUT, f"Tweet {index} is empty")
        entries.append(ThreadEntry(
            index=index,
            total=tweet_count,
            body=f"{format_marker(index, tweet_count)} {text}",
        ))

    return entries


def check_lengths(entries: List[ThreadEntry], max_chars: int = MAX_TWEET_CHARS, strict: bool = False) -> List[str]:
    """
    Check each entry against the character ceiling.

    Upstream compliance is best-effort, so by default over-length entries
    produce warnings for the caller to display. With strict=True the first
    offender raises instead.

    Returns:
        Warning strings, one per over-length entry

    Raises:
        GenerationError: In strict mode, if any entry exceeds max_chars
    """
    warnings = []
    for entry in entries:
        if entry.exceeds(max_chars):
            message = (
                f"Tweet {entry.marker} is {entry.length} characters "
                f"(limit {max_chars}): {truncate_text(entry.body, 40)}"
            )
            if strict:
                raise GenerationError(ErrorCode.GENERATION_TWEET_TOO_LONG, message)
            warnings.append(message)

    if warnings:
        logger.warning("%d tweet(s) over %d characters", len(warnings), max_chars)
    return warnings


def _parse_structured(text: str) -> Optional[List[str]]:
    """Return segments if text is JSON, else None for free-text parsing."""
    candidate = text.strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    if not candidate.startswith(("[", "{")):
        return None

    try:
        data = json.loads(candidate)
    except ValueError:
        return None

    return structured_segments(data)
