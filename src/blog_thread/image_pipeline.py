"""
Optional image stage.

Two ways to get from source content to an image, chosen by configuration:

- "direct": wrap the raw content in a fixed art-direction prompt and send it
  straight to the image backend
- "derived": first ask the text model for a dedicated, style-rich image
  prompt, then send that to the image backend

Failures while deriving the prompt are GenerationErrors (IMAGE_PROMPT_FAILED);
failures inside the backend stay ImageErrors, so callers can tell them apart.
"""

from typing import Optional

from .errors import BlogThreadError, GenerationError, ErrorCode
from .imagegen.base import ImageBackend
from .llm.base import LLMProvider
from .logging import get_logger
from .models import ImageResult
from .prompts import build_direct_image_prompt, build_image_prompt_request

PROMPT_MODE_DERIVED = "derived"
PROMPT_MODE_DIRECT = "direct"

logger = get_logger("image")


def derive_image_prompt(content: str, llm_provider: LLMProvider) -> str:
    """
    Ask the text model for a detailed image prompt describing content.

    Raises:
        GenerationError: If the upstream call fails or returns nothing usable
    """
    pair = build_image_prompt_request(content)
    try:
        result = llm_provider.generate(pair.prompt, system=pair.system)
    except BlogThreadError as e:
        logger.warning("Image prompt derivation failed: %s", e)
        raise GenerationError(ErrorCode.IMAGE_PROMPT_FAILED) from e

    prompt = result.text.strip().strip('"').strip()
    if not prompt:
        raise GenerationError(ErrorCode.IMAGE_PROMPT_FAILED)

    return prompt


def resolve_image_prompt(
    content: Optional[str],
    mode: str = PROMPT_MODE_DERIVED,
    llm_provider: Optional[LLMProvider] = None,
    image_prompt: Optional[str] = None
) -> str:
    """
    Decide the prompt sent to the image backend.

    An explicit image_prompt always wins; otherwise the configured mode
    decides between deriving one and using the content directly.
    """
    if image_prompt:
        return image_prompt

    if not content:
        raise GenerationError(ErrorCode.IMAGE_PROMPT_FAILED, "No content to illustrate")

    if mode == PROMPT_MODE_DERIVED:
        if llm_provider is None:
            raise GenerationError(ErrorCode.IMAGE_PROMPT_FAILED, "No text model available to derive a prompt")
        return derive_image_prompt(content, llm_provider)

    return build_direct_image_prompt(content)


def create_image(
    content: Optional[str],
    backend: ImageBackend,
    mode: str = PROMPT_MODE_DERIVED,
    llm_provider: Optional[LLMProvider] = None,
    image_prompt: Optional[str] = None
) -> ImageResult:
    """
    Run the image stage end to end.

    Args:
        content: Source text to illustrate
        backend: Image backend to synthesise with
        mode: "derived" or "direct"
        llm_provider: Text client, required for derived mode
        image_prompt: Caller-supplied prompt that skips derivation

    Returns:
        ImageResult (base64 PNG)

    Raises:
        GenerationError: Prompt derivation failed
        ImageError: Image synthesis failed
    """
    prompt = resolve_image_prompt(content, mode=mode, llm_provider=llm_provider, image_prompt=image_prompt)
    logger.info("Generating image with %s (%s prompt, %d chars)",
                backend.name, "explicit" if image_prompt else mode, len(prompt))
    return backend.generate_image(prompt)
