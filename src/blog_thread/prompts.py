"""
Prompt construction for every upstream call.

All functions here are pure: given task parameters they return the exact
instruction strings (and, for structured output, the response schema) sent to
the text model. Keeping prompts in one place makes them easy to test and to
tune without touching pipeline logic.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from .models import ResponseFormat


# Returned by the extraction prompt when the page has no body text
CONTENT_NOT_FOUND = "Content not found"

MAX_TWEET_CHARS = 280

# Schema for structured thread output: an array of tweet strings
THREAD_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {"type": "STRING"}
}


@dataclass(frozen=True)
class PromptPair:
    """User prompt plus system instruction for one upstream call."""
    prompt: str
    system: str = ""
    schema: Optional[Dict[str, Any]] = None


def build_specific_extraction_prompt(url: str) -> PromptPair:
    """
    Build the narrowly scoped extraction prompt (first attempt).

    Asks for the literal main body text only, and for the sentinel phrase
    when nothing can be found.
    """
    system = (
        "You are a web content extractor. Retrieve the page at the given URL and "
        "return only its main body text: the article itself, without navigation, "
        "headers, footers, comments, advertisements or commentary of your own. "
        f"If you cannot find any main body text, reply with exactly: {CONTENT_NOT_FOUND}"
    )
    prompt = f"Extract the full main body text from this URL: {url}"
    return PromptPair(prompt=prompt, system=system)


def build_broad_extraction_prompt(url: str) -> PromptPair:
    """
    Build the summarisation-oriented fallback prompt (second attempt).

    Used when literal extraction yields the sentinel or too little text.
    """
    system = (
        "You are a web content analyzer. Find the full, main body text of the given URL. "
        "If the literal text is not available, write a thorough, faithful summary of "
        "everything the page covers: its core argument, key points, examples and "
        "conclusions. Return only the content as a single block of text."
    )
    prompt = f"Find and summarize the core content from this URL: {url}"
    return PromptPair(prompt=prompt, system=system)


def build_thread_prompt(
    content: str,
    tweet_count: int,
    response_format: ResponseFormat = ResponseFormat.TEXT,
    max_chars: int = MAX_TWEET_CHARS
) -> PromptPair:
    """
    Build the thread conversion prompt.

    Args:
        content: Source text to convert
        tweet_count: Exact number of tweets required
        response_format: TEXT for blank-line separated tweets, JSON for a
            schema-constrained array of strings
        max_chars: Per-tweet character ceiling, marker included

    Returns:
        PromptPair; `schema` is set only for JSON output
    """
    if response_format == ResponseFormat.JSON:
        output_rule = "Output ONLY the tweets as a JSON array of strings, one string per tweet."
        schema = THREAD_RESPONSE_SCHEMA
    else:
        output_rule = "Output only the tweets, separated by blank lines. No preamble, no headings."
        schema = None

    system = f"""You are a world-class content strategist and copywriter for Twitter.
Your task is to take a block of text and convert it into a well-structured, engaging Twitter thread.
Follow these rules carefully:
1. The output must be exactly {tweet_count} tweets.
2. Each tweet must be no more than {max_chars} characters long, including its number.
3. The first tweet must be a hook that grabs attention.
4. The thread must flow logically from one tweet to the next.
5. Each tweet must begin with its number in the format 'x/{tweet_count}' (e.g. '1/{tweet_count}', '2/{tweet_count}').
6. Use a catchy, clear tone and relevant emojis where they help.
7. {output_rule}"""

    prompt = f"""Convert the following blog post content into a {tweet_count}-tweet Twitter thread.
Ensure each tweet is a maximum of {max_chars} characters and includes a tweet number (e.g. '1/{tweet_count}'):

{content}"""

    return PromptPair(prompt=prompt, system=system, schema=schema)


def build_direct_image_prompt(content: str) -> str:
    """Image prompt generated straight from the source text."""
    return f'Create a visually compelling digital art image based on the following text: "{content}"'


def build_image_prompt_request(content: str) -> PromptPair:
    """
    Build the text-model prompt that derives a style-rich image prompt.

    The model's answer is used verbatim as the image backend prompt.
    """
    prompt = f"""Based on the following blog post content, generate a detailed and descriptive image generation prompt. The prompt should be for a high-quality, professional illustration that captures the essence and key themes of the text. Focus on style, subject matter, mood, and lighting.

Example output: "High-resolution digital illustration of a futuristic, glowing data network overlaid on a modern city skyline at dusk. The style is clean and geometric, with a focus on vibrant blue and purple neon lights. There is a sense of movement and connection, with lines representing data flow. The mood is innovative and forward-looking. 8K, cinematic lighting."

Return only the prompt text, with no preamble and no quotes.

Blog Post Content:
{content}"""
    return PromptPair(prompt=prompt)
