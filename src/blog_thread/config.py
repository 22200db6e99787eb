"""
Configuration loading and validation for blog-thread.

Configuration is resolved exactly once at startup: an optional versioned JSON
file is merged over DEFAULT_CONFIG, environment variables are overlaid, and
the result is frozen into a Settings instance that is passed explicitly to
the orchestrator. Nothing in the pipeline reads os.environ at request time.

A missing config file is not an error for the server; credentials are only
checked when a request actually needs them (see require_text_credentials and
require_image_credentials).
"""

import copy
import json
import os
from dataclasses import dataclass
from typing import Dict, Any, Optional, Mapping

from .errors import ConfigError, ErrorCode

# Expected configuration version
EXPECTED_CONFIG_VERSION = 1

IMAGE_BACKENDS = ("gemini", "imagen")
IMAGE_PROMPT_MODES = ("derived", "direct")
THREAD_OUTPUTS = ("json", "text")

DEFAULT_IMAGE_MODELS = {
    "gemini": "gemini-2.5-flash-image-preview",
    "imagen": "imagen-3.0-generate-002",
}

# Default configuration values
DEFAULT_CONFIG = {
    "version": EXPECTED_CONFIG_VERSION,
    "llm": {
        "provider": "gemini",
        "model": "gemini-2.5-flash",
        "timeout_seconds": 30
    },
    "image": {
        "backend": "gemini",
        "model": None,
        "prompt_mode": "derived"
    },
    "extraction": {
        "min_content_chars": 100
    },
    "thread": {
        "output": "json",
        "min_tweets": 3,
        "max_tweets": 15,
        "max_tweet_chars": 280,
        "max_content_words": 5000,
        "strict_length": False
    },
    "pipeline": {
        "concurrent_image": False
    }
}


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration resolved at startup."""
    gemini_api_key: Optional[str] = None
    text_model: str = "gemini-2.5-flash"
    image_backend: str = "gemini"
    image_model: str = DEFAULT_IMAGE_MODELS["gemini"]
    image_api_key: Optional[str] = None
    image_prompt_mode: str = "derived"
    thread_output: str = "json"
    timeout_seconds: float = 30
    min_content_chars: int = 100
    max_content_words: int = 5000
    min_tweets: int = 3
    max_tweets: int = 15
    max_tweet_chars: int = 280
    strict_length: bool = False
    concurrent_image: bool = False

    @property
    def has_text_credentials(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_image_credentials(self) -> bool:
        return bool(self.image_api_key)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate configuration file.

    Args:
        config_path: Optional path to config file. If None, searches default
            locations and falls back to DEFAULT_CONFIG when none exists.

    Returns:
        Validated configuration dictionary with defaults merged.

    Raises:
        ConfigError: If an explicit config file is missing, invalid, or fails validation.
    """
    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            return _deep_merge(DEFAULT_CONFIG, {})

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw_config = json.load(f)
    except FileNotFoundError:
        raise ConfigError(ErrorCode.CONFIG_FILE_NOT_FOUND)
    except json.JSONDecodeError:
        raise ConfigError(ErrorCode.CONFIG_INVALID_JSON)

    if not isinstance(raw_config, dict):
        raise ConfigError(ErrorCode.CONFIG_INVALID_JSON, "Configuration root must be an object")

    config_version = raw_config.get("version")
    if config_version != EXPECTED_CONFIG_VERSION:
        raise ConfigError(
            ErrorCode.CONFIG_VERSION_MISMATCH,
            f"Expected version {EXPECTED_CONFIG_VERSION}, got {config_version}"
        )

    config = _deep_merge(DEFAULT_CONFIG, raw_config)
    _validate_config_values(config)
    return config


def find_config_file() -> Optional[str]:
    """Find configuration file in default search paths."""
    search_paths = [
        "./blog-thread-config.json",
        os.path.expanduser("~/.config/blog-thread/config.json")
    ]

    for path in search_paths:
        if os.path.exists(path):
            return path

    return None


def resolve_settings(
    config: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """
    Resolve the immutable Settings from config and environment.

    Environment variables win over file values for credentials:
    GEMINI_API_KEY for text, IMAGE_API_KEY for the image backend (falls back
    to the Gemini key, since both backends are Google endpoints).

    Args:
        config: Loaded configuration dictionary (defaults if None)
        environ: Environment mapping (os.environ if None)

    Returns:
        Frozen Settings instance
    """
    if config is None:
        config = _deep_merge(DEFAULT_CONFIG, {})
    if environ is None:
        environ = os.environ

    llm_config = config.get("llm", {})
    image_config = config.get("image", {})
    thread_config = config.get("thread", {})

    gemini_api_key = environ.get("GEMINI_API_KEY") or llm_config.get("api_key") or None
    image_api_key = (
        environ.get("IMAGE_API_KEY")
        or image_config.get("api_key")
        or gemini_api_key
    )

    image_backend = environ.get("IMAGE_BACKEND") or image_config.get("backend", "gemini")
    if image_backend not in IMAGE_BACKENDS:
        raise ConfigError(ErrorCode.CONFIG_INVALID_VALUE, f"Unknown image backend: {image_backend}")

    image_model = image_config.get("model") or DEFAULT_IMAGE_MODELS[image_backend]

    return Settings(
        gemini_api_key=gemini_api_key,
        text_model=llm_config.get("model", "gemini-2.5-flash"),
        image_backend=image_backend,
        image_model=image_model,
        image_api_key=image_api_key or None,
        image_prompt_mode=image_config.get("prompt_mode", "derived"),
        thread_output=thread_config.get("output", "json"),
        timeout_seconds=llm_config.get("timeout_seconds", 30),
        min_content_chars=config.get("extraction", {}).get("min_content_chars", 100),
        max_content_words=thread_config.get("max_content_words", 5000),
        min_tweets=thread_config.get("min_tweets", 3),
        max_tweets=thread_config.get("max_tweets", 15),
        max_tweet_chars=thread_config.get("max_tweet_chars", 280),
        strict_length=bool(thread_config.get("strict_length", False)),
        concurrent_image=bool(config.get("pipeline", {}).get("concurrent_image", False)),
    )


def require_text_credentials(settings: Settings) -> None:
    """Raise ConfigError if the text-generation key is missing."""
    if not settings.has_text_credentials:
        raise ConfigError(ErrorCode.CONFIG_MISSING_TEXT_KEY)


def require_image_credentials(settings: Settings) -> None:
    """Raise ConfigError if the image backend key is missing."""
    if not settings.has_image_credentials:
        raise ConfigError(ErrorCode.CONFIG_MISSING_IMAGE_KEY)


def _validate_config_values(config: Dict[str, Any]) -> None:
    """Validate configuration field values."""
    if config["llm"].get("provider") != "gemini":
        raise ConfigError(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Unknown llm provider: {config['llm'].get('provider')}"
        )

    if not _is_positive(config["llm"]["timeout_seconds"], (int, float)):
        raise ConfigError(ErrorCode.CONFIG_INVALID_VALUE, "llm.timeout_seconds must be a positive number")

    image = config["image"]
    if image["backend"] not in IMAGE_BACKENDS:
        raise ConfigError(ErrorCode.CONFIG_INVALID_VALUE, f"Unknown image backend: {image['backend']}")
    if image["prompt_mode"] not in IMAGE_PROMPT_MODES:
        raise ConfigError(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"image.prompt_mode must be one of {', '.join(IMAGE_PROMPT_MODES)}"
        )

    thread = config["thread"]
    if thread["output"] not in THREAD_OUTPUTS:
        raise ConfigError(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"thread.output must be one of {', '.join(THREAD_OUTPUTS)}"
        )

    for field in ["min_tweets", "max_tweets", "max_tweet_chars", "max_content_words"]:
        if not _is_positive(thread[field], int):
            raise ConfigError(ErrorCode.CONFIG_INVALID_VALUE, f"thread.{field} must be a positive integer")

    if thread["min_tweets"] > thread["max_tweets"]:
        raise ConfigError(ErrorCode.CONFIG_INVALID_VALUE, "thread.min_tweets cannot exceed thread.max_tweets")

    if not _is_positive(config["extraction"]["min_content_chars"], int):
        raise ConfigError(
            ErrorCode.CONFIG_INVALID_VALUE, "extraction.min_content_chars must be a positive integer"
        )


def _is_positive(value: Any, types) -> bool:
    """True for a positive value of the given type(s). Booleans never count."""
    return isinstance(value, types) and not isinstance(value, bool) and value > 0


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries."""
    result = copy.deepcopy(base)

    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
