"""Tests for configuration loading and settings resolution."""

import json

import pytest

from blog_thread.config import (
    DEFAULT_CONFIG, EXPECTED_CONFIG_VERSION, Settings,
    load_config, find_config_file, resolve_settings,
    require_text_credentials, require_image_credentials, _deep_merge
)
from blog_thread.errors import ConfigError, ErrorCode, Stage


def write_config(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return str(path)


# === load_config ===

def test_load_minimal_config(tmp_path):
    """Version-only file gets every default."""
    config = load_config(write_config(tmp_path, {"version": 1}))
    assert config["llm"]["model"] == "gemini-2.5-flash"
    assert config["thread"]["max_tweet_chars"] == 280
    assert config["extraction"]["min_content_chars"] == 100


def test_load_config_overrides_nested(tmp_path):
    """Nested values are merged, siblings keep defaults."""
    config = load_config(write_config(tmp_path, {
        "version": 1,
        "thread": {"output": "text", "max_tweets": 20},
        "image": {"backend": "imagen"},
    }))
    assert config["thread"]["output"] == "text"
    assert config["thread"]["max_tweets"] == 20
    assert config["thread"]["min_tweets"] == 3
    assert config["image"]["backend"] == "imagen"
    assert config["image"]["prompt_mode"] == "derived"


def test_load_config_does_not_mutate_defaults(tmp_path):
    """Merging never writes into DEFAULT_CONFIG."""
    config = load_config(write_config(tmp_path, {"version": 1}))
    config["thread"]["max_tweets"] = 99
    assert DEFAULT_CONFIG["thread"]["max_tweets"] == 15


def test_missing_explicit_file(tmp_path):
    """Explicit path that doesn't exist is an error."""
    with pytest.raises(ConfigError) as exc:
        load_config(str(tmp_path / "nope.json"))
    assert exc.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND
    assert exc.value.stage == Stage.CONFIG


def test_invalid_json(tmp_path):
    """Malformed JSON is reported."""
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError) as exc:
        load_config(str(path))
    assert exc.value.code == ErrorCode.CONFIG_INVALID_JSON


def test_non_object_root(tmp_path):
    """Root must be an object."""
    with pytest.raises(ConfigError) as exc:
        load_config(write_config(tmp_path, [1, 2]))
    assert exc.value.code == ErrorCode.CONFIG_INVALID_JSON


def test_version_mismatch(tmp_path):
    """Unsupported version is rejected."""
    with pytest.raises(ConfigError) as exc:
        load_config(write_config(tmp_path, {"version": EXPECTED_CONFIG_VERSION + 1}))
    assert exc.value.code == ErrorCode.CONFIG_VERSION_MISMATCH


@pytest.mark.parametrize("override", [
    {"llm": {"provider": "openai"}},
    {"llm": {"timeout_seconds": 0}},
    {"image": {"backend": "dalle"}},
    {"image": {"prompt_mode": "auto"}},
    {"thread": {"output": "xml"}},
    {"thread": {"max_tweet_chars": 0}},
    {"thread": {"min_tweets": 10, "max_tweets": 5}},
    {"extraction": {"min_content_chars": -1}},
])
def test_invalid_values(tmp_path, override):
    """Out-of-range or unknown values are rejected."""
    with pytest.raises(ConfigError) as exc:
        load_config(write_config(tmp_path, {"version": 1, **override}))
    assert exc.value.code == ErrorCode.CONFIG_INVALID_VALUE


@pytest.mark.parametrize("override", [
    {"thread": {"min_tweets": "3"}},
    {"thread": {"max_tweet_chars": True}},
    {"thread": {"max_content_words": 5000.5}},
    {"llm": {"timeout_seconds": "30"}},
    {"extraction": {"min_content_chars": None}},
])
def test_wrong_value_types(tmp_path, override):
    """Numbers given as strings, booleans or null are rejected as invalid values."""
    with pytest.raises(ConfigError) as exc:
        load_config(write_config(tmp_path, {"version": 1, **override}))
    assert exc.value.code == ErrorCode.CONFIG_INVALID_VALUE


def test_fractional_timeout_is_accepted(tmp_path):
    """Timeouts may be fractional seconds."""
    config = load_config(write_config(tmp_path, {"version": 1, "llm": {"timeout_seconds": 2.5}}))
    assert config["llm"]["timeout_seconds"] == 2.5


def test_no_config_file_uses_defaults(tmp_path, monkeypatch):
    """Without any file on the search path, defaults are returned."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert find_config_file() is None
    assert load_config() == DEFAULT_CONFIG


def test_find_config_in_cwd(tmp_path, monkeypatch):
    """blog-thread-config.json in the working directory is found."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "blog-thread-config.json").write_text(json.dumps({"version": 1}))
    assert find_config_file() == "./blog-thread-config.json"


def test_deep_merge():
    """Nested dicts merge recursively, other values replace."""
    merged = _deep_merge({"a": {"b": 1, "c": 2}, "d": [1]}, {"a": {"b": 3}, "d": [2]})
    assert merged == {"a": {"b": 3, "c": 2}, "d": [2]}


# === resolve_settings ===

def test_resolve_settings_defaults():
    """Defaults without env give no credentials."""
    settings = resolve_settings(environ={})
    assert settings.gemini_api_key is None
    assert settings.image_api_key is None
    assert settings.image_backend == "gemini"
    assert settings.image_model == "gemini-2.5-flash-image-preview"
    assert settings.thread_output == "json"
    assert not settings.has_text_credentials


def test_resolve_settings_from_env():
    """GEMINI_API_KEY is used for both text and image by default."""
    settings = resolve_settings(environ={"GEMINI_API_KEY": "g-key"})
    assert settings.gemini_api_key == "g-key"
    assert settings.image_api_key == "g-key"
    assert settings.has_text_credentials
    assert settings.has_image_credentials


def test_resolve_settings_separate_image_key():
    """IMAGE_API_KEY overrides the shared key for images only."""
    settings = resolve_settings(environ={"GEMINI_API_KEY": "g-key", "IMAGE_API_KEY": "i-key"})
    assert settings.gemini_api_key == "g-key"
    assert settings.image_api_key == "i-key"


def test_resolve_settings_image_backend_env():
    """IMAGE_BACKEND selects the backend and its default model."""
    settings = resolve_settings(environ={"IMAGE_BACKEND": "imagen"})
    assert settings.image_backend == "imagen"
    assert settings.image_model == "imagen-3.0-generate-002"


def test_resolve_settings_unknown_backend_env():
    """Unknown backend from env is a config error."""
    with pytest.raises(ConfigError):
        resolve_settings(environ={"IMAGE_BACKEND": "dalle"})


def test_resolve_settings_from_config(tmp_path):
    """File values flow into Settings."""
    config = load_config(write_config(tmp_path, {
        "version": 1,
        "llm": {"model": "gemini-2.5-pro", "timeout_seconds": 60},
        "image": {"backend": "imagen", "model": "imagen-4.0", "prompt_mode": "direct"},
        "thread": {"strict_length": True},
        "pipeline": {"concurrent_image": True},
    }))
    settings = resolve_settings(config, environ={})
    assert settings.text_model == "gemini-2.5-pro"
    assert settings.timeout_seconds == 60
    assert settings.image_model == "imagen-4.0"
    assert settings.image_prompt_mode == "direct"
    assert settings.strict_length is True
    assert settings.concurrent_image is True


def test_settings_are_frozen():
    """Settings cannot be mutated after resolution."""
    settings = Settings()
    with pytest.raises(AttributeError):
        settings.gemini_api_key = "x"


def test_require_credentials():
    """Missing keys raise ConfigError before any network call."""
    with pytest.raises(ConfigError) as exc:
        require_text_credentials(Settings())
    assert exc.value.message == "API key is not configured."

    with pytest.raises(ConfigError) as exc:
        require_image_credentials(Settings(gemini_api_key="k"))
    assert exc.value.code == ErrorCode.CONFIG_MISSING_IMAGE_KEY

    require_text_credentials(Settings(gemini_api_key="k"))
    require_image_credentials(Settings(image_api_key="k"))
