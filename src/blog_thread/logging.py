"""
Logging configuration for blog-thread.

One "blog_thread" logger with child loggers per pipeline component. Output
goes to a rotating log file (5MB, 3 backups) and to stderr. A SecretFilter is
attached to every handler so configured API keys are masked even if an
upstream error message happens to echo them back.

Level precedence: explicit argument, LOG_LEVEL environment variable, config
file ("logging.level"), then INFO.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Dict, Any, Iterable, List


_logger: Optional[logging.Logger] = None

DEFAULT_LOG_FILE = "data/blog-thread.log"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CONSOLE_LEVEL = "WARNING"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
REDACTED = "***"

# Values shorter than this are never masked
MIN_SECRET_LENGTH = 8


class SecretFilter(logging.Filter):
    """Mask secret values in formatted log messages."""

    def __init__(self, secrets: Iterable[Optional[str]] = ()):
        super().__init__()
        self.secrets: List[str] = [s for s in secrets if s and len(s) >= MIN_SECRET_LENGTH]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = redact(message, self.secrets)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def redact(text: str, secrets: Iterable[Optional[str]]) -> str:
    """Replace every occurrence of each secret in text."""
    for secret in secrets:
        if secret and len(secret) >= MIN_SECRET_LENGTH:
            text = text.replace(secret, REDACTED)
    return text


def _resolve_level(name: Optional[str], fallback: int) -> int:
    level = getattr(logging, (name or "").upper(), None)
    return level if isinstance(level, int) else fallback


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
    console_level: Optional[str] = None,
    secrets: Iterable[Optional[str]] = (),
    file_logging: bool = True,
) -> logging.Logger:
    """
    Configure and return the blog-thread logger.

    Args:
        config: Configuration dictionary (optional, reads the "logging" section)
        log_file: Override log file path
        log_level: Override log level
        console_level: Override stderr handler level (default WARNING)
        secrets: Values to mask in every log line (API keys)
        file_logging: Set False to log to stderr only

    Returns:
        Configured logging.Logger instance
    """
    global _logger

    logging_config = (config or {}).get("logging", {})

    level = _resolve_level(
        log_level or os.environ.get("LOG_LEVEL") or logging_config.get("level") or DEFAULT_LOG_LEVEL,
        logging.INFO,
    )
    stderr_level = _resolve_level(
        console_level or logging_config.get("console_level") or DEFAULT_CONSOLE_LEVEL,
        logging.WARNING,
    )

    logger = logging.getLogger("blog_thread")
    logger.setLevel(level)
    logger.handlers.clear()
    # Uvicorn installs root handlers; keep our lines from printing twice
    logger.propagate = False

    formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
    secret_filter = SecretFilter(secrets)

    if file_logging:
        log_path = Path(log_file or logging_config.get("file") or DEFAULT_LOG_FILE)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                str(log_path),
                maxBytes=logging_config.get("max_bytes", DEFAULT_MAX_BYTES),
                backupCount=logging_config.get("backup_count", DEFAULT_BACKUP_COUNT),
                encoding="utf-8",
            )
        except OSError:
            # Read-only deployments still get stderr logging
            file_handler = None
        if file_handler is not None:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(secret_filter)
            logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(stderr_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(secret_filter)
    logger.addHandler(console_handler)

    _logger = logger
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get the blog-thread logger or a child logger.

    Before setup_logging() has run this returns the bare "blog_thread"
    logger without adding handlers, so library use and tests inherit
    whatever the host application configured.

    Args:
        name: Optional child logger name (e.g., "extract", "thread")
    """
    base = _logger or logging.getLogger("blog_thread")
    if name:
        return base.getChild(name)
    return base
