"""Logging setup (loguru, stderr only) with credential redaction."""

import re
import sys
from typing import Any

from loguru import logger

from .config import Settings

SENSITIVE_KEYS = (
    "apikey",
    "api_key",
    "password",
    "token",
    "secret",
    "authorization",
    "auth",
    "key",
    "credential",
    "private",
)

MAX_EXTRA_LENGTH = 50
MAX_DEPTH = 10

_API_KEY_RE = re.compile(r"\b(?:sg|SG)_[A-Za-z0-9]{12,}")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "{name}:{function} - <level>{message}</level> {extra}"
)


def redact_text(text: str) -> str:
    """Replace credential-shaped substrings."""
    return _API_KEY_RE.sub("[REDACTED_API_KEY]", text)


def sanitize(value: Any, depth: int = 0) -> Any:
    """Recursively redact sensitive fields and truncate long strings."""
    if depth > MAX_DEPTH:
        return "[MAX_DEPTH]"
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, (list, tuple)):
        return [sanitize(item, depth + 1) for item in value]
    if isinstance(value, dict):
        cleaned: dict[str, Any] = {}
        for key, item in value.items():
            lowered = str(key).lower()
            if any(word in lowered for word in SENSITIVE_KEYS):
                cleaned[key] = "[REDACTED]"
            elif isinstance(item, str) and len(item) > MAX_EXTRA_LENGTH:
                cleaned[key] = redact_text(item[:MAX_EXTRA_LENGTH]) + "...[TRUNCATED]"
            else:
                cleaned[key] = sanitize(item, depth + 1)
        return cleaned
    return value


def _redacting_patcher(record: dict[str, Any]) -> None:
    record["message"] = redact_text(record["message"])
    record["extra"].update(sanitize(dict(record["extra"])))


def setup_logging(settings: Settings) -> None:
    """Route all logging to stderr; stdout carries the MCP stream."""
    logger.remove()
    if settings.sanitize_logs:
        logger.configure(patcher=_redacting_patcher)
    logger.add(sys.stderr, level=settings.log_level, format=LOG_FORMAT, backtrace=False, diagnose=False)
