"""Utility functions for image input handling and response text."""

import base64
import binascii
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from loguru import logger

from .cache import ImageCache
from .errors import InvalidInputError

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/ogg": ".ogg",
    "audio/flac": ".flac",
}

_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:\\")
_DATA_URI_RE = re.compile(r"^data:([^;,]+);base64,(.*)$", re.DOTALL)
_IMAGE_DATA_URI_RE = re.compile(r"^data:image/(png|jpeg|jpg|webp|gif);base64,", re.IGNORECASE)

MiB = 1024 * 1024


def is_local_path(value: str) -> bool:
    """Check if input is an absolute file path (/..., ~/..., C:\\...)."""
    return value.startswith(("/", "~/")) or bool(_WINDOWS_DRIVE_RE.match(value))


def looks_like_path(value: str) -> bool:
    """Check if input reads as a file path of any kind (has a separator or an image extension)."""
    return "/" in value or "\\" in value or Path(value).suffix.lower() in MIME_TYPES


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def is_base64(value: str) -> bool:
    try:
        decode_base64(value)
    except InvalidInputError:
        return False
    return True


def _file_exists(value: str) -> bool:
    # long base64 payloads can exceed the OS path length limit
    try:
        return Path(value).expanduser().exists()
    except (OSError, ValueError):
        return False


def guess_mime_from_path(path: str | Path, default: str = "image/png") -> str:
    return MIME_TYPES.get(Path(path).suffix.lower(), default)


def guess_extension_from_mime(mime_type: str, default: str = ".png") -> str:
    """Guess file extension from MIME type."""
    mime_type = mime_type.split(";")[0].strip().lower()
    if mime_type in EXTENSIONS:
        return EXTENSIONS[mime_type]
    subtype = mime_type.split("/")[-1] if "/" in mime_type else ""
    return f".{subtype}" if subtype.isalnum() else default


def split_data_uri(value: str) -> tuple[str | None, str]:
    """Split a data URI into (mime type, base64 payload); plain input passes through."""
    match = _DATA_URI_RE.match(value)
    if match:
        return match.group(1), match.group(2)
    return None, value


def strip_data_uri(value: str) -> str:
    return split_data_uri(value)[1]


def decode_base64(value: str) -> bytes:
    """Strictly decode base64, tolerating embedded whitespace.

    Raises:
        InvalidInputError: If the payload is not valid base64
    """
    cleaned = "".join(value.split())
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("Invalid base64 image data") from e


def encode_file_to_base64(path: Path) -> str:
    return base64.b64encode(path.read_bytes()).decode("utf-8")


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / MiB:.2f}MB ({num_bytes / 1024:.0f}KB)"


@dataclass(frozen=True)
class ResolvedImage:
    """An image argument after resolution.

    ``value`` is what gets sent upstream: a URL, or raw base64 without a
    data-URI prefix.
    """

    value: str
    kind: Literal["cached", "url", "base64"]
    size: int | None = None
    cache_token: str | None = None
    source_path: str | None = None


def _check_size(size: int, max_bytes: int | None) -> None:
    if max_bytes is not None and size > max_bytes:
        raise InvalidInputError(f"Image size exceeds {max_bytes // MiB}MB limit")


def read_local_file(value: str) -> Path:
    """Expand and check an absolute file path.

    Raises:
        InvalidInputError: If the path is relative or the file doesn't exist
    """
    path = Path(value).expanduser()
    if not path.is_absolute() and not _WINDOWS_DRIVE_RE.match(value):
        raise InvalidInputError(f"File path must be absolute. Got: {value}")
    if not path.is_file():
        raise InvalidInputError(f"Image file not found: {path}")
    return path


def resolve_image_input(
    value: str,
    cache: ImageCache,
    max_bytes: int | None = None,
) -> ResolvedImage:
    """Resolve an image argument into an upstream-ready payload.

    Accepts an absolute file path (read and cached), an ``img_`` cache token,
    an http(s) URL, a data URI, or bare base64. Bare JPEG base64 starts with
    ``/9j/``, so an absolute-looking value is only read from disk when the
    file exists or the value is not valid base64.

    Args:
        value: Raw image argument from the tool call
        cache: Image cache used for file ingestion and token lookup
        max_bytes: Size ceiling for decoded image bytes

    Returns:
        ResolvedImage

    Raises:
        InvalidInputError: If the image can't be read, decoded, found, or is too large
    """
    value = value.strip()

    if is_local_path(value) and (_file_exists(value) or not is_base64(value)):
        path = read_local_file(value)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise InvalidInputError(f"Failed to read file {path}: {e}") from e
        _check_size(len(raw), max_bytes)
        b64 = base64.b64encode(raw).decode("utf-8")
        token = cache.store(b64, guess_mime_from_path(path), str(path))
        logger.info(f"Converted file path to cache ID: {token}")
        return ResolvedImage(b64, "cached", len(raw), token, str(path))

    if cache.is_token(value):
        entry = cache.get(value)
        if entry is None:
            raise InvalidInputError(
                f"Image cache ID {value} not found or expired. Please use prepare_image again."
            )
        size = len(decode_base64(entry.base64))
        _check_size(size, max_bytes)
        return ResolvedImage(entry.base64, "cached", size, value, entry.path or None)

    if is_url(value):
        return ResolvedImage(value, "url")

    if value.startswith("data:"):
        if not _IMAGE_DATA_URI_RE.match(value):
            raise InvalidInputError("Unsupported data URI; expected a png, jpeg, webp or gif image")
        payload = strip_data_uri(value)
    else:
        payload = value
        if looks_like_path(value) and not is_base64(value):
            raise InvalidInputError(f"File path must be absolute. Got: {value}")

    raw = decode_base64(payload)
    if not raw:
        raise InvalidInputError(
            "Image must be a valid URL, base64 encoded string, absolute file path, "
            "or image cache ID from prepare_image"
        )
    _check_size(len(raw), max_bytes)
    return ResolvedImage("".join(payload.split()), "base64", len(raw))


def truncate_prompt(prompt: str, max_length: int = 100) -> tuple[str, str]:
    """Truncate a prompt for display.

    Args:
        prompt: The prompt text
        max_length: Maximum length before truncation

    Returns:
        Tuple of (truncated_prompt, suffix) where suffix is "..." if truncated
    """
    if len(prompt) > max_length:
        return prompt[:max_length], "..."
    return prompt, ""


def format_credits(credits: float) -> str:
    return f"{credits:g}"

