"""Turn API envelopes into MCP content blocks and files on disk."""

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Literal

from loguru import logger
from mcp.types import ImageContent, TextContent

from .client import ApiResponse
from .errors import InvalidInputError
from .models import ModelDescriptor, OutputType
from .utils import decode_base64, guess_extension_from_mime, is_url, split_data_uri

DisplayMode = Literal["save", "display", "both"]
Content = TextContent | ImageContent

DEFAULT_MIME = {
    OutputType.IMAGE: "image/png",
    OutputType.VIDEO: "video/mp4",
    OutputType.AUDIO: "audio/wav",
}

# Upstream spellings for URL-valued outputs, checked after the payload fields
URL_KEYS = ("url", "{kind}_url", "output_url", "output")


def ensure_directory(directory: str | Path) -> Path:
    """Create the directory if needed, falling back to the temp dir on error."""
    target = Path(directory).expanduser().resolve()
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        fallback = Path(tempfile.gettempdir()).resolve()
        logger.warning(f"Cannot create directory {target}: {e}. Using temp directory: {fallback}")
        return fallback
    return target


def resolve_output_dir(save_location: str | None = None, output_dir: str | None = None) -> Path:
    """Pick the save directory: explicit override, configured default, then system temp."""
    return ensure_directory(save_location or output_dir or tempfile.gettempdir())


def save_media(raw: bytes, model_id: str, mime_type: str, directory: Path) -> Path:
    """Write bytes as {model_id}-{epoch_ms}.{ext} and return the absolute path."""
    extension = guess_extension_from_mime(mime_type)
    stem = f"{model_id}-{int(time.time() * 1000)}"
    path = directory / f"{stem}{extension}"
    counter = 1
    while path.exists():
        path = directory / f"{stem}-{counter}{extension}"
        counter += 1
    path.write_bytes(raw)
    return path.resolve()


def _collect_payloads(data: Any, kind: str) -> list[str]:
    if isinstance(data, str):
        return [data]
    if isinstance(data, list):
        return [item for item in data if isinstance(item, str)]
    if not isinstance(data, dict):
        return []

    found: list[str] = []
    single = data.get(kind)
    if isinstance(single, str) and single:
        found.append(single)
    elif isinstance(single, list):
        found.extend(item for item in single if isinstance(item, str))
    plural = data.get(f"{kind}s")
    if isinstance(plural, list):
        found.extend(item for item in plural if isinstance(item, str))
    if found:
        return found

    for key in URL_KEYS:
        value = data.get(key.format(kind=kind))
        if isinstance(value, str) and is_url(value):
            return [value]
        if isinstance(value, list) and value and all(isinstance(v, str) and is_url(v) for v in value):
            return list(value)
    return []


def _diagnostic(data: Any, model: ModelDescriptor) -> TextContent:
    if isinstance(data, dict):
        shape = f"fields: {', '.join(sorted(map(str, data))) or 'none'}"
    else:
        shape = f"type: {type(data).__name__}"
    return TextContent(
        type="text",
        text=f"Unexpected response format from {model.name} (expected {model.output_type}; {shape})",
    )


def format_response(
    envelope: ApiResponse,
    model: ModelDescriptor,
    *,
    save_location: str | None = None,
    output_dir: str | None = None,
    display_mode: DisplayMode = "save",
) -> list[Content]:
    """Convert an API envelope into content blocks.

    Args:
        envelope: Normalized response from the client
        model: Descriptor of the model that produced it
        save_location: Per-call directory override
        output_dir: Configured default directory
        display_mode: For images, inline ("display"), saved file ("save") or both

    Returns:
        Content blocks in payload order; unknown shapes yield one diagnostic text block
    """
    data = envelope.data

    if model.output_type == OutputType.TEXT:
        if isinstance(data, dict) and isinstance(data.get("text"), str):
            return [TextContent(type="text", text=data["text"])]
        if isinstance(data, str):
            return [TextContent(type="text", text=data)]
        return [TextContent(type="text", text=json.dumps(data, indent=2, default=str))]

    kind = str(model.output_type)
    payloads = _collect_payloads(data, kind)
    if not payloads:
        logger.warning(f"No {kind} payload in response from {model.id}")
        return [_diagnostic(data, model)]

    declared_mime = data.get("mimeType") if isinstance(data, dict) else None
    content: list[Content] = []
    directory: Path | None = None

    for payload in payloads:
        if is_url(payload):
            content.append(
                TextContent(type="text", text=f"{kind.capitalize()} generated successfully. View at: {payload}")
            )
            continue

        uri_mime, b64 = split_data_uri(payload)
        mime_type = uri_mime or declared_mime or DEFAULT_MIME[model.output_type]
        try:
            raw = decode_base64(b64)
        except InvalidInputError:
            content.append(_diagnostic(data, model))
            continue

        inline = model.output_type == OutputType.IMAGE and display_mode in ("display", "both")
        if inline:
            content.append(ImageContent(type="image", data="".join(b64.split()), mimeType=mime_type))

        if not inline or display_mode == "both":
            if directory is None:
                directory = resolve_output_dir(save_location, output_dir)
            path = save_media(raw, model.id, mime_type, directory)
            logger.info(f"Saved {kind} ({len(raw)} bytes) to {path}")
            content.append(TextContent(type="text", text=f"{kind.capitalize()} saved to: {os.fspath(path)}"))

    return content
