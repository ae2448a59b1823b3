"""Segmind MCP Server - image, video, speech and music generation through the Segmind API."""

from .client import SegmindClient
from .config import Settings, get_settings
from .server import main
from .version import __version__

__all__ = ["SegmindClient", "Settings", "__version__", "get_settings", "main"]
