"""Shared fixtures: isolated settings and a tool context wired to a mock HTTP transport."""

import base64
from collections.abc import Callable

import httpx
import pytest

from segmind_mcp.cache import ImageCache
from segmind_mcp.client import SegmindClient
from segmind_mcp.config import Settings
from segmind_mcp.cost_tracker import CostTracker
from segmind_mcp.handlers import ToolContext
from segmind_mcp.registry import ModelRegistry

TEST_API_KEY = "sg_testkey1234567890"

# Smallest payload that still looks like a PNG to a human reader
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_B64 = base64.b64encode(PNG_BYTES).decode("utf-8")

# Bare JPEG base64 always begins with "/9j/", which reads like an absolute path
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01" + b"\x00" * 20
JPEG_B64 = base64.b64encode(JPEG_BYTES).decode("utf-8")


class RecordingTransport:
    """Mock transport handler that records requests and replays queued responses.

    Responses are consumed in order; the last one repeats once the queue
    runs dry, so a single response serves any number of calls.
    """

    def __init__(self, *responses: httpx.Response | Callable[[httpx.Request], httpx.Response]):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return response(request) if callable(response) else response

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "api_key": TEST_API_KEY,
        "output_dir": str(tmp_path / "output"),
        "cost_data_path": str(tmp_path / "costs.json"),
        "retry_base_delay": 0,
        "retry_max_delay": 0,
        "poll_interval": 0,
        "poll_max_attempts": 3,
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_client(settings: Settings, transport: RecordingTransport) -> SegmindClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    return SegmindClient(settings, http_client=http_client)


def make_context(
    settings: Settings,
    transport: RecordingTransport,
    registry: ModelRegistry | None = None,
) -> ToolContext:
    return ToolContext(
        settings=settings,
        client=make_client(settings, transport),
        registry=registry or ModelRegistry(),
        image_cache=ImageCache(ttl=settings.cache_ttl, max_entries=settings.cache_max_entries),
        cost_tracker=CostTracker(settings.cost_data_path),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "input.png"
    path.write_bytes(PNG_BYTES)
    return path
