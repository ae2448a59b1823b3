"""Async HTTP client for the Segmind API."""

import asyncio
import base64
import random
from typing import Any, Literal

import httpx
from loguru import logger
from pydantic import BaseModel

from .config import Settings, get_settings
from .errors import (
    ApiError,
    AuthenticationError,
    GenerationError,
    InsufficientCreditsError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    SafeError,
)
from .version import __version__

USER_AGENT = f"segmind-mcp/{__version__}"

RETRYABLE_STATUS = (408, 429, 500, 502, 503, 504)
MEDIA_KINDS = ("image", "video", "audio")
ENVELOPE_KEYS = ("data", "error", "credits", "metadata")

# Model ids served from historical endpoint paths
IMAGE_ENDPOINTS = {
    "sdxl": "/sdxl1.0-txt2img",
    "flux-1-pro": "/models/flux-pro",
    "esrgan": "/esrgan",
}

ResponseType = Literal["auto", "json", "binary"]


class Credits(BaseModel):
    used: float = 0
    remaining: float = 0


class ApiResponse(BaseModel):
    """Normalized response envelope.

    Failure is signalled by a truthy ``error``, never by a success flag, so
    the client raises before an envelope carrying one reaches a caller.
    """

    data: Any = None
    error: Any = None
    credits: Credits | None = None
    metadata: dict[str, Any] | None = None


def image_endpoint(model_id: str) -> str:
    return IMAGE_ENDPOINTS.get(model_id, f"/{model_id}")


def _header_number(response: httpx.Response, name: str) -> float:
    value = response.headers.get(name)
    if value is None:
        return 0
    try:
        return float(value)
    except ValueError:
        return 0


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("detail") or error)
    return str(error)


class SegmindClient:
    """Async client for the Segmind API.

    Every call carries the API key header, retries transient statuses with
    exponential backoff, and honours one deadline across all attempts and
    backoff sleeps.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize client.

        Args:
            settings: Settings instance, or None to load from env.
            http_client: Pre-built httpx client (tests inject a MockTransport here).
        """
        settings = settings or get_settings()
        self._api_key = settings.api_key
        self._base_url = settings.base_url.rstrip("/")
        self._timeout = settings.request_timeout
        self._max_retries = settings.max_retries
        self._base_delay = settings.retry_base_delay
        self._max_delay = settings.retry_max_delay
        self.client = http_client or httpx.AsyncClient(timeout=self._timeout)

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self._base_url}{endpoint}"

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay for a zero-based retry attempt, plus up to 10% jitter."""
        delay = min(self._base_delay * (2**attempt), self._max_delay)
        return delay + random.random() * 0.1 * delay

    def _retry_after(self, response: httpx.Response) -> float | None:
        header = response.headers.get("retry-after")
        if header:
            try:
                return float(header)
            except ValueError:
                pass
        return None

    async def _delay(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        response_type: ResponseType = "auto",
    ) -> ApiResponse:
        """Execute one logical API call.

        Args:
            endpoint: Path under the base URL (e.g. "/sdxl1.0-txt2img")
            method: HTTP method
            body: JSON-serializable payload
            headers: Extra headers, overriding the defaults
            timeout: Deadline in seconds covering every attempt and backoff sleep
            max_retries: Retry budget for transient statuses
            response_type: Force "json" or "binary" decoding instead of sniffing

        Returns:
            Normalized ApiResponse

        Raises:
            SafeError: Any of the typed errors in segmind_mcp.errors
        """
        if not self._api_key:
            raise AuthenticationError("Segmind API key is not configured. Set SEGMIND_API_KEY.")

        timeout = timeout or self._timeout
        retries = self._max_retries if max_retries is None else max_retries
        request_headers = {
            "x-api-key": self._api_key,
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            **(headers or {}),
        }

        logger.debug(f"API request {method} {endpoint} (timeout {timeout}s)")
        try:
            async with asyncio.timeout(timeout):
                return await self._execute_with_retry(
                    method, self._url(endpoint), request_headers, body, timeout, retries, response_type
                )
        except SafeError:
            raise
        except (TimeoutError, httpx.TimeoutException) as e:
            raise RequestTimeoutError(details={"endpoint": endpoint, "timeout": timeout}) from e
        except httpx.TransportError as e:
            raise NetworkError("Failed to connect to Segmind API", details={"error": str(e)}) from e

    async def _execute_with_retry(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Any,
        timeout: float,
        retries: int,
        response_type: ResponseType,
    ) -> ApiResponse:
        attempt = 0
        last_delay = 0.0
        while True:
            response = await self.client.request(
                method,
                url,
                headers=headers,
                json=body,
                timeout=timeout,
            )
            status = response.status_code

            if status == 429:
                if attempt >= retries:
                    raise RateLimitError()
                delay = self._retry_after(response)
                if delay is None:
                    delay = max(self._base_delay, last_delay)
                logger.warning(f"Rate limited, retrying in {delay:.2f}s ({retries - attempt} left)")
            elif status in (401, 403):
                raise AuthenticationError()
            elif status == 402:
                raise InsufficientCreditsError()
            elif status in RETRYABLE_STATUS and attempt < retries:
                delay = max(self.backoff_delay(attempt), last_delay)
                logger.warning(
                    f"Request failed with status {status}, retrying in {delay:.2f}s "
                    f"({retries - attempt} left)"
                )
            else:
                return self._decode(response, response_type)

            await self._delay(delay)
            last_delay = delay
            attempt += 1

    def _decode(self, response: httpx.Response, response_type: ResponseType) -> ApiResponse:
        status = response.status_code
        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";")[0].strip().lower()
        kind = mime_type.split("/")[0]

        if response_type == "binary" or (response_type == "auto" and kind in MEDIA_KINDS):
            return self._decode_binary(response, mime_type, kind)

        if response_type == "json" or (response_type == "auto" and "json" in mime_type):
            return self._decode_json(response)

        if response.is_error:
            raise ApiError(f"API request failed with status {status}", status, response.text)
        raise GenerationError(f"Unexpected response type: {content_type or 'none'}")

    def _decode_binary(self, response: httpx.Response, mime_type: str, kind: str) -> ApiResponse:
        if response.is_error:
            raise ApiError(
                f"API request failed with status {response.status_code}",
                response.status_code,
                response.text,
            )
        content = response.content
        data_key = kind if kind in MEDIA_KINDS else "data"
        logger.debug(f"Binary {data_key} response ({len(content)} bytes)")
        return ApiResponse(
            data={
                data_key: base64.b64encode(content).decode("utf-8"),
                "format": mime_type.split("/")[1] if "/" in mime_type else "unknown",
                "size": len(content),
                "mimeType": mime_type,
            },
            credits=Credits(
                used=_header_number(response, "x-credits-consumed"),
                remaining=_header_number(response, "x-remaining-credits"),
            ),
        )

    def _decode_json(self, response: httpx.Response) -> ApiResponse:
        status = response.status_code
        try:
            payload = response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON response (status {status})", status, response.text) from e

        if not isinstance(payload, dict):
            payload = {"data": payload}

        error = payload.get("error")
        if error:
            message = _error_message(error)
            logger.error(f"API error response (status {status}): {message}")
            if status == 406 and "credit" in message.lower():
                raise InsufficientCreditsError(message)
            if response.is_error:
                raise ApiError(message, status, response.text)
            raise GenerationError(message)

        if response.is_error:
            raise ApiError(f"API request failed with status {status}", status, response.text)

        if "data" in payload:
            data = payload["data"]
        else:
            data = {k: v for k, v in payload.items() if k not in ENVELOPE_KEYS}

        credits = payload.get("credits")
        if not isinstance(credits, dict):
            credits = None
        if "x-remaining-credits" in response.headers and not (credits and credits.get("remaining")):
            credits = {
                "used": (credits or {}).get("used") or _header_number(response, "x-credits-consumed"),
                "remaining": _header_number(response, "x-remaining-credits"),
            }

        return ApiResponse(
            data=data,
            credits=Credits.model_validate(credits) if credits else None,
            metadata=payload.get("metadata") if isinstance(payload.get("metadata"), dict) else None,
        )

    async def generate_image(
        self, model_id: str, params: dict[str, Any], timeout: float | None = None
    ) -> ApiResponse:
        """POST to an image model, using its historical path where one exists."""
        return await self.request(image_endpoint(model_id), method="POST", body=params, timeout=timeout)

    async def get_credits(self) -> Credits:
        """Get account credit balance.

        Raises:
            GenerationError: If the response carries no credit block
        """
        response = await self.request("/credits", method="GET")
        data = response.data if isinstance(response.data, dict) else {}
        credits = data.get("credits", data)
        if isinstance(credits, dict) and "remaining" in credits:
            return Credits.model_validate(credits)
        # a top-level "credits" block is lifted into the envelope
        if response.credits is not None:
            return response.credits
        raise GenerationError("Invalid credits response")

    async def get_job(self, job_id: str) -> ApiResponse:
        """Fetch the status of an asynchronous job."""
        return await self.request(f"/jobs/{job_id}", method="GET")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "SegmindClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
