"""Typed errors with user-safe messages."""

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed set of error kinds surfaced to tool callers."""

    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"
    MODEL_NOT_FOUND = "model_not_found"
    GENERATION = "generation"
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


class SafeError(Exception):
    """Base error whose message is safe to show to a caller.

    Attributes:
        user_message: Message shown to the caller
        kind: Error classification
        status_code: HTTP status this error is equivalent to
        details: Extra diagnostics, only exposed in debug mode
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500
    default_message: str = "An error occurred processing your request"

    def __init__(
        self,
        user_message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        kind: ErrorKind | None = None,
    ):
        self.user_message = user_message or self.default_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if kind is not None:
            self.kind = kind
        super().__init__(self.user_message)

    def to_dict(self, debug: bool = False) -> dict[str, Any]:
        """Caller-visible representation; details only in debug mode."""
        payload: dict[str, Any] = {
            "error": self.user_message,
            "kind": str(self.kind),
            "status_code": self.status_code,
        }
        if debug and self.details:
            payload["details"] = self.details
        return payload


class AuthenticationError(SafeError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 401
    default_message = "Authentication failed"


class RateLimitError(SafeError):
    kind = ErrorKind.RATE_LIMIT
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class InsufficientCreditsError(SafeError):
    kind = ErrorKind.INSUFFICIENT_CREDITS
    status_code = 402
    default_message = "Insufficient credits for this operation"


class NetworkError(SafeError):
    kind = ErrorKind.NETWORK
    status_code = 503
    default_message = "Network error occurred"


class RequestTimeoutError(SafeError):
    kind = ErrorKind.TIMEOUT
    status_code = 504
    default_message = "Request timed out"


class ConfigurationError(SafeError):
    kind = ErrorKind.CONFIGURATION
    status_code = 500
    default_message = "Invalid configuration"


class ModelNotFoundError(SafeError):
    kind = ErrorKind.MODEL_NOT_FOUND
    status_code = 404

    def __init__(self, model_id: str, *, details: dict[str, Any] | None = None):
        self.model_id = model_id
        super().__init__(f"Model '{model_id}' not found", details=details)


class GenerationError(SafeError):
    kind = ErrorKind.GENERATION
    status_code = 500
    default_message = "Failed to generate content"


class InvalidInputError(SafeError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400
    default_message = "Invalid input"


class ApiError(GenerationError):
    """Upstream rejected the request with a non-retryable status."""

    def __init__(self, message: str, status: int, body: str | None = None):
        self.status = status
        self.body = body
        super().__init__(
            message,
            details={"status": status, "body": body},
            status_code=status,
        )


# Lowercased message fragment -> error class, checked in order.
_MESSAGE_PATTERNS: list[tuple[tuple[str, ...], type[SafeError]]] = [
    (("api key", "authorization"), AuthenticationError),
    (("rate limit",), RateLimitError),
    (("credits",), InsufficientCreditsError),
    (("timeout", "timed out"), RequestTimeoutError),
    (("network", "fetch"), NetworkError),
]


def map_to_safe_error(error: BaseException | object) -> SafeError:
    """Map any failure onto the closed error taxonomy.

    Already-typed errors pass through unchanged. Otherwise the lowercased
    message is matched against known fragments; anything else becomes an
    internal error that keeps the original message text.

    Args:
        error: The exception (or arbitrary object) to classify

    Returns:
        A SafeError instance
    """
    if isinstance(error, SafeError):
        return error
    if isinstance(error, TimeoutError):
        return RequestTimeoutError()

    message = str(error) if error is not None else ""
    lowered = message.lower()
    for fragments, error_cls in _MESSAGE_PATTERNS:
        if any(fragment in lowered for fragment in fragments):
            return error_cls(details={"original": message})

    details = {"type": type(error).__name__} if isinstance(error, BaseException) else None
    return SafeError(message or None, details=details)
