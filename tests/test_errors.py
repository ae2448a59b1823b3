"""Unit tests for the error taxonomy."""

import pytest

from segmind_mcp.errors import (
    ApiError,
    AuthenticationError,
    ErrorKind,
    GenerationError,
    InsufficientCreditsError,
    ModelNotFoundError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    SafeError,
    map_to_safe_error,
)


class TestSafeError:
    """Tests for SafeError and subclasses."""

    def test_default_message(self):
        """Subclasses carry their own default message and kind."""
        error = AuthenticationError()
        assert error.user_message == "Authentication failed"
        assert error.kind == ErrorKind.AUTHENTICATION
        assert error.status_code == 401
        assert str(error) == "Authentication failed"

    def test_details_hidden_unless_debug(self):
        """to_dict only exposes details in debug mode."""
        error = GenerationError("boom", details={"trace": "x"})
        assert "details" not in error.to_dict()
        assert error.to_dict(debug=True)["details"] == {"trace": "x"}

    def test_model_not_found_names_model(self):
        """ModelNotFoundError message includes the id."""
        error = ModelNotFoundError("nonexistent-id")
        assert error.user_message == "Model 'nonexistent-id' not found"
        assert error.kind == ErrorKind.MODEL_NOT_FOUND

    def test_api_error_is_generation_error(self):
        """ApiError keeps status and body and classifies as generation."""
        error = ApiError("bad request", 422, '{"detail": "bad"}')
        assert isinstance(error, GenerationError)
        assert error.status_code == 422
        assert error.details == {"status": 422, "body": '{"detail": "bad"}'}


class TestMapToSafeError:
    """Tests for map_to_safe_error."""

    def test_safe_error_passes_through(self):
        """Typed errors are returned unchanged."""
        error = RateLimitError()
        assert map_to_safe_error(error) is error

    def test_builtin_timeout(self):
        """Builtin TimeoutError maps to the timeout kind."""
        assert isinstance(map_to_safe_error(TimeoutError()), RequestTimeoutError)

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Invalid API key supplied", AuthenticationError),
            ("Missing Authorization header", AuthenticationError),
            ("rate limit hit", RateLimitError),
            ("not enough credits", InsufficientCreditsError),
            ("operation timed out", RequestTimeoutError),
            ("network unreachable", NetworkError),
            ("failed to fetch", NetworkError),
        ],
    )
    def test_message_patterns(self, message, expected):
        """Message fragments select the error class."""
        mapped = map_to_safe_error(RuntimeError(message))
        assert isinstance(mapped, expected)
        assert mapped.details == {"original": message}

    def test_unknown_error_keeps_message(self):
        """Unmatched errors become internal errors with the original text."""
        mapped = map_to_safe_error(ValueError("something odd"))
        assert type(mapped) is SafeError
        assert mapped.kind == ErrorKind.INTERNAL
        assert mapped.user_message == "something odd"
        assert mapped.details == {"type": "ValueError"}

    def test_empty_message_uses_default(self):
        """An exception without text gets the generic message."""
        mapped = map_to_safe_error(RuntimeError())
        assert mapped.user_message == SafeError.default_message
