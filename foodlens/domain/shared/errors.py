"""
Domain exceptions.

Typed exceptions for every way a food analysis can fail.
Each error keeps diagnostic detail in ``str(error)`` for logs and a short
``user_message`` for display.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence, Tuple


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    Allows catching all foodlens errors with a single except clause.
    """

    pass


class AnalysisError(DomainError):
    """
    Base exception for a failed food analysis.

    Attributes:
        kind: Stable machine-readable name of the failure class
        user_message: Text safe to show to the end user
        detail: Diagnostic detail (status codes, field paths, raw bodies)
    """

    kind = "ANALYSIS_ERROR"
    default_user_message = "The food analysis failed."

    def __init__(self, detail: str, *, user_message: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.user_message = user_message or self.default_user_message


# ═══════════════════════════════════════════════════════════
# LOCAL FAILURES
# ═══════════════════════════════════════════════════════════


class InputError(AnalysisError):
    """
    No image is available for analysis.

    Example:
        >>> raise InputError("analyze() called without an image")
    """

    kind = "INPUT"
    default_user_message = "No image selected."


class ConfigurationError(AnalysisError):
    """
    Endpoint configuration is missing or malformed.

    Raised when:
    - API key not set or contains whitespace
    - Model name empty or malformed
    - Base URL is not HTTPS
    """

    kind = "CONFIGURATION"
    default_user_message = "The analysis service is not configured correctly."


class EncodingError(AnalysisError):
    """Image could not be recompressed to JPEG."""

    kind = "ENCODING"
    default_user_message = "The image could not be prepared for analysis."


# ═══════════════════════════════════════════════════════════
# REMOTE FAILURES
# ═══════════════════════════════════════════════════════════


class NetworkError(AnalysisError):
    """
    Transport-level failure.

    Raised when:
    - Connection refused or dropped
    - No usable HTTP response
    """

    kind = "NETWORK"
    default_user_message = "Could not reach the analysis service."


class NetworkTimeoutError(NetworkError):
    """Request exceeded the configured timeout."""

    kind = "NETWORK_TIMEOUT"
    default_user_message = "The analysis service did not answer in time."


class ApiError(AnalysisError):
    """
    Remote service refused or aborted the analysis.

    Raised when:
    - HTTP status is not 2xx
    - Error envelope present in the response
    - Model stopped with a finish reason other than STOP

    ``message`` may carry raw server text and stays in ``str(error)``;
    ``user_message`` is the generic default unless the caller passes a
    short API-provided message.

    Example:
        >>> err = ApiError(403, "bad key", status="PERMISSION_DENIED")
        >>> err.code, err.message, err.user_message
        (403, 'bad key', 'The analysis service returned an error.')
    """

    kind = "API"
    default_user_message = "The analysis service returned an error."

    def __init__(
        self,
        code: Optional[int],
        message: str,
        *,
        status: Optional[str] = None,
        body: Optional[str] = None,
        finish_reason: Optional[str] = None,
        safety_issues: Sequence[Tuple[str, str]] = (),
        user_message: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status = status
        self.body = body
        self.finish_reason = finish_reason
        self.safety_issues = tuple(safety_issues)

        prefix = f"API Error {code}" if code is not None else "API Error"
        super().__init__(f"{prefix}: {message}", user_message=user_message)


class MalformedResponseError(AnalysisError):
    """
    Response JSON lacks the parts needed to build a result.

    Raised when:
    - Envelope does not match the expected shape
    - No candidates returned
    - First candidate has no text part
    """

    kind = "MALFORMED_RESPONSE"
    default_user_message = "The analysis service returned an incomplete answer."


# ═══════════════════════════════════════════════════════════
# DECODING
# ═══════════════════════════════════════════════════════════


class DecodingErrorKind(str, Enum):
    """Why the embedded analysis JSON could not be decoded."""

    KEY_NOT_FOUND = "KEY_NOT_FOUND"  # Required field absent
    TYPE_MISMATCH = "TYPE_MISMATCH"  # Field present with wrong type
    VALUE_NOT_FOUND = "VALUE_NOT_FOUND"  # Field present but null
    DATA_CORRUPTED = "DATA_CORRUPTED"  # Invalid JSON or out-of-range value


class DecodingError(AnalysisError):
    """
    Embedded analysis JSON does not match the expected shape.

    All sub-kinds share one user message; ``subkind``, ``path`` and
    ``reason`` keep the distinction for logs.

    Example:
        >>> err = DecodingError(DecodingErrorKind.KEY_NOT_FOUND, "calories", "Field required")
        >>> err.path
        'calories'
    """

    kind = "DECODING"
    default_user_message = "Could not interpret the analysis result."

    def __init__(self, kind: DecodingErrorKind, path: str, reason: str) -> None:
        self.subkind = kind
        self.path = path
        self.reason = reason
        location = path or "<root>"
        super().__init__(f"{kind.value} at '{location}': {reason}")
