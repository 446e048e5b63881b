"""
Strict decoding of the model's embedded analysis JSON.

pydantic reports every problem with a type and a location; the first
problem is mapped onto DecodingErrorKind so callers can tell a missing key
from a wrong type, a null value or corrupted data.
"""

from __future__ import annotations

from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from foodlens.domain.analysis.models import AnalysisPayload
from foodlens.domain.shared.errors import DecodingError, DecodingErrorKind

logger = structlog.get_logger(__name__)

_CORRUPTED_TYPES = frozenset(
    {
        "json_invalid",
        "json_type",
        "greater_than_equal",
        "greater_than",
        "less_than_equal",
        "less_than",
        "value_error",
    }
)


def _format_path(loc: tuple[Any, ...]) -> str:
    """('macros', 0, 'amount') -> 'macros.0.amount'"""
    return ".".join(str(part) for part in loc)


def classify_validation_error(error: Mapping[str, Any]) -> DecodingErrorKind:
    """
    Map one pydantic error entry to a decoding sub-kind.

    - missing                        -> KEY_NOT_FOUND
    - null where a value is required -> VALUE_NOT_FOUND
    - json / range / value problems  -> DATA_CORRUPTED
    - anything else                  -> TYPE_MISMATCH
    """
    error_type = error.get("type", "")
    if error_type == "missing":
        return DecodingErrorKind.KEY_NOT_FOUND
    if error_type in _CORRUPTED_TYPES:
        return DecodingErrorKind.DATA_CORRUPTED
    if error.get("input", ...) is None:
        return DecodingErrorKind.VALUE_NOT_FOUND
    return DecodingErrorKind.TYPE_MISMATCH


def decode_analysis_payload(text: str) -> AnalysisPayload:
    """
    Parse the model's text strictly into an AnalysisPayload.

    Args:
        text: JSON text taken from the first candidate part

    Returns:
        Validated payload (no ids yet)

    Raises:
        DecodingError: With sub-kind, dotted field path and reason

    Example:
        >>> decode_analysis_payload('{"name": "Apple"}')
        Traceback (most recent call last):
        ...
        foodlens.domain.shared.errors.DecodingError: KEY_NOT_FOUND at 'description': Field required
    """
    try:
        return AnalysisPayload.model_validate_json(text)
    except ValidationError as e:
        errors = e.errors()
        first = errors[0]
        kind = classify_validation_error(first)
        path = _format_path(tuple(first.get("loc", ())))
        logger.debug(
            "Analysis payload rejected",
            kind=kind.value,
            path=path,
            error_count=len(errors),
        )
        raise DecodingError(kind, path, first.get("msg", "invalid value")) from e
