"""Line-oriented structured data validation (JSON Lines)."""

from .validator import (
    JSONLinesValidator,
    ParseError,
    Record,
    ValidationResult,
    to_json_array_string,
    validate,
)

__all__ = [
    "JSONLinesValidator",
    "ParseError",
    "Record",
    "ValidationResult",
    "to_json_array_string",
    "validate",
]
