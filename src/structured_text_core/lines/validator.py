"""JSON Lines validation with per-line error localization.

Every non-blank line must independently parse as one JSON value. Failures
never stop the scan: each bad line becomes a ``ParseError`` carrying its
1-based line number and, when the decoder reports one, the 1-based column
inside the raw line. Blank lines are counted but never parsed.
"""

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from structured_text_core.shared import (
    PerformanceMetrics,
    ValidatorConfig,
    get_logger,
)

_LINE_BREAK = re.compile(r"\r?\n")
_BOM = "\ufeff"
MS_PER_SECOND = 1000


@dataclass(frozen=True)
class Record:
    """One successfully parsed line."""

    line_number: int
    value: Any
    keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParseError:
    """One line that failed to parse."""

    line_number: int
    message: str
    line_content: str
    column_number: Optional[int] = None

    def __str__(self) -> str:
        location = f"Line {self.line_number}"
        if self.column_number is not None:
            location += f", column {self.column_number}"
        return f"{location}: {self.message}"


@dataclass
class ValidationResult:
    """Aggregate outcome of validating a JSON Lines document.

    ``performance`` is informational and excluded from equality, so two
    validations of the same text compare equal.
    """

    total_lines: int = 0
    valid_lines: int = 0
    invalid_lines: int = 0
    empty_lines: int = 0
    errors: List[ParseError] = field(default_factory=list)
    records: List[Record] = field(default_factory=list)
    key_frequency: Dict[str, int] = field(default_factory=dict)
    performance: PerformanceMetrics = field(
        default_factory=PerformanceMetrics, compare=False, repr=False
    )

    @property
    def is_valid(self) -> bool:
        """True when no line failed to parse."""
        return self.invalid_lines == 0

    @property
    def values(self) -> List[Any]:
        """Parsed values of the valid lines, in line order."""
        return [record.value for record in self.records]

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the result as JSON-serializable data."""
        return {
            "total_lines": self.total_lines,
            "valid_lines": self.valid_lines,
            "invalid_lines": self.invalid_lines,
            "empty_lines": self.empty_lines,
            "key_frequency": dict(self.key_frequency),
            "errors": [
                {
                    "line_number": error.line_number,
                    "column_number": error.column_number,
                    "message": error.message,
                    "line_content": error.line_content,
                }
                for error in self.errors
            ],
        }


class _ConstantRejected(ValueError):
    """Raised while decoding when a NaN / Infinity literal is found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unexpected token {name}")
        self.name = name


def _reject_constant(name: str) -> Any:
    raise _ConstantRejected(name)


def _find_outside_strings(text: str, token: str) -> int:
    """Index of the first ``token`` that is not inside a JSON string, or -1."""
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif text.startswith(token, index):
            return index
    return -1


class JSONLinesValidator:
    """Validate newline-delimited JSON documents line by line."""

    def __init__(
        self,
        config: Optional[ValidatorConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize validator.

        Args:
            config: Validator configuration (defaults to ``ValidatorConfig()``)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ValidatorConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "jsonl_validator")

    def validate(self, text: str) -> ValidationResult:
        """Validate every line of ``text``.

        Never raises for malformed content; see ``ValidationResult.errors``.

        Examples:
            >>> result = JSONLinesValidator().validate('{"a":1}\\n{bad json}')
            >>> (result.valid_lines, result.invalid_lines)
            (1, 1)
            >>> result.errors[0].line_number
            2
        """
        start_time = time.time()
        result = ValidationResult()

        if text.startswith(_BOM):
            text = text[len(_BOM):]
        if text.strip() == "":
            return result

        lines = _LINE_BREAK.split(text)
        for line_number, line in enumerate(lines, start=1):
            stripped = line.strip()
            if stripped == "":
                result.empty_lines += 1
                continue

            value, error = self._parse_line(line_number, line, stripped)
            if error is not None:
                result.invalid_lines += 1
                result.errors.append(error)
                self.logger.debug(
                    "Invalid JSON line",
                    extra={
                        "line_number": line_number,
                        "column_number": error.column_number,
                    }
                )
                continue

            keys: Tuple[str, ...] = ()
            if isinstance(value, dict):
                keys = tuple(value.keys())
                for key in keys:
                    result.key_frequency[key] = result.key_frequency.get(key, 0) + 1
            result.valid_lines += 1
            result.records.append(Record(line_number, value, keys))

        result.total_lines = len(lines)
        result.performance = PerformanceMetrics(
            processing_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            characters_processed=len(text),
            lines_processed=len(lines),
        )

        self.logger.info(
            "JSON Lines validation completed",
            extra={
                "total_lines": result.total_lines,
                "valid_lines": result.valid_lines,
                "invalid_lines": result.invalid_lines,
                "empty_lines": result.empty_lines,
                "processing_time_ms": result.performance.processing_time_ms,
            }
        )
        return result

    def _parse_line(
        self, line_number: int, line: str, stripped: str
    ) -> Tuple[Any, Optional[ParseError]]:
        limit = self.config.max_line_length
        if limit is not None and len(line) > limit:
            return None, ParseError(
                line_number=line_number,
                message=f"Line exceeds maximum length of {limit} characters",
                line_content=line,
            )

        # Columns are reported against the raw line, not the stripped one
        indent = len(line) - len(line.lstrip())
        try:
            if self.config.allow_nan:
                return json.loads(stripped), None
            return json.loads(stripped, parse_constant=_reject_constant), None
        except json.JSONDecodeError as e:
            return None, ParseError(
                line_number=line_number,
                message=e.msg,
                line_content=line,
                column_number=indent + e.colno,
            )
        except _ConstantRejected as e:
            position = _find_outside_strings(stripped, e.name)
            return None, ParseError(
                line_number=line_number,
                message=str(e),
                line_content=line,
                column_number=indent + position + 1 if position >= 0 else None,
            )
        except RecursionError:
            return None, ParseError(
                line_number=line_number,
                message="Maximum nesting depth exceeded",
                line_content=line,
            )


def validate(
    text: str,
    config: Optional[ValidatorConfig] = None,
    correlation_id: Optional[str] = None,
) -> ValidationResult:
    """Validate a JSON Lines document.

    Args:
        text: Newline-delimited JSON text
        config: Optional validator configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ValidationResult with per-line records, errors and key frequency
    """
    return JSONLinesValidator(config, correlation_id).validate(text)


def to_json_array_string(
    records: Union[ValidationResult, Iterable[Any]],
    indent: Optional[int] = 2,
) -> str:
    """Serialize parsed records as a single JSON array.

    Accepts a ``ValidationResult``, ``Record`` objects, or bare values. The
    records are neither re-validated nor modified. ``indent=None`` produces
    the compact single-line form.

    Examples:
        >>> result = validate('{"a":1}\\n{"b":2}')
        >>> to_json_array_string(result, indent=None)
        '[{"a":1},{"b":2}]'
    """
    if isinstance(records, ValidationResult):
        records = records.records
    values = [
        record.value if isinstance(record, Record) else record
        for record in records
    ]
    if indent is None:
        return json.dumps(values, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(values, indent=indent, ensure_ascii=False)
