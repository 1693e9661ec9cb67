"""Typed exception hierarchy for structured text conversion.

Tree conversion and markup building are fail-fast and raise the exceptions
defined here. Line validation never raises; it reports per-line
``ParseError`` entries instead (see ``structured_text_core.lines``).
"""

from typing import Optional


class StructuredTextError(Exception):
    """Base exception for all structured text errors."""


class InvalidMarkupError(StructuredTextError):
    """Raised when a document is not well-formed markup.

    The message always starts with ``"Invalid XML"`` so callers can surface it
    verbatim. The underlying parser message and location are kept separately.
    """

    def __init__(
        self,
        details: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        message = "Invalid XML"
        if details:
            message += f": {details}"
        super().__init__(message)
        self.details = details
        self.line = line
        self.column = column


class MarkupBuildError(StructuredTextError):
    """Raised when a JSON value cannot be rendered as markup."""

    def __init__(self, message: str, key: Optional[str] = None):
        if key is not None:
            message = f"{message} (key: {key!r})"
        super().__init__(message)
        self.key = key
