"""Diagnostic and performance types shared by the conversion engines."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    line: Optional[int] = None
    column: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    @property
    def position(self) -> Optional[Dict[str, int]]:
        """Location as a ``{"line": .., "column": ..}`` mapping, if known."""
        if self.line is None:
            return None
        position = {"line": self.line}
        if self.column is not None:
            position["column"] = self.column
        return position


@dataclass
class PerformanceMetrics:
    """Timing and volume counters for one engine invocation."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    lines_processed: int = 0
    elements_converted: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def lines_per_second(self) -> float:
        """Calculate lines processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.lines_processed * 1000.0) / self.processing_time_ms
