"""Shared utilities for structured text conversion.

Configuration objects, diagnostic types, the exception hierarchy and the
correlation-aware logger used across the tree converter, the markup builder
and the line validator.
"""

from .config import (
    ATTRIBUTES_KEY,
    TEXT_KEY,
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    ConverterConfig,
    CoreConfig,
    ValidatorConfig,
)
from .errors import InvalidMarkupError, MarkupBuildError, StructuredTextError
from .logging import CorrelationLogger, get_logger
from .result import DiagnosticEntry, DiagnosticSeverity, PerformanceMetrics

__all__ = [
    "ATTRIBUTES_KEY",
    "TEXT_KEY",
    "BuilderConfig",
    "ConfigError",
    "ConfigValidationError",
    "ConverterConfig",
    "CoreConfig",
    "ValidatorConfig",
    "InvalidMarkupError",
    "MarkupBuildError",
    "StructuredTextError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
