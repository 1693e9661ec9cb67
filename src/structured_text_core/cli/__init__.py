"""Command-line interface for structured text conversion and validation."""

from .main import main

__all__ = ["main"]
