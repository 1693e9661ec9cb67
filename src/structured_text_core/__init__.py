"""Structured Text Core.

Pure, synchronous conversion and validation engines for structured text:

- ``convert()`` turns an XML document into nested JSON values using the
  ``@attributes`` / ``#text`` conventions, failing fast on malformed markup.
- ``to_xml()`` renders such values back to XML.
- ``validate()`` checks JSON Lines input line by line, collecting every error
  with its line and column instead of stopping at the first one.

Progressive API Disclosure:
- Level 1: Simple functions - convert(), to_xml(), validate()
- Level 2: Configured engines - XMLToJSONConverter, JSONToXMLBuilder,
  JSONLinesValidator with CoreConfig
"""

__version__ = "0.1.0"
__author__ = "Structured Text Core Team"

# Line validation
from .lines import (
    JSONLinesValidator,
    ParseError,
    Record,
    ValidationResult,
    to_json_array_string,
    validate,
)

# Configuration and errors
from .shared import (
    ATTRIBUTES_KEY,
    TEXT_KEY,
    CoreConfig,
    InvalidMarkupError,
    MarkupBuildError,
    StructuredTextError,
)

# Tree conversion
from .tree import (
    ConvertedValue,
    JSONToXMLBuilder,
    XMLToJSONConverter,
    convert,
    convert_to_json,
    to_xml,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "convert",
    "convert_to_json",
    "to_xml",
    "validate",
    "to_json_array_string",

    # Level 2: Configured engines
    "XMLToJSONConverter",
    "JSONToXMLBuilder",
    "JSONLinesValidator",

    # Result objects and data structures
    "ConvertedValue",
    "ParseError",
    "Record",
    "ValidationResult",

    # Configuration and errors
    "ATTRIBUTES_KEY",
    "TEXT_KEY",
    "CoreConfig",
    "InvalidMarkupError",
    "MarkupBuildError",
    "StructuredTextError",
]
