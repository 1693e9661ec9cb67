"""Integration adapters for third-party data libraries.

Adapters convert between this package's results and the objects of other
libraries while keeping the never-fail contract: every conversion returns a
``ConversionResult`` and reports problems through ``errors`` and
``diagnostics`` instead of raising.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type

from lxml import etree

from structured_text_core.lines.validator import ValidationResult, validate
from structured_text_core.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    StructuredTextError,
    get_logger,
)
from structured_text_core.tree.builder import JSONToXMLBuilder
from structured_text_core.tree.converter import XMLToJSONConverter

MS_PER_SECOND = 1000


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # XML element trees (lxml)
    DATA_FRAME = auto()      # Tabular data (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Base class for bidirectional conversion with a target library."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def to_target(self, source: Any) -> ConversionResult:
        """Convert one of this package's results to the target library."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target library data back into this package's types."""

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0,
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(
            "Adapter conversion failed", extra={"error": error_message}
        )
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id,
                )
            ],
        )


class LxmlAdapter(IntegrationAdapter):
    """Bidirectional conversion between converted JSON values and lxml elements."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Converted JSON values to and from lxml.etree elements",
        )

    def to_target(self, source: Any) -> ConversionResult:
        """Render a converted value (``{root: ...}``) as an lxml element."""
        start_time = time.time()
        try:
            element = JSONToXMLBuilder(correlation_id=self.correlation_id).build_element(
                source
            )
        except (StructuredTextError, TypeError) as e:
            return self._create_error_result(
                f"Failed to convert to lxml: {e}",
                source,
                (time.time() - start_time) * MS_PER_SECOND,
            )

        return ConversionResult(
            success=True,
            converted_data=element,
            original_data=source,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            metadata={"root": element.tag, "element_count": len(element.xpath("//*"))},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert an lxml element into a ``{root: ...}`` value."""
        start_time = time.time()
        if not isinstance(target_data, etree._Element):
            return self._create_error_result(
                "Target data is not a valid lxml element", target_data
            )
        # Comments and processing instructions are _Element subclasses too
        if not isinstance(target_data.tag, str):
            return self._create_error_result(
                "Target data is not an lxml element node", target_data
            )

        converter = XMLToJSONConverter(correlation_id=self.correlation_id)
        try:
            converted = converter.convert_element(target_data)
        except StructuredTextError as e:
            return self._create_error_result(
                f"Failed to convert from lxml: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND,
            )
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=target_data,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            metadata={"element_count": converter.last_metrics.elements_converted},
        )


class PandasAdapter(IntegrationAdapter):
    """Bidirectional conversion between validation results and pandas DataFrames."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="Valid JSON Lines records to and from pandas DataFrame",
        )

    def to_target(self, source: Any) -> ConversionResult:
        """Flatten the valid records of a ``ValidationResult`` into a DataFrame.

        Object records are flattened with ``pandas.json_normalize``; any other
        JSON value lands in a ``value`` column. The index is the source line
        number.
        """
        # pandas is heavy; import it on first use
        import pandas as pd

        start_time = time.time()
        if not isinstance(source, ValidationResult):
            return self._create_error_result(
                "Source is not a ValidationResult", source
            )

        rows = [
            record.value if isinstance(record.value, dict) else {"value": record.value}
            for record in source.records
        ]
        frame = pd.json_normalize(rows)
        frame.index = pd.Index(
            [record.line_number for record in source.records], name="line_number"
        )

        return ConversionResult(
            success=True,
            converted_data=frame,
            original_data=source,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            metadata={
                "row_count": len(frame),
                "columns": list(frame.columns),
                "skipped_invalid_lines": source.invalid_lines,
            },
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Serialize DataFrame rows as JSON Lines and validate them."""
        import pandas as pd

        start_time = time.time()
        if not isinstance(target_data, pd.DataFrame):
            return self._create_error_result(
                "Target data is not a pandas DataFrame", target_data
            )

        if target_data.empty:
            jsonl = ""
        else:
            jsonl = target_data.to_json(orient="records", lines=True)
        result = validate(jsonl, correlation_id=self.correlation_id)
        return ConversionResult(
            success=result.is_valid,
            converted_data=result,
            original_data=target_data,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            metadata={"jsonl_length": len(jsonl)},
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None,
    ) -> Optional[IntegrationAdapter]:
        """Get a fresh adapter instance by name, or None if unknown."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        return adapter_class(correlation_id)

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata of all registered adapters."""
        with self._lock:
            classes = list(self._adapters.values())
        return [adapter_class().metadata for adapter_class in classes]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None,
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all registered integration adapters."""
    return _adapter_registry.list_available_adapters()


register_adapter(LxmlAdapter)
register_adapter(PandasAdapter)
