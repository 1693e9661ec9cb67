"""Public API layer: adapters to third-party libraries."""

from .adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)

__all__ = [
    "AdapterMetadata",
    "AdapterRegistry",
    "AdapterType",
    "ConversionResult",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "get_adapter",
    "list_available_adapters",
    "register_adapter",
]
