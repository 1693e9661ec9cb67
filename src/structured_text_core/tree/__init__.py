"""Tree conversion between XML documents and nested JSON values."""

from .builder import JSONToXMLBuilder, to_xml
from .converter import ConvertedValue, XMLToJSONConverter, convert, convert_to_json

__all__ = [
    "ConvertedValue",
    "XMLToJSONConverter",
    "convert",
    "convert_to_json",
    "JSONToXMLBuilder",
    "to_xml",
]
