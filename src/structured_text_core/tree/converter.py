"""XML to JSON tree conversion.

Parses one well-formed markup document with lxml and reshapes it into plain
Python values (``None``, ``str``, ``dict`` and ``list``) using the
``@attributes`` / ``#text`` conventions:

* attributes are collected under the attributes key, values kept as strings;
* an element whose only child node is text, and that has no attributes,
  becomes the bare trimmed string;
* repeated sibling tag names collapse into a list in document order;
* an element with nothing to report becomes ``None``.

Conversion is fail-fast: any well-formedness problem raises
``InvalidMarkupError`` and nothing partial is returned.
"""

import json
import time
from typing import Any, Dict, Iterator, List, Optional, Union

from lxml import etree

from structured_text_core.shared import (
    ConverterConfig,
    InvalidMarkupError,
    PerformanceMetrics,
    get_logger,
)

ConvertedValue = Union[None, str, Dict[str, Any], List[Any]]

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

# Max length for content preview in logs
PREVIEW_LENGTH = 100
MS_PER_SECOND = 1000


def _iter_child_nodes(element: Any) -> Iterator[Any]:
    """Yield an element's child nodes in document order.

    lxml stores character data on ``text``/``tail`` rather than as nodes, so
    text runs are yielded as plain strings alongside the child elements,
    comments and processing instructions.
    """
    if element.text is not None:
        yield element.text
    for child in element:
        yield child
        if child.tail is not None:
            yield child.tail


def _qualified_name(tag: str, prefix_for: Dict[Optional[str], Optional[str]]) -> str:
    """Turn a Clark-notation tag into ``prefix:local`` as written in the source."""
    qname = etree.QName(tag)
    if qname.namespace is None:
        return qname.localname
    prefix = prefix_for.get(qname.namespace)
    if prefix:
        return f"{prefix}:{qname.localname}"
    return qname.localname


class XMLToJSONConverter:
    """Configured XML to JSON converter.

    Holds no per-document state; every ``convert`` call builds its result from
    scratch, so one instance can be reused freely.
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize converter.

        Args:
            config: Converter configuration (defaults to ``ConverterConfig()``)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ConverterConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_to_json")
        self.last_metrics = PerformanceMetrics()

    def convert(self, markup_text: Union[str, bytes]) -> Dict[str, ConvertedValue]:
        """Convert a markup document to ``{root_tag: converted_root}``.

        Args:
            markup_text: The complete document, as text or encoded bytes

        Returns:
            Single-key mapping from the root tag name to its converted value

        Raises:
            InvalidMarkupError: If the document is empty or not well-formed

        Examples:
            >>> XMLToJSONConverter().convert("<root><name>test</name></root>")
            {'root': {'name': 'test'}}
        """
        start_time = time.time()
        metrics = PerformanceMetrics(characters_processed=len(markup_text))
        self.last_metrics = metrics

        self.logger.debug(
            "Starting XML conversion",
            extra={
                "content_length": len(markup_text),
                "preview": markup_text[:PREVIEW_LENGTH],
            }
        )

        root = self._parse(markup_text)
        converted = self._convert_root(root, metrics)
        root_name = next(iter(converted))

        metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        self.logger.info(
            "XML conversion completed",
            extra={
                "root": root_name,
                "element_count": metrics.elements_converted,
                "processing_time_ms": metrics.processing_time_ms,
            }
        )
        return converted

    def convert_element(self, element: Any) -> Dict[str, ConvertedValue]:
        """Convert an already parsed lxml element as if it were the document root."""
        metrics = PerformanceMetrics()
        self.last_metrics = metrics
        return self._convert_root(element, metrics)

    def _convert_root(
        self, root: Any, metrics: PerformanceMetrics
    ) -> Dict[str, ConvertedValue]:
        root_name = _qualified_name(root.tag, self._prefix_lookup(root))
        try:
            return {root_name: self._convert_element(root, None, metrics)}
        except RecursionError as e:
            self.logger.warning(
                "Markup nesting exceeds the recursion limit",
                extra={"element_count": metrics.elements_converted}
            )
            raise InvalidMarkupError("Maximum nesting depth exceeded") from e

    def _parse(self, markup_text: Union[str, bytes]) -> Any:
        if not markup_text.strip():
            self.logger.warning("Rejected empty markup document")
            raise InvalidMarkupError("Document is empty", line=1, column=1)

        parser_options = {
            "resolve_entities": False,
            "no_network": True,
            "load_dtd": False,
            "huge_tree": self.config.huge_tree,
        }
        if isinstance(markup_text, str):
            # The text is already decoded, so any declared encoding is moot
            data = markup_text.encode("utf-8")
            parser = etree.XMLParser(encoding="utf-8", **parser_options)
        else:
            data = markup_text
            parser = etree.XMLParser(**parser_options)

        try:
            return etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            line, column = e.position if e.position else (None, None)
            self.logger.warning(
                "Markup is not well-formed",
                extra={"parser_message": e.msg, "line": line, "column": column}
            )
            raise InvalidMarkupError(e.msg, line=line, column=column) from e

    @staticmethod
    def _prefix_lookup(element: Any) -> Dict[Optional[str], Optional[str]]:
        """Map namespace URI to the prefix in scope for ``element``."""
        lookup: Dict[Optional[str], Optional[str]] = {XML_NAMESPACE: "xml"}
        for prefix, uri in element.nsmap.items():
            # An explicit prefix beats the default namespace for the same URI
            if prefix is not None or uri not in lookup:
                lookup[uri] = prefix
        return lookup

    def _collect_attributes(
        self,
        element: Any,
        parent: Any,
        prefix_for: Dict[Optional[str], Optional[str]],
    ) -> Dict[str, str]:
        attributes: Dict[str, str] = {}

        if self.config.include_namespace_declarations:
            inherited = parent.nsmap if parent is not None else {}
            for prefix, uri in element.nsmap.items():
                if inherited.get(prefix) != uri:
                    name = "xmlns" if prefix is None else f"xmlns:{prefix}"
                    attributes[name] = uri

        for name, value in element.attrib.items():
            attributes[_qualified_name(name, prefix_for)] = value
        return attributes

    def _convert_element(
        self,
        element: Any,
        parent: Any,
        metrics: PerformanceMetrics,
    ) -> ConvertedValue:
        metrics.elements_converted += 1
        prefix_for = self._prefix_lookup(element)
        attributes = self._collect_attributes(element, parent, prefix_for)
        nodes = list(_iter_child_nodes(element))

        obj: Dict[str, Any] = {}
        if attributes:
            obj[self.config.attributes_key] = attributes

        texts: List[str] = []
        collapsed = set()
        for node in nodes:
            if isinstance(node, str):
                text = node.strip()
                if not text:
                    continue
                if len(nodes) == 1 and not attributes:
                    return text
                if not texts:
                    # Reserve the key position at the first text run
                    obj[self.config.text_key] = text
                texts.append(text)
            elif node.tag is etree.Entity:
                # Unresolved entity reference, kept as written
                if not texts:
                    obj[self.config.text_key] = node.text
                texts.append(node.text)
            elif isinstance(node.tag, str):
                name = _qualified_name(node.tag, self._prefix_lookup(node))
                value = self._convert_element(node, element, metrics)
                if name not in obj:
                    obj[name] = value
                elif name in collapsed:
                    obj[name].append(value)
                else:
                    obj[name] = [obj[name], value]
                    collapsed.add(name)

        if texts:
            obj[self.config.text_key] = self.config.text_joiner.join(texts)

        if not obj:
            return None
        return obj


def convert(
    markup_text: Union[str, bytes],
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None,
) -> Dict[str, ConvertedValue]:
    """Convert an XML document into nested plain Python values.

    Args:
        markup_text: XML document text
        config: Optional converter configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ``{root_tag: converted_root}``

    Raises:
        InvalidMarkupError: If the document is not well-formed

    Examples:
        >>> convert('<root id="123"></root>')
        {'root': {'@attributes': {'id': '123'}}}
        >>> convert("<root><item>1</item><item>2</item></root>")
        {'root': {'item': ['1', '2']}}
    """
    return XMLToJSONConverter(config, correlation_id).convert(markup_text)


def convert_to_json(
    markup_text: Union[str, bytes],
    indent: Optional[int] = 2,
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """Convert an XML document and serialize the result as JSON text."""
    converted = convert(markup_text, config, correlation_id)
    return json.dumps(converted, indent=indent, ensure_ascii=False)
