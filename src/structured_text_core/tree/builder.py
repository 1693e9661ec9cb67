"""JSON to XML rendering.

The inverse of ``structured_text_core.tree.converter``: mappings become
elements, lists become repeated sibling elements, and the reserved
``@attributes`` / ``#text`` keys become attributes and character data.
Namespace declarations found among the attributes (``xmlns``,
``xmlns:prefix``) are honoured so that prefixed names written by the
converter render back to the same qualified names.
"""

import json
import time
from typing import Any, Dict, Mapping, Optional, Union

from lxml import etree

from structured_text_core.shared import (
    BuilderConfig,
    MarkupBuildError,
    get_logger,
)
from structured_text_core.tree.converter import XML_NAMESPACE

MS_PER_SECOND = 1000

NamespaceScope = Dict[Optional[str], str]


def _scalar_text(value: Any) -> str:
    """Render a JSON scalar as text, spelling booleans the JSON way."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class JSONToXMLBuilder:
    """Render JSON values as an XML document."""

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or BuilderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "json_to_xml")

    def build(self, data: Union[str, Mapping[str, Any]]) -> str:
        """Render ``data`` as XML text.

        Args:
            data: A JSON object as text, or an already parsed mapping

        Returns:
            The XML document, without a declaration unless configured

        Raises:
            TypeError: If ``data`` is neither a string nor a mapping
            MarkupBuildError: If the JSON text is invalid or a key cannot be
                used as an XML name
        """
        start_time = time.time()
        root = self.build_element(data)
        root_name = root.tag
        xml = etree.tostring(
            root, pretty_print=self.config.pretty_print, encoding="unicode"
        ).rstrip("\n")
        if self.config.xml_declaration:
            xml = '<?xml version="1.0" encoding="UTF-8"?>\n' + xml

        self.logger.info(
            "XML rendering completed",
            extra={
                "root": root_name,
                "output_length": len(xml),
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            }
        )
        return xml

    def build_element(self, data: Union[str, Mapping[str, Any]]) -> Any:
        """Render ``data`` as an lxml element tree and return its root."""
        value = self._load(data)

        if len(value) == 1:
            root_name, content = next(iter(value.items()))
            if isinstance(content, list):
                root_name, content = self.config.root_name, value
        else:
            root_name, content = self.config.root_name, value

        return self._build_element(None, root_name, content, {})

    def _load(self, data: Union[str, Mapping[str, Any]]) -> Mapping[str, Any]:
        if isinstance(data, str):
            try:
                value = json.loads(data)
            except json.JSONDecodeError as e:
                raise MarkupBuildError(f"Invalid JSON: {e}") from e
            if not isinstance(value, dict):
                raise MarkupBuildError("JSON input must be an object")
            return value
        if isinstance(data, Mapping):
            return data
        raise TypeError("Input must be a JSON string or an object.")

    def _resolve(
        self, name: str, scope: NamespaceScope, is_attribute: bool = False
    ) -> str:
        """Resolve ``prefix:local`` against the namespaces in scope."""
        if ":" in name:
            prefix, local = name.split(":", 1)
            if prefix == "xml":
                return f"{{{XML_NAMESPACE}}}{local}"
            if prefix not in scope:
                raise MarkupBuildError("Undeclared namespace prefix", key=name)
            return f"{{{scope[prefix]}}}{local}"
        # The default namespace never applies to attributes
        if not is_attribute and None in scope:
            return f"{{{scope[None]}}}{name}"
        return name

    def _build_element(
        self,
        parent: Any,
        name: str,
        value: Any,
        scope: NamespaceScope,
    ) -> Any:
        attributes: Mapping[str, Any] = {}
        if isinstance(value, Mapping):
            raw_attributes = value.get(self.config.attributes_key) or {}
            if not isinstance(raw_attributes, Mapping):
                raise MarkupBuildError(
                    "Attributes must be an object", key=self.config.attributes_key
                )
            attributes = raw_attributes

        declarations: NamespaceScope = {}
        for attr_name, attr_value in attributes.items():
            if attr_name == "xmlns":
                declarations[None] = _scalar_text(attr_value)
            elif attr_name.startswith("xmlns:"):
                declarations[attr_name[len("xmlns:"):]] = _scalar_text(attr_value)
        inner_scope = {**scope, **declarations}

        try:
            tag = self._resolve(name, inner_scope)
            if parent is None:
                element = etree.Element(tag, nsmap=declarations or None)
            else:
                element = etree.SubElement(parent, tag, nsmap=declarations or None)
            for attr_name, attr_value in attributes.items():
                if attr_name == "xmlns" or attr_name.startswith("xmlns:"):
                    continue
                element.set(
                    self._resolve(attr_name, inner_scope, is_attribute=True),
                    _scalar_text(attr_value),
                )
        except ValueError as e:
            raise MarkupBuildError(str(e), key=name) from e

        self._fill(element, value, inner_scope)
        return element

    @staticmethod
    def _set_text(element: Any, value: Any) -> None:
        try:
            element.text = _scalar_text(value)
        except ValueError as e:
            raise MarkupBuildError(str(e), key=element.tag) from e

    def _fill(self, element: Any, value: Any, scope: NamespaceScope) -> None:
        if value is None:
            return
        if isinstance(value, list):
            raise MarkupBuildError("Nested arrays cannot be rendered as markup")
        if not isinstance(value, Mapping):
            self._set_text(element, value)
            return

        for key, child in value.items():
            if key == self.config.attributes_key:
                continue
            if key == self.config.text_key:
                if child is not None:
                    self._set_text(element, child)
            elif isinstance(child, list):
                for item in child:
                    self._build_element(element, key, item, scope)
            else:
                self._build_element(element, key, child, scope)


def to_xml(
    data: Union[str, Mapping[str, Any]],
    config: Optional[BuilderConfig] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """Render a JSON object (text or mapping) as pretty-printed XML.

    Examples:
        >>> print(to_xml({"person": {"name": "John", "age": 30}}))
        <person>
          <name>John</name>
          <age>30</age>
        </person>
    """
    return JSONToXMLBuilder(config, correlation_id).build(data)
