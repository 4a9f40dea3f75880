"""Composition operators carried as attributes on layout elements."""

from __future__ import annotations

from enum import Enum
from typing import Iterator, List, Optional

from lxml import etree

WOOD_NAMESPACE = "js-lib.com/wood"


class Operator(str, Enum):
    TEMPLATE = "template"
    CONTENT = "content"
    EDITABLE = "editable"
    COMPO = "compo"
    PARAM = "param"


class OperatorNaming(str, Enum):
    """How operator attributes are spelled in layout files.

    ``data-attr`` uses ``data-compo``, ``attr`` uses a bare ``compo`` and
    ``xmlns`` uses ``wood:compo`` bound to the wood namespace.
    """

    DATA_ATTR = "data-attr"
    ATTR = "attr"
    XMLNS = "xmlns"


class OperatorSyntax:
    """Reads and removes operator attributes for one naming strategy."""

    def __init__(self, naming: OperatorNaming = OperatorNaming.DATA_ATTR) -> None:
        self.naming = OperatorNaming(naming)
        self._names = {operator: self._attribute_name(operator) for operator in Operator}
        self._operators = {name: operator for operator, name in self._names.items()}

    def _attribute_name(self, operator: Operator) -> str:
        if self.naming is OperatorNaming.DATA_ATTR:
            return f"data-{operator.value}"
        if self.naming is OperatorNaming.XMLNS:
            return f"{{{WOOD_NAMESPACE}}}{operator.value}"
        return operator.value

    def attribute(self, operator: Operator) -> str:
        return self._names[operator]

    def is_operator(self, attribute: str) -> bool:
        return attribute in self._operators

    def get(self, element: etree._Element, operator: Operator) -> Optional[str]:
        value = element.get(self._names[operator])
        return value.strip() if value is not None else None

    def has(self, element: etree._Element, operator: Operator) -> bool:
        return self._names[operator] in element.attrib

    def remove(self, element: etree._Element, operator: Operator) -> None:
        element.attrib.pop(self._names[operator], None)

    def iter(self, root: etree._Element, operator: Operator) -> Iterator[etree._Element]:
        """Yield elements carrying ``operator`` in document order, root included."""
        name = self._names[operator]
        for element in root.iter(tag=etree.Element):
            if name in element.attrib:
                yield element

    def find_all(self, root: etree._Element, operator: Operator) -> List[etree._Element]:
        return list(self.iter(root, operator))

    def find(self, root: etree._Element, operator: Operator, value: str) -> Optional[etree._Element]:
        for element in self.iter(root, operator):
            if self.get(element, operator) == value:
                return element
        return None

    def strip(self, root: etree._Element) -> None:
        """Remove every operator attribute and the operator namespace declaration."""
        for element in root.iter(tag=etree.Element):
            for attribute in [name for name in element.attrib if name in self._operators]:
                del element.attrib[attribute]
        if self.naming is OperatorNaming.XMLNS:
            etree.cleanup_namespaces(root)

    def __repr__(self) -> str:
        return f"OperatorSyntax({self.naming.value!r})"


__all__ = ["Operator", "OperatorNaming", "OperatorSyntax", "WOOD_NAMESPACE"]
