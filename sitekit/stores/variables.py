"""Directory-scoped variable stores loaded from XML declaration files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from lxml import etree

from ..errors import ResolutionError
from ..logging import get_logger
from ..models import Reference, ReferenceType
from ..paths import split_variant

logger = get_logger("variables")


class VariableStore:
    """``(locale, reference) -> value`` table for one directory.

    Declaration files are XML documents whose root tag names a variable type,
    e.g. ``<string><title>Home</title></string>``. A locale variant in the
    file name (``strings_fr.xml``) scopes its values to that locale; values
    from variant-less files apply to every locale.
    """

    def __init__(self, directory: Path, default_locale: str) -> None:
        self.directory = directory
        self.default_locale = default_locale
        self._values: Dict[Optional[str], Dict[Reference, str]] = {}
        self._load()

    def _load(self) -> None:
        if not self.directory.is_dir():
            return
        for file in sorted(self.directory.glob("*.xml")):
            if file.is_file():
                self._load_file(file)

    def _load_file(self, file: Path) -> None:
        try:
            root = etree.parse(str(file), _PARSER).getroot()
        except etree.XMLSyntaxError as exc:
            raise ResolutionError(f"malformed variables file: {exc}", source=file) from exc
        if not isinstance(root.tag, str):
            return
        ref_type = ReferenceType.from_name(root.tag)
        if ref_type is None or not ref_type.is_variable:
            # component descriptors share the .xml extension
            return
        _, locale = split_variant(file.stem)
        values = self._values.setdefault(locale, {})
        for element in root.iterchildren(tag=etree.Element):
            try:
                reference = Reference(type=ref_type, name=element.tag)
            except ValueError as exc:
                raise ResolutionError(str(exc), source=file) from exc
            values[reference] = _element_value(element, ref_type, file)
        logger.debug("Loaded %d %s variable(s) from %s", len(root), ref_type.value, file)

    def get(self, locale: str, reference: Reference) -> Optional[str]:
        """Return the raw value: requested locale, variant-less, then default locale."""
        for key in (locale, None, self.default_locale):
            value = self._values.get(key, {}).get(reference)
            if value:
                return value
        return None

    def __contains__(self, reference: Reference) -> bool:
        return any(reference in values for values in self._values.values())

    def __len__(self) -> int:
        return sum(len(values) for values in self._values.values())


class VariableRegistry:
    """Lazily created stores for one build run, keyed by directory."""

    def __init__(self, asset_dir: Path, default_locale: str) -> None:
        self.asset_dir = asset_dir.resolve()
        self.default_locale = default_locale
        self._stores: Dict[Path, VariableStore] = {}

    def store_for(self, directory: Path) -> VariableStore:
        key = directory.resolve()
        store = self._stores.get(key)
        if store is None:
            store = VariableStore(key, self.default_locale)
            self._stores[key] = store
        return store

    @property
    def asset_store(self) -> VariableStore:
        return self.store_for(self.asset_dir)

    def __len__(self) -> int:
        return len(self._stores)


def _element_value(element: etree._Element, ref_type: ReferenceType, source: Path) -> str:
    children = [child for child in element if isinstance(child.tag, str)]
    if not children:
        return (element.text or "").strip()
    if ref_type is not ReferenceType.TEXT:
        raise ResolutionError(
            f"variable '{element.tag}' of type {ref_type.value} may not contain markup",
            source=source,
        )
    # text variables keep their inline markup verbatim
    parts = [element.text or ""]
    parts.extend(etree.tostring(child, encoding="unicode", with_tail=True) for child in element)
    return "".join(parts).strip()


_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


__all__ = ["VariableRegistry", "VariableStore"]
