"""Resolution of resource references to variable values or media files."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from . import references
from .errors import MissingResourceError, ResolutionError
from .logging import get_logger
from .models import Reference
from .references import ReferenceHandler
from .stores.variables import VariableRegistry

if TYPE_CHECKING:
    from .project import Project

logger = get_logger("resolver")


class LayoutParameters:
    """Values supplied to a widget or template through the ``param`` operator.

    The operator value reads ``name:value;name2:value2``; values are XML
    escaped since they are substituted into layout source text.
    """

    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(values or {})

    @classmethod
    def parse(cls, text: Optional[str], *, source: Optional[Path] = None) -> "LayoutParameters":
        values: Dict[str, str] = {}
        for item in (text or "").split(";"):
            if not item.strip():
                continue
            name, sep, value = item.partition(":")
            name = name.strip()
            if not sep or not name:
                raise ResolutionError(f"invalid layout parameter '{item.strip()}'", source=source)
            values[name] = escape(value.strip(), {'"': "&quot;"})
        return cls(values)

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __repr__(self) -> str:
        return f"LayoutParameters({self._values!r})"


class ReferenceResolver:
    """Looks references up in the source directory, then in the project assets.

    Variable references consult exactly two stores: the one owning the source
    file's directory and the asset store. Media references search the source
    directory (extended by the reference path) and then the asset directory.
    """

    def __init__(self, project: Project, variables: Optional[VariableRegistry] = None) -> None:
        self.project = project
        self.variables = variables or VariableRegistry(project.asset_dir, project.default_locale)
        self._trace: List[Tuple[Path, Reference]] = []

    def resolve(
        self,
        reference: Reference,
        source_file: Path,
        locale: str,
        handler: Optional[ReferenceHandler] = None,
    ) -> Union[str, Path]:
        """Return the variable value or the media file for ``reference``.

        Values may mention further references; those are expanded relative to
        the same source file through ``handler`` (defaulting to this resolver).
        """
        if reference.is_media:
            media = self.project.media_file(locale, reference, source_file)
            if media is None:
                raise MissingResourceError(f"missing media file for {reference}", source=source_file)
            return media
        if not reference.is_variable:
            raise ResolutionError(f"{reference} cannot be resolved outside a layout", source=source_file)

        value = self.variables.store_for(source_file.parent).get(locale, reference)
        if value is None:
            value = self.variables.asset_store.get(locale, reference)
            if value is not None:
                logger.debug("Resolved %s for %s from the asset store", reference, source_file)
        if value is None:
            raise MissingResourceError(f"missing variable value for {reference}", source=source_file)
        return self._expand_nested(value, reference, source_file, locale, handler)

    def _expand_nested(
        self,
        value: str,
        reference: Reference,
        source_file: Path,
        locale: str,
        handler: Optional[ReferenceHandler],
    ) -> str:
        if "@" not in value:
            return value
        entry = (source_file, reference)
        if entry in self._trace:
            chain = " -> ".join(str(item[1]) for item in self._trace + [entry])
            raise ResolutionError(f"circular variable references: {chain}", source=source_file)
        self._trace.append(entry)
        try:
            return self.expand(value, source_file, locale, handler)
        finally:
            self._trace.pop()

    def expand(
        self,
        text: str,
        source_file: Path,
        locale: str,
        handler: Optional[ReferenceHandler] = None,
    ) -> str:
        """Substitute every reference in ``text``."""

        def resolve(reference: Reference) -> str:
            if handler is not None:
                return handler(reference, source_file)
            value = self.resolve(reference, source_file, locale)
            if isinstance(value, Path):
                return self.project.relative(value)
            return value

        return references.expand(text, resolve, source=source_file)


__all__ = ["LayoutParameters", "ReferenceResolver"]
