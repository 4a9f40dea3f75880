"""Discovery and substitution of ``@type/name`` mentions in source text."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Iterator, Optional

from .errors import ResolutionError
from .models import Reference, ReferenceType

ReferenceHandler = Callable[[Reference, Path], str]

_MENTION_PATTERN = re.compile(r"@@|@([a-z]+)/([A-Za-z0-9_-]+(?:/[A-Za-z0-9_-]+)*)")


def _reference_for(match: "re.Match[str]", source: Optional[Path]) -> Optional[Reference]:
    if match.group(0) == "@@":
        return None
    ref_type = ReferenceType.from_name(match.group(1))
    if ref_type is None:
        return None
    path, _, name = match.group(2).rpartition("/")
    try:
        return Reference(type=ref_type, name=name, path=path or None)
    except ValueError as exc:
        raise ResolutionError(str(exc), source=source) from exc


def iter_references(text: str, *, source: Optional[Path] = None) -> Iterator[Reference]:
    """Yield every known reference mentioned in ``text``."""
    for match in _MENTION_PATTERN.finditer(text):
        reference = _reference_for(match, source)
        if reference is not None:
            yield reference


def expand(
    text: str,
    resolve: Callable[[Reference], str],
    *,
    source: Optional[Path] = None,
) -> str:
    """Replace references in ``text`` with ``resolve(reference)``.

    ``@@`` collapses to a literal ``@``; mentions whose type is not a known
    reference type (CSS at-rules, for instance) are left untouched.
    """

    def substitute(match: "re.Match[str]") -> str:
        if match.group(0) == "@@":
            return "@"
        reference = _reference_for(match, source)
        if reference is None:
            return match.group(0)
        return resolve(reference)

    return _MENTION_PATTERN.sub(substitute, text)


__all__ = ["ReferenceHandler", "expand", "iter_references"]
