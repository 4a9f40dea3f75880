"""File naming rules: locale variants, file kinds and component paths."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple

from .models import ReferenceType

_LOCALE_PATTERN = re.compile(r"^([a-zA-Z]{2})(?:[-_]([a-zA-Z]{2}))?$")
# Variants embedded in file names must already be in canonical casing.
_VARIANT_PATTERN = re.compile(r"^[a-z]{2}(?:-[A-Z]{2})?$")
_COMPO_PATTERN = re.compile(r"^((?:(res|lib)/)?(?:[\w-]+/)*[\w-]+)/?$", re.IGNORECASE)
_URL_PATTERN = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//)")

RESOURCE_DIR = "res"
LAYOUT_EXT = ".htm"

MEDIA_EXTENSIONS = {
    ReferenceType.IMAGE: frozenset({".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".bmp", ".ico"}),
    ReferenceType.AUDIO: frozenset({".mp3", ".ogg", ".wav", ".m4a", ".aac"}),
    ReferenceType.VIDEO: frozenset({".mp4", ".webm", ".ogv", ".avi", ".mov"}),
}


class FileKind(str, Enum):
    LAYOUT = "layout"
    STYLE = "style"
    SCRIPT = "script"
    XML = "xml"
    MEDIA = "media"
    MANIFEST = "manifest"
    OTHER = "other"


def file_kind(path: Path) -> FileKind:
    suffix = path.suffix.lower()
    if suffix in {".htm", ".html"}:
        return FileKind.LAYOUT
    if suffix == ".css":
        return FileKind.STYLE
    if suffix == ".js":
        return FileKind.SCRIPT
    if suffix == ".xml":
        return FileKind.XML
    if suffix == ".json":
        return FileKind.MANIFEST
    if any(suffix in extensions for extensions in MEDIA_EXTENSIONS.values()):
        return FileKind.MEDIA
    return FileKind.OTHER


def normalize_locale(tag: str) -> str:
    """Return BCP-style casing (``en``, ``en-US``) or raise ValueError."""
    match = _LOCALE_PATTERN.match(tag.strip())
    if match is None:
        raise ValueError(f"invalid locale '{tag}'")
    language, region = match.group(1).lower(), match.group(2)
    return f"{language}-{region.upper()}" if region else language


def split_variant(stem: str) -> Tuple[str, Optional[str]]:
    """Split ``strings_fr`` into ``("strings", "fr")``.

    A trailing ``_suffix`` counts as a locale variant only when it looks like
    a language tag; otherwise it is part of the base name.
    """
    base, sep, suffix = stem.rpartition("_")
    if sep and base and _VARIANT_PATTERN.match(suffix):
        return base, suffix
    return stem, None


def is_url(value: str) -> bool:
    return bool(_URL_PATTERN.match(value))


@dataclass(frozen=True)
class CompoPath:
    """Project-relative component directory, e.g. ``res/page/index``."""

    value: str

    @classmethod
    def parse(cls, text: str) -> "CompoPath":
        match = _COMPO_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"invalid component path '{text}'")
        path = match.group(1)
        if match.group(2) is None:
            path = f"{RESOURCE_DIR}/{path}"
        return cls(path)

    @property
    def name(self) -> str:
        return PurePosixPath(self.value).name

    def directory(self, root: Path) -> Path:
        return root / self.value

    def is_inline(self, root: Path) -> bool:
        """Inline components are a bare layout file with no enclosing directory."""
        return not self.directory(root).is_dir() and (root / f"{self.value}{LAYOUT_EXT}").is_file()

    def layout_file(self, root: Path) -> Path:
        if self.is_inline(root):
            return root / f"{self.value}{LAYOUT_EXT}"
        return self.directory(root) / f"{self.name}{LAYOUT_EXT}"

    def sibling(self, root: Path, extension: str) -> Optional[Path]:
        """Return ``<dir>/<name><extension>``; inline components have no siblings."""
        if self.is_inline(root):
            return None
        return self.directory(root) / f"{self.name}{extension}"

    def __str__(self) -> str:
        return self.value


def split_template_reference(text: str) -> Tuple[CompoPath, Optional[str]]:
    """Split ``res/template/page#body`` into component path and slot name."""
    path, _, slot = text.partition("#")
    return CompoPath.parse(path), (slot.strip() or None)


__all__ = [
    "CompoPath",
    "FileKind",
    "LAYOUT_EXT",
    "MEDIA_EXTENSIONS",
    "RESOURCE_DIR",
    "file_kind",
    "is_url",
    "normalize_locale",
    "split_template_reference",
    "split_variant",
]
