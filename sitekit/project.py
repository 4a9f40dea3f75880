"""Project model built once by scanning the project tree."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from lxml import etree

from .config import ProjectConfig, load_config
from .errors import CompositionError
from .logging import get_logger
from .models import LinkDescriptor, MetaDescriptor, Reference, ScriptDescriptor
from .operators import OperatorSyntax
from .paths import MEDIA_EXTENSIONS, CompoPath, split_variant

logger = get_logger("project")

_ALWAYS_EXCLUDED = {"__pycache__", "node_modules"}

RESET_STYLE = "reset.css"
FX_STYLE = "fx.css"


@dataclass(frozen=True)
class ThemeStyles:
    """Theme style sheets; ``others`` are independent of each other."""

    reset: Optional[Path]
    fx: Optional[Path]
    others: Tuple[Path, ...]


class Project:
    """Immutable view of a project: configuration plus discovered pages and scripts."""

    def __init__(
        self,
        config: ProjectConfig,
        pages: Sequence[CompoPath],
        script_files: Sequence[Path],
    ) -> None:
        self.config = config
        self.root = config.root
        self._pages = tuple(pages)
        self._script_files = tuple(script_files)
        self.operators = OperatorSyntax(config.operators)

    @classmethod
    def load(cls, path: Path | str, config: Optional[ProjectConfig] = None) -> "Project":
        root = Path(path).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Project path does not exist: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")
        if config is None:
            config = load_config(root)
        pages, scripts = _ProjectScanner(config).scan()
        logger.debug("Scanned %s: %d page(s), %d script(s)", root, len(pages), len(scripts))
        return cls(config, pages, scripts)

    # -- configuration views -------------------------------------------------

    @property
    def locales(self) -> List[str]:
        return list(self.config.locales)

    @property
    def default_locale(self) -> str:
        return self.config.default_locale

    @property
    def is_multi_locale(self) -> bool:
        return len(self.config.locales) > 1

    @property
    def title(self) -> Optional[str]:
        return self.config.title

    @property
    def authors(self) -> List[str]:
        return list(self.config.authors)

    @property
    def build_dir(self) -> Path:
        return self.root / self.config.build_dir

    @property
    def asset_dir(self) -> Path:
        return self.root / self.config.asset_dir

    @property
    def theme_dir(self) -> Path:
        return self.root / self.config.theme_dir

    @property
    def favicon(self) -> Path:
        return self.root / self.config.favicon

    @property
    def manifest(self) -> Path:
        return self.root / self.config.manifest

    @property
    def service_worker(self) -> Path:
        return self.root / self.config.service_worker

    @property
    def metas(self) -> List[MetaDescriptor]:
        return list(self.config.metas)

    @property
    def links(self) -> List[LinkDescriptor]:
        return list(self.config.links)

    @property
    def scripts(self) -> List[ScriptDescriptor]:
        return list(self.config.scripts)

    @property
    def pages(self) -> List[CompoPath]:
        return list(self._pages)

    @property
    def script_files(self) -> List[Path]:
        return list(self._script_files)

    # -- file helpers --------------------------------------------------------

    def file(self, relative: str) -> Path:
        return self.root / relative

    def relative(self, path: Path) -> str:
        return Path(os.path.relpath(path, self.root)).as_posix()

    def compo_path(self, text: str, *, source: Optional[Path] = None) -> CompoPath:
        try:
            return CompoPath.parse(text)
        except ValueError as exc:
            raise CompositionError(str(exc), source=source) from exc

    def display_name(self, compo_name: str) -> str:
        """``<project title> / <Title Case name>``, or the bare name without a title."""
        name = " ".join(part.capitalize() for part in compo_name.replace("_", "-").split("-") if part)
        return f"{self.title} / {name}" if self.title else name

    def theme_styles(self) -> ThemeStyles:
        theme_dir = self.theme_dir
        if not theme_dir.is_dir():
            return ThemeStyles(reset=None, fx=None, others=())
        reset = theme_dir / RESET_STYLE
        fx = theme_dir / FX_STYLE
        others = tuple(
            path
            for path in sorted(theme_dir.glob("*.css"))
            if path.is_file() and path.name not in {RESET_STYLE, FX_STYLE}
        )
        return ThemeStyles(
            reset=reset if reset.is_file() else None,
            fx=fx if fx.is_file() else None,
            others=others,
        )

    def media_file(self, locale: str, reference: Reference, source_file: Path) -> Optional[Path]:
        """Find the media file for ``reference``, local directory first, then assets."""
        extensions = MEDIA_EXTENSIONS[reference.type]
        for base in (source_file.parent, self.asset_dir):
            directory = base / reference.path if reference.path else base
            found = _find_media(directory, reference.name, extensions, locale, self.default_locale)
            if found is not None:
                return found
        return None


def _find_media(
    directory: Path,
    name: str,
    extensions: frozenset[str],
    locale: str,
    default_locale: str,
) -> Optional[Path]:
    if not directory.is_dir():
        return None
    candidates = {}
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix.lower() not in extensions:
            continue
        base, variant = split_variant(path.stem)
        if base == name:
            candidates.setdefault(variant, path)
    for key in (locale, None, default_locale):
        if key in candidates:
            return candidates[key]
    return None


class _ProjectScanner:
    """Walks the project tree collecting pages and script files."""

    def __init__(self, config: ProjectConfig) -> None:
        self.config = config
        self.root = config.root
        self._excluded = {config.build_dir, *config.exclude_dirs}

    def scan(self) -> Tuple[List[CompoPath], List[Path]]:
        pages: List[CompoPath] = []
        scripts: List[Path] = []
        for path in self._iter_files():
            if path.suffix == ".js":
                scripts.append(path)
            elif path.suffix == ".xml" and path.stem == path.parent.name and _is_page_descriptor(path):
                relative = path.parent.relative_to(self.root).as_posix()
                pages.append(CompoPath(relative))
        return pages, scripts

    def _iter_files(self) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            dirnames[:] = sorted(
                name for name in dirnames if not self._is_excluded(current / name)
            )
            for filename in sorted(filenames):
                yield current / filename

    def _is_excluded(self, directory: Path) -> bool:
        if directory.name.startswith(".") or directory.name in _ALWAYS_EXCLUDED:
            return True
        relative = directory.relative_to(self.root).as_posix()
        return relative in self._excluded


def _is_page_descriptor(path: Path) -> bool:
    try:
        root = etree.parse(str(path), _DESCRIPTOR_PARSER).getroot()
    except etree.XMLSyntaxError as exc:
        raise CompositionError(f"malformed component descriptor: {exc}", source=path) from exc
    return root.tag == "page"


_DESCRIPTOR_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


__all__ = ["Project", "ThemeStyles"]
