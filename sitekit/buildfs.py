"""Build target: destination naming and write-once output files."""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Set, Union

from .errors import BuildTargetError
from .logging import get_logger

logger = get_logger("buildfs")

ContentLoader = Callable[[], Union[str, bytes]]


class BuildFS(ABC):
    """Physical output tree of one build run.

    Every write returns the produced file's path relative to the directory of
    the document that references it. A destination already produced during
    the run is never written again.
    """

    def __init__(self, build_dir: Path, build_number: int = 0, *, source_root: Path) -> None:
        if build_number < 0:
            raise BuildTargetError(f"build number must not be negative, got {build_number}")
        self.build_dir = Path(build_dir)
        self.build_number = build_number
        self.source_root = Path(source_root)
        self.locale: Optional[str] = None
        self._processed: Set[Path] = set()

    def set_locale(self, locale: Optional[str]) -> None:
        """Nest subsequent output under ``locale``; None writes to the build root."""
        self.locale = locale

    def reset(self) -> None:
        self._processed.clear()
        self.locale = None

    @property
    def processed_files(self) -> List[Path]:
        return sorted(self._processed)

    # -- write operations ----------------------------------------------------

    def write_page(self, page_name: str, group: Optional[str], document: str) -> str:
        target = self.page_dir(group) / self.insert_build_number(self.format_page_name(page_name))
        if target in self._processed:
            logger.warning("Page %s was already written in this run; skipping %s", target, page_name)
        self._write(target, lambda: document)
        return self._relative(target, self.root_dir())

    def write_style(self, group: Optional[str], style_file: Path, content: ContentLoader) -> str:
        target = self.style_dir() / self.insert_build_number(self.format_style_name(self._segments(style_file)))
        self._write(target, content)
        return self._relative(target, self.page_dir(group))

    def write_script(self, group: Optional[str], script_file: Path, content: ContentLoader) -> str:
        target = self.script_dir() / self.insert_build_number(self.format_script_name(self._segments(script_file)))
        self._write(target, content)
        return self._relative(target, self.page_dir(group))

    def write_media(self, media_file: Path, referrer_dir: Path) -> str:
        target = self.media_dir() / self.insert_build_number(self.format_media_name(self._segments(media_file)))
        self._write(target, lambda: media_file.read_bytes())
        return self._relative(target, referrer_dir)

    def write_page_media(self, group: Optional[str], media_file: Path) -> str:
        return self.write_media(media_file, self.page_dir(group))

    def write_style_media(self, media_file: Path) -> str:
        return self.write_media(media_file, self.style_dir())

    def write_script_media(self, group: Optional[str], media_file: Path) -> str:
        # scripts resolve URLs against the page that loads them
        return self.write_media(media_file, self.page_dir(group))

    def write_manifest_media(self, media_file: Path) -> str:
        return self.write_media(media_file, self.root_dir())

    def write_favicon(self, group: Optional[str], favicon: Path) -> str:
        target = self.media_dir() / favicon.name
        self._write(target, lambda: favicon.read_bytes())
        return self._relative(target, self.page_dir(group))

    def write_manifest(self, group: Optional[str], manifest: Path, content: ContentLoader) -> str:
        target = self.root_dir() / manifest.name
        self._write(target, content)
        return self._relative(target, self.page_dir(group))

    def write_service_worker(self, worker: Path, content: ContentLoader) -> Path:
        target = self.root_dir() / worker.name
        self._write(target, content)
        return target

    # -- naming --------------------------------------------------------------

    def insert_build_number(self, file_name: str) -> str:
        if self.build_number == 0:
            return file_name
        base, dot, extension = file_name.rpartition(".")
        if not dot or not base:
            raise BuildTargetError(f"invalid file name {file_name}; missing extension")
        return "%s-%03d.%s" % (base, self.build_number, extension)

    def root_dir(self) -> Path:
        return self._directory(None)

    @abstractmethod
    def page_dir(self, group: Optional[str]) -> Path: ...

    @abstractmethod
    def style_dir(self) -> Path: ...

    @abstractmethod
    def script_dir(self) -> Path: ...

    @abstractmethod
    def media_dir(self) -> Path: ...

    @abstractmethod
    def format_page_name(self, page_name: str) -> str: ...

    @abstractmethod
    def format_style_name(self, segments: List[str]) -> str: ...

    @abstractmethod
    def format_script_name(self, segments: List[str]) -> str: ...

    @abstractmethod
    def format_media_name(self, segments: List[str]) -> str: ...

    # -- helpers -------------------------------------------------------------

    def _directory(self, name: Optional[str]) -> Path:
        directory = self.build_dir
        if self.locale:
            directory = directory / self.locale
        if name:
            directory = directory / name
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildTargetError(f"cannot create directory: {exc}", source=directory) from exc
        return directory

    def _segments(self, source: Path) -> List[str]:
        """Project-relative path segments of ``source``, file name last."""
        try:
            relative = source.relative_to(self.source_root)
        except ValueError:
            relative = Path(source.name)
        return list(PurePosixPath(relative.as_posix()).parts)

    def _write(self, target: Path, content: ContentLoader) -> None:
        if target in self._processed:
            logger.debug("Skipping %s; already written in this run", target)
            return
        data = content()
        try:
            if isinstance(data, bytes):
                target.write_bytes(data)
            else:
                target.write_text(data, encoding="utf-8")
        except OSError as exc:
            raise BuildTargetError(f"cannot write output: {exc}", source=target) from exc
        self._processed.add(target)
        logger.debug("Wrote %s", target)

    @staticmethod
    def _relative(target: Path, start: Path) -> str:
        return Path(os.path.relpath(target, start)).as_posix()


class DefaultBuildFS(BuildFS):
    """Flat ``style/``, ``script/`` and ``media/`` directories beside the pages."""

    def page_dir(self, group: Optional[str]) -> Path:
        return self._directory(group.strip("/") if group else None)

    def style_dir(self) -> Path:
        return self._directory("style")

    def script_dir(self) -> Path:
        return self._directory("script")

    def media_dir(self) -> Path:
        return self._directory("media")

    def format_page_name(self, page_name: str) -> str:
        return page_name

    def format_style_name(self, segments: List[str]) -> str:
        # res/page/index/index.css -> res-page_index.css
        directories, file_name = segments[:-1], segments[-1]
        if directories and directories[-1] == Path(file_name).stem:
            directories = directories[:-1]
        return "-".join(directories) + "_" + file_name

    def format_script_name(self, segments: List[str]) -> str:
        # res/page/index/index.js -> res.page.index.js
        directories, file_name = segments[:-1], segments[-1]
        if directories and directories[-1] == Path(file_name).stem:
            directories = directories[:-1]
        return ".".join([*directories, file_name])

    def format_media_name(self, segments: List[str]) -> str:
        # res/template/page/icon/logo.png -> res-template-page-icon_logo.png
        return "-".join(segments[:-1]) + "_" + segments[-1]


def clean_build_dir(build_dir: Path) -> None:
    """Remove a previous build's output."""
    if build_dir.exists():
        shutil.rmtree(build_dir)


__all__ = ["BuildFS", "ContentLoader", "DefaultBuildFS", "clean_build_dir"]
