"""Helper utilities for constructing temporary site projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping, Union

from sitekit.project import Project


class ProjectBuilder:
    """Utility for writing files into a throwaway project and loading it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def write(self, files: Mapping[str, Union[str, bytes]]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
                continue
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def project(self) -> Project:
        """Return a freshly scanned project."""
        return Project.load(self.root)

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["ProjectBuilder"]
