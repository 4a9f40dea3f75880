"""Script class index and dependency-driven load ordering."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from .analyzers.scripts import ScriptAnalysis, ScriptDependencyAnalyzer
from .errors import DependencyCycleError
from .logging import get_logger
from .models import DependencyKind, ScriptDescriptor
from .paths import is_url
from .project import Project

logger = get_logger("scripts")


class ScriptIndex:
    """Maps declared classes to the project script declaring them.

    Built once per build run from every script found while scanning the
    project; analyses are cached for the life of the index.
    """

    def __init__(self, project: Project, analyzer: Optional[ScriptDependencyAnalyzer] = None) -> None:
        self.project = project
        self.analyzer = analyzer or ScriptDependencyAnalyzer(project.config.script_aliases)
        self._analyses: Dict[Path, ScriptAnalysis] = {}
        self._classes: Dict[str, Path] = {}
        for path in project.script_files:
            for name in self.analysis(path).declared_classes:
                owner = self._classes.setdefault(name, path)
                if owner != path:
                    logger.warning("Class %s is declared by %s and %s; using the first", name, owner, path)

    def analysis(self, path: Path) -> ScriptAnalysis:
        analysis = self._analyses.get(path)
        if analysis is None:
            analysis = self.analyzer.analyze_file(path)
            self._analyses[path] = analysis
        return analysis

    def script_for(self, class_name: str) -> Optional[Path]:
        return self._classes.get(class_name)

    def __len__(self) -> int:
        return len(self._classes)


@dataclass(frozen=True)
class _Edge:
    target: ScriptDescriptor
    kind: DependencyKind
    class_name: Optional[str] = None


class ScriptOrder:
    """Orders one page's scripts so strong dependencies load first.

    Each requested script is emitted after the depth-first expansion of its
    strong dependencies. A weak dependency goes before the script only when
    another script on the page needs the same class at load time; otherwise
    it is appended once the current expansion finishes.
    """

    def __init__(self, project: Project, index: ScriptIndex) -> None:
        self.project = project
        self.index = index
        self._declared: Dict[str, ScriptDescriptor] = {}
        self._emitted: Dict[str, ScriptDescriptor] = {}
        self._active: List[str] = []
        self._pending: List[ScriptDescriptor] = []
        self._page_strong: Set[str] = set()

    def order(self, descriptors: Sequence[ScriptDescriptor]) -> List[ScriptDescriptor]:
        self._declared = {}
        for descriptor in descriptors:
            self._declared.setdefault(descriptor.source, descriptor)
        self._emitted = {}
        self._active = []
        self._pending = []
        self._page_strong = self._page_strong_classes(descriptors)

        for descriptor in descriptors:
            self._emit(descriptor)
            while self._pending:
                self._emit(self._pending.pop(0))
        return list(self._emitted.values())

    def _emit(self, descriptor: ScriptDescriptor) -> None:
        source = descriptor.source
        if source in self._emitted:
            return
        if source in self._active:
            raise DependencyCycleError(self._active[self._active.index(source) :] + [source])

        self._active.append(source)
        for edge in self._edges(descriptor):
            if edge.kind is not DependencyKind.WEAK:
                self._emit(edge.target)
            elif edge.class_name in self._page_strong and not self._reaches_active(edge.target, set()):
                self._emit(edge.target)
            else:
                self._pending.append(edge.target)
        self._active.pop()
        self._emitted[source] = descriptor

    def _edges(self, descriptor: ScriptDescriptor) -> List[_Edge]:
        edges = [
            _Edge(self._declared.get(dependency.source, dependency), DependencyKind.STRONG)
            for dependency in descriptor.dependencies
        ]
        script_file = self._local_script(descriptor)
        if script_file is None:
            return edges
        for dependency in self.index.analysis(script_file).dependencies:
            if dependency.kind is DependencyKind.THIRD_PARTY:
                edges.append(_Edge(self._descriptor(dependency.name), DependencyKind.THIRD_PARTY))
                continue
            target = self.index.script_for(dependency.name)
            if target is None:
                logger.debug("No project script declares %s (needed by %s)", dependency.name, descriptor.source)
                continue
            if target == script_file:
                continue
            edges.append(_Edge(self._descriptor(self.project.relative(target)), dependency.kind, dependency.name))
        return edges

    def _page_strong_classes(self, descriptors: Sequence[ScriptDescriptor]) -> Set[str]:
        strong: Set[str] = set()
        seen: Set[str] = set()
        queue = list(descriptors)
        while queue:
            descriptor = queue.pop(0)
            if descriptor.source in seen:
                continue
            seen.add(descriptor.source)
            for edge in self._edges(descriptor):
                if edge.kind is DependencyKind.STRONG and edge.class_name is not None:
                    strong.add(edge.class_name)
                queue.append(edge.target)
        return strong

    def _reaches_active(self, descriptor: ScriptDescriptor, visited: Set[str]) -> bool:
        if descriptor.source in self._active:
            return True
        if descriptor.source in visited or descriptor.source in self._emitted:
            return False
        visited.add(descriptor.source)
        return any(
            self._reaches_active(edge.target, visited)
            for edge in self._edges(descriptor)
            if edge.kind is not DependencyKind.WEAK
        )

    def _descriptor(self, source: str) -> ScriptDescriptor:
        return self._declared.get(source) or ScriptDescriptor(source=source)

    def _local_script(self, descriptor: ScriptDescriptor) -> Optional[Path]:
        if is_url(descriptor.source):
            return None
        path = self.project.file(descriptor.source)
        if path.suffix != ".js" or not path.is_file():
            return None
        return path


__all__ = ["ScriptIndex", "ScriptOrder"]
