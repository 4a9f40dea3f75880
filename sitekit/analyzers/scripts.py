"""Tree-sitter powered script dependency analyzer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from ..errors import DependencyAnalysisError
from ..logging import get_logger
from ..models import Dependency, DependencyKind

logger = get_logger("analyzers.scripts")

# group 1 is the class part of a possibly longer member chain
DEPENDENCY_NAME = re.compile(
    r"^((?:[a-z][_a-zA-Z0-9]*)(?:\.[a-z][_a-zA-Z0-9]*)*\.(?:[A-Z][_a-zA-Z0-9]*))"
    r"(?:\.[A-Z][_a-zA-Z0-9]*)*"
    r"(?:\.(?:(?:[_a-z][_a-zA-Z0-9]*)|(?:[A-Z][_A-Z]+)))*$"
)
QUALIFIED_CLASS_NAME = re.compile(r"^([a-z][a-z0-9]*(?:\.[a-z][a-z0-9]*)*(?:\.[A-Z][a-zA-Z0-9]*)+)$")

OPERATOR_CLASS = "js.lang.Operator"
LOG_CLASS = "js.lang.Log"
WINDOW_CLASS = "js.ua.Window"

# Framework idioms mapped to the library class they depend on.
DEFAULT_ALIASES: Dict[str, str] = {
    "$package": OPERATOR_CLASS,
    "$declare": OPERATOR_CLASS,
    "LogFactory": LOG_CLASS,
    "WinMain": WINDOW_CLASS,
}

_FUNCTION_TYPES = frozenset(
    {
        "function",
        "function_declaration",
        "function_expression",
        "arrow_function",
        "method_definition",
        "generator_function",
        "generator_function_declaration",
    }
)
_ASSIGNMENT_TYPES = frozenset({"assignment_expression", "augmented_assignment_expression"})


def dependency_class(name: str) -> Optional[str]:
    """Return the class a member chain depends on, if it names one."""
    match = DEPENDENCY_NAME.match(name)
    return match.group(1) if match else None


def is_class_name(name: str) -> bool:
    return bool(QUALIFIED_CLASS_NAME.match(name))


class NodeKind(str, Enum):
    """Syntax node kinds the analyzer distinguishes."""

    FUNCTION = "function"
    CALL = "call"
    MEMBER = "member"
    ASSIGNMENT = "assignment"
    OTHER = "other"


def classify(node: Node) -> NodeKind:
    if node.type in _FUNCTION_TYPES:
        return NodeKind.FUNCTION
    if node.type == "call_expression":
        return NodeKind.CALL
    if node.type == "member_expression":
        return NodeKind.MEMBER
    if node.type in _ASSIGNMENT_TYPES:
        return NodeKind.ASSIGNMENT
    return NodeKind.OTHER


@dataclass
class ScriptAnalysis:
    """Classes a script declares and the dependencies it has on others."""

    path: Path
    declared_classes: List[str] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)

    def by_kind(self, kind: DependencyKind) -> List[str]:
        return [dependency.name for dependency in self.dependencies if dependency.kind is kind]

    @property
    def strong(self) -> List[str]:
        return self.by_kind(DependencyKind.STRONG)

    @property
    def weak(self) -> List[str]:
        return self.by_kind(DependencyKind.WEAK)

    @property
    def third_party(self) -> List[str]:
        return self.by_kind(DependencyKind.THIRD_PARTY)


class _Scan:
    """Mutable state of one analysis pass."""

    def __init__(self, source_bytes: bytes) -> None:
        self.source_bytes = source_bytes
        self.declared: Dict[str, None] = {}
        self.kinds: Dict[str, DependencyKind] = {}

    def text(self, node: Node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def add_class(self, name: str, in_function: bool) -> None:
        kind = DependencyKind.WEAK if in_function else DependencyKind.STRONG
        # once strong a dependency never regresses to weak
        if self.kinds.get(name) is DependencyKind.STRONG:
            return
        self.kinds[name] = kind

    def add_third_party(self, name: str) -> None:
        self.kinds.setdefault(name, DependencyKind.THIRD_PARTY)


class ScriptDependencyAnalyzer:
    """Extracts declared classes and class dependencies from JavaScript sources.

    A class referenced at file scope runs while the script loads and is a
    strong dependency; one referenced only inside function bodies is weak.
    """

    def __init__(self, aliases: Optional[Mapping[str, str]] = None) -> None:
        self._aliases = {**DEFAULT_ALIASES, **dict(aliases or {})}
        self._parser = Parser(Language(tree_sitter_javascript.language()))
        self._handlers: Dict[NodeKind, Callable[[_Scan, Node, bool], None]] = {
            NodeKind.FUNCTION: self._visit_function,
            NodeKind.CALL: self._visit_call,
            NodeKind.MEMBER: self._visit_member,
            NodeKind.ASSIGNMENT: self._visit_assignment,
            NodeKind.OTHER: self._visit_children,
        }

    def analyze_file(self, path: Path) -> ScriptAnalysis:
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DependencyAnalysisError(f"cannot read script: {exc}", source=path) from exc
        return self.analyze(source, path)

    def analyze(self, source: str, path: Path) -> ScriptAnalysis:
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        if tree.root_node.has_error:
            line = _first_error_line(tree.root_node)
            raise DependencyAnalysisError(f"malformed script near line {line}", source=path)

        scan = _Scan(source_bytes)
        self._visit(scan, tree.root_node, False)
        declared = list(scan.declared)
        dependencies = [
            Dependency(name=name, kind=kind)
            for name, kind in scan.kinds.items()
            if name not in scan.declared
        ]
        logger.debug(
            "Analyzed %s: %d declared class(es), %d dependenc(ies)", path, len(declared), len(dependencies)
        )
        return ScriptAnalysis(path=path, declared_classes=declared, dependencies=dependencies)

    # -- traversal -----------------------------------------------------------

    def _visit(self, scan: _Scan, node: Node, in_function: bool) -> None:
        kind = classify(node)
        handler = self._handlers.get(kind)
        if handler is None:
            raise DependencyAnalysisError(f"no handler for syntax node kind '{kind.value}'")
        handler(scan, node, in_function)

    def _visit_children(self, scan: _Scan, node: Node, in_function: bool) -> None:
        for child in node.children:
            self._visit(scan, child, in_function)

    def _visit_function(self, scan: _Scan, node: Node, in_function: bool) -> None:
        self._visit_children(scan, node, True)

    def _visit_member(self, scan: _Scan, node: Node, in_function: bool) -> None:
        name = _dotted_name(scan, node)
        if name is None:
            self._visit_children(scan, node, in_function)
            return
        self._add_name(scan, name, in_function)

    def _visit_assignment(self, scan: _Scan, node: Node, in_function: bool) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        name = _dotted_name(scan, left) if left is not None else None
        if name is not None and not in_function and is_class_name(name):
            scan.declared.setdefault(name, None)
        elif left is not None:
            self._visit(scan, left, in_function)
        if right is not None:
            self._visit(scan, right, in_function)

    def _visit_call(self, scan: _Scan, node: Node, in_function: bool) -> None:
        callee = node.child_by_field_name("function")
        arguments_node = node.child_by_field_name("arguments")
        arguments = list(arguments_node.named_children) if arguments_node is not None else []
        name = _dotted_name(scan, callee) if callee is not None else None

        if name in ("$package", "$declare"):
            scan.add_class(self._aliases[name], in_function)
            if name == "$declare":
                for argument in arguments:
                    declared = _string_value(scan, argument)
                    if declared and is_class_name(declared):
                        scan.declared.setdefault(declared, None)
            return
        if name == "$include":
            included = _string_value(scan, arguments[0]) if arguments else None
            if included:
                class_name = dependency_class(included)
                if class_name is not None:
                    scan.add_class(class_name, in_function)
                else:
                    scan.add_third_party(included)
            return
        if name == "$extends":
            if len(arguments) > 1:
                self._visit(scan, arguments[1], in_function)
            return
        if name == "$init":
            for argument in arguments:
                self._visit(scan, argument, in_function)
            return

        if name is not None:
            self._add_name(scan, name, in_function)
        elif callee is not None:
            self._visit(scan, callee, in_function)
        for argument in arguments:
            # factory("comp.prj.Widget") names a class by string
            class_name = dependency_class(_string_value(scan, argument) or "")
            if class_name is not None:
                scan.add_class(class_name, in_function)
            else:
                self._visit(scan, argument, in_function)

    def _add_name(self, scan: _Scan, name: str, in_function: bool) -> None:
        head = name.split(".", 1)[0]
        if head in self._aliases and head not in ("$package", "$declare"):
            # LogFactory.getLogger(...), WinMain.on(...)
            scan.add_class(self._aliases[head], in_function)
            return
        class_name = dependency_class(name)
        if class_name is not None:
            scan.add_class(class_name, in_function)


def _dotted_name(scan: _Scan, node: Node) -> Optional[str]:
    """Return ``a.b.C`` for pure identifier chains, None otherwise."""
    if node.type == "identifier":
        return scan.text(node)
    if node.type != "member_expression":
        return None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None or prop.type != "property_identifier":
        return None
    head = _dotted_name(scan, obj)
    if head is None:
        return None
    return f"{head}.{scan.text(prop)}"


def _string_value(scan: _Scan, node: Node) -> Optional[str]:
    if node.type != "string":
        return None
    return scan.text(node)[1:-1]


def _first_error_line(node: Node) -> int:
    if node.type == "ERROR" or node.is_missing:
        return node.start_point[0] + 1
    for child in node.children:
        if child.has_error:
            return _first_error_line(child)
    return node.start_point[0] + 1


__all__ = [
    "DEFAULT_ALIASES",
    "NodeKind",
    "ScriptAnalysis",
    "ScriptDependencyAnalyzer",
    "classify",
    "dependency_class",
    "is_class_name",
]
