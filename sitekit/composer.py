"""Template inheritance and widget composition into one layout tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from lxml import etree

from . import references
from .descriptors import ComponentDescriptor, load_descriptor
from .errors import CompositionError
from .logging import get_logger
from .models import LinkDescriptor, MetaDescriptor, Reference, ReferenceType, ScriptDescriptor
from .operators import Operator
from .paths import CompoPath, split_template_reference
from .project import Project
from .references import ReferenceHandler
from .resolver import LayoutParameters, ReferenceResolver

logger = get_logger("composer")

_LAYOUT_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, strip_cdata=False)

# Operators that may not survive composition, with the error reported for each.
_LEFTOVER_MESSAGES: Dict[Operator, Optional[str]] = {
    Operator.TEMPLATE: "unresolved template reference '{value}'",
    Operator.CONTENT: "content '{value}' does not fill any template slot",
    Operator.EDITABLE: "unresolved editable '{value}'",
    Operator.COMPO: "unresolved widget '{value}'",
    Operator.PARAM: None,
}


@dataclass
class Component:
    """One page composed for one locale."""

    path: CompoPath
    layout_file: Path
    layout: etree._Element
    title: str
    description: str
    group: Optional[str] = None
    style_files: List[Path] = field(default_factory=list)
    scripts: List[ScriptDescriptor] = field(default_factory=list)
    metas: List[MetaDescriptor] = field(default_factory=list)
    links: List[LinkDescriptor] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def layout_file_name(self) -> str:
        return self.layout_file.name


class Contributions:
    """Declarations gathered while composing, in contributor order.

    Each entry keeps the position of its first occurrence so a widget embedded
    twice contributes its files once.
    """

    def __init__(self) -> None:
        self.style_files: List[Path] = []
        self.scripts: List[ScriptDescriptor] = []
        self.metas: List[MetaDescriptor] = []
        self.links: List[LinkDescriptor] = []

    def add_style(self, path: Path) -> None:
        if path not in self.style_files:
            self.style_files.append(path)

    def add_script(self, script: ScriptDescriptor) -> None:
        if all(existing.source != script.source for existing in self.scripts):
            self.scripts.append(script)

    def has_script(self, source: str) -> bool:
        return any(existing.source == source for existing in self.scripts)

    def add_meta(self, meta: MetaDescriptor) -> None:
        if meta not in self.metas:
            self.metas.append(meta)

    def add_link(self, link: LinkDescriptor) -> None:
        if link not in self.links:
            self.links.append(link)

    def extend(self, other: "Contributions") -> None:
        for path in other.style_files:
            self.add_style(path)
        for script in other.scripts:
            self.add_script(script)
        for meta in other.metas:
            self.add_meta(meta)
        for link in other.links:
            self.add_link(link)


@dataclass
class _Composed:
    layout: etree._Element
    layout_file: Path
    contributions: Contributions
    descriptor: Optional[ComponentDescriptor]


class ComponentComposer:
    """Resolves a component's template chain and embedded widgets.

    ``reference_handler`` turns every reference met in layouts and descriptors
    into text; when omitted, references resolve for ``locale`` and media
    references expand to project-relative paths.
    """

    def __init__(
        self,
        project: Project,
        reference_handler: Optional[ReferenceHandler] = None,
        *,
        locale: Optional[str] = None,
    ) -> None:
        self.project = project
        self.operators = project.operators
        if reference_handler is None:
            reference_handler = _resolver_handler(project, locale or project.default_locale)
        self._handler = reference_handler

    def compose(self, compo_path: Union[CompoPath, str]) -> Component:
        path = compo_path if isinstance(compo_path, CompoPath) else self.project.compo_path(compo_path)
        composed = self._compose(path, (), None)
        self._verify(composed.layout, composed.layout_file)
        self.operators.strip(composed.layout)

        descriptor = composed.descriptor or ComponentDescriptor()
        title = descriptor.title or self.project.display_name(path.name)
        contributions = composed.contributions
        return Component(
            path=path,
            layout_file=composed.layout_file,
            layout=composed.layout,
            title=title,
            description=descriptor.description or title,
            group=descriptor.group,
            style_files=list(contributions.style_files),
            scripts=list(contributions.scripts),
            metas=list(contributions.metas),
            links=list(contributions.links),
        )

    # -- recursion -----------------------------------------------------------

    def _compose(
        self,
        path: CompoPath,
        active: Tuple[str, ...],
        parameters: Optional[LayoutParameters],
    ) -> _Composed:
        if path.value in active:
            chain = " -> ".join(active + (path.value,))
            raise CompositionError(f"circular composition: {chain}")
        active = active + (path.value,)

        root = self.project.root
        layout_file = path.layout_file(root)
        if not layout_file.is_file():
            raise CompositionError(f"missing layout for component {path}", source=layout_file)
        logger.debug("Composing %s", path)

        layout = self._load_layout(layout_file, parameters)
        contributions = Contributions()
        layout = self._inherit_templates(layout, layout_file, active, contributions)
        self._embed_widgets(layout, layout_file, active, contributions)
        descriptor = self._own_contributions(path, contributions)
        return _Composed(layout, layout_file, contributions, descriptor)

    def _inherit_templates(
        self,
        layout: etree._Element,
        layout_file: Path,
        active: Tuple[str, ...],
        contributions: Contributions,
    ) -> etree._Element:
        for fragment in self.operators.find_all(layout, Operator.TEMPLATE):
            if not _is_within(fragment, layout):
                # dropped along with an enclosing fragment
                continue
            layout = self._apply_template(fragment, layout, layout_file, active, contributions)
        return layout

    def _apply_template(
        self,
        fragment: etree._Element,
        layout: etree._Element,
        layout_file: Path,
        active: Tuple[str, ...],
        contributions: Contributions,
    ) -> etree._Element:
        value = self.operators.get(fragment, Operator.TEMPLATE) or ""
        try:
            template_path, slot = split_template_reference(value)
        except ValueError as exc:
            raise CompositionError(str(exc), source=layout_file) from exc
        template = self._compose(template_path, active, self._parameters(fragment, layout_file))
        contributions.extend(template.contributions)

        self.operators.remove(fragment, Operator.TEMPLATE)
        self.operators.remove(fragment, Operator.PARAM)

        contents = self.operators.find_all(fragment, Operator.CONTENT)
        if not contents:
            if slot is None:
                raise CompositionError(
                    f"template reference '{value}' names no slot and declares no content",
                    source=layout_file,
                )
            contents = [fragment]

        # Keep the fragment's place while its content moves into the template.
        placeholder = None
        parent = fragment.getparent()
        if parent is not None:
            placeholder = etree.Element("placeholder")
            placeholder.tail, fragment.tail = fragment.tail, None
            parent.replace(fragment, placeholder)

        template_root = template.layout
        for content in contents:
            name = self.operators.get(content, Operator.CONTENT) or slot
            if name is None:
                raise CompositionError("content element names no slot", source=layout_file)
            template_root = self._fill_slot(template_root, name, content, template.layout_file)

        if placeholder is None:
            return template_root
        template_root.tail = placeholder.tail
        placeholder.getparent().replace(placeholder, template_root)
        return layout

    def _fill_slot(
        self,
        template_root: etree._Element,
        name: str,
        content: etree._Element,
        template_file: Path,
    ) -> etree._Element:
        self.operators.remove(content, Operator.CONTENT)
        editable = self.operators.find(template_root, Operator.EDITABLE, name)
        if editable is None:
            if len(template_root) == 0 and not self.operators.find_all(template_root, Operator.EDITABLE):
                content.tail = None
                template_root.append(content)
                return template_root
            raise CompositionError(f"missing editable '{name}' in template", source=template_file)
        if len(editable):
            raise CompositionError(f"editable '{name}' must be empty", source=template_file)

        self.operators.remove(editable, Operator.EDITABLE)
        _merge_attributes(content, editable, skip=self.operators.is_operator)
        content.tail = editable.tail
        parent = editable.getparent()
        if parent is None:
            return content
        parent.replace(editable, content)
        return template_root

    def _embed_widgets(
        self,
        layout: etree._Element,
        layout_file: Path,
        active: Tuple[str, ...],
        contributions: Contributions,
    ) -> None:
        for marker in self.operators.find_all(layout, Operator.COMPO):
            value = self.operators.get(marker, Operator.COMPO) or ""
            widget_path = self.project.compo_path(value, source=layout_file)
            widget = self._compose(widget_path, active, self._parameters(marker, layout_file))
            contributions.extend(widget.contributions)

            self.operators.remove(marker, Operator.COMPO)
            self.operators.remove(marker, Operator.PARAM)
            for child in list(marker):
                marker.remove(child)
            marker.text = widget.layout.text
            for child in list(widget.layout):
                marker.append(child)
            _merge_attributes(marker, widget.layout, skip=self.operators.is_operator)

    def _own_contributions(
        self, path: CompoPath, contributions: Contributions
    ) -> Optional[ComponentDescriptor]:
        root = self.project.root
        style_file = path.sibling(root, ".css")
        if style_file is not None and style_file.is_file():
            contributions.add_style(style_file)

        descriptor = None
        descriptor_file = path.sibling(root, ".xml")
        if descriptor_file is not None and descriptor_file.is_file():
            resolve = self._source_resolver(descriptor_file, None)
            descriptor = load_descriptor(
                descriptor_file,
                project_root=root,
                expand=lambda text: references.expand(text, resolve, source=descriptor_file),
            )
            for meta in descriptor.metas:
                contributions.add_meta(meta)
            for link in descriptor.links:
                contributions.add_link(link)
            for script in descriptor.scripts:
                contributions.add_script(script)

        script_file = path.sibling(root, ".js")
        if script_file is not None and script_file.is_file():
            source = self.project.relative(script_file)
            if not contributions.has_script(source):
                contributions.add_script(ScriptDescriptor(source=source))
        return descriptor

    # -- helpers -------------------------------------------------------------

    def _parameters(self, element: etree._Element, layout_file: Path) -> Optional[LayoutParameters]:
        if not self.operators.has(element, Operator.PARAM):
            return None
        return LayoutParameters.parse(self.operators.get(element, Operator.PARAM), source=layout_file)

    def _source_resolver(
        self, source_file: Path, parameters: Optional[LayoutParameters]
    ) -> Callable[[Reference], str]:
        def resolve(reference: Reference) -> str:
            if reference.type is ReferenceType.PARAM:
                value = parameters.get(reference.name) if parameters else None
                if value is None:
                    raise CompositionError(f"missing layout parameter '{reference.name}'", source=source_file)
                return value
            value = self._handler(reference, source_file)
            if reference.type is ReferenceType.TEXT:
                return value
            return escape(value, {'"': "&quot;"})

        return resolve

    def _load_layout(self, layout_file: Path, parameters: Optional[LayoutParameters]) -> etree._Element:
        text = layout_file.read_text(encoding="utf-8")
        text = references.expand(text, self._source_resolver(layout_file, parameters), source=layout_file)
        try:
            return etree.fromstring(text.encode("utf-8"), _LAYOUT_PARSER)
        except etree.XMLSyntaxError as exc:
            raise CompositionError(f"malformed layout: {exc}", source=layout_file) from exc

    def _verify(self, layout: etree._Element, layout_file: Path) -> None:
        for operator in Operator:
            if operator not in _LEFTOVER_MESSAGES:
                raise CompositionError(f"no composition rule for operator '{operator.value}'")
            message = _LEFTOVER_MESSAGES[operator]
            if message is None:
                continue
            element = next(self.operators.iter(layout, operator), None)
            if element is not None:
                value = self.operators.get(element, operator)
                raise CompositionError(message.format(value=value), source=layout_file)


def _merge_attributes(
    target: etree._Element,
    base: etree._Element,
    *,
    skip: Callable[[str], bool],
) -> None:
    """Copy ``base`` attributes missing on ``target``; ``class`` values are unioned."""
    for key, value in base.attrib.items():
        if skip(key):
            continue
        if key == "class":
            merged = _union_classes(value, target.get("class"))
            if merged:
                target.set("class", merged)
        elif key not in target.attrib:
            target.set(key, value)


def _is_within(element: Optional[etree._Element], root: etree._Element) -> bool:
    while element is not None:
        if element is root:
            return True
        element = element.getparent()
    return False


def _union_classes(first: Optional[str], second: Optional[str]) -> str:
    names = (first or "").split() + (second or "").split()
    return " ".join(dict.fromkeys(names))


def _resolver_handler(project: Project, locale: str) -> ReferenceHandler:
    resolver = ReferenceResolver(project)

    def handle(reference: Reference, source_file: Path) -> str:
        value = resolver.resolve(reference, source_file, locale, handle)
        if isinstance(value, Path):
            return project.relative(value)
        return value

    return handle


__all__ = ["Component", "ComponentComposer", "Contributions"]
