"""Component descriptor files (``<name>.xml`` beside the layout)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from lxml import etree

from .errors import CompositionError
from .models import LinkDescriptor, MetaDescriptor, ScriptDescriptor
from .paths import is_url

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


@dataclass
class ComponentDescriptor:
    """Declarations read from a page or widget descriptor."""

    kind: str = "compo"
    title: Optional[str] = None
    description: Optional[str] = None
    group: Optional[str] = None
    metas: List[MetaDescriptor] = field(default_factory=list)
    links: List[LinkDescriptor] = field(default_factory=list)
    scripts: List[ScriptDescriptor] = field(default_factory=list)

    @property
    def is_page(self) -> bool:
        return self.kind == "page"


def load_descriptor(
    path: Path,
    *,
    project_root: Path,
    expand: Optional[Callable[[str], str]] = None,
) -> ComponentDescriptor:
    """Read ``path``; ``expand`` substitutes references before parsing."""
    text = path.read_text(encoding="utf-8")
    if expand is not None:
        text = expand(text)
    try:
        root = etree.fromstring(text.encode("utf-8"), _PARSER)
    except etree.XMLSyntaxError as exc:
        raise CompositionError(f"malformed component descriptor: {exc}", source=path) from exc

    descriptor = ComponentDescriptor(kind=root.tag)
    descriptor.title = _text(root, "title")
    descriptor.description = _text(root, "description")
    group = _text(root, "group")
    descriptor.group = group.strip("/") if group else None

    for element in root.iter("meta"):
        meta = MetaDescriptor(
            name=element.get("name"),
            http_equiv=element.get("http-equiv"),
            property=element.get("property"),
            content=element.get("content"),
            charset=element.get("charset"),
        )
        if not (meta.name or meta.http_equiv or meta.property or meta.charset):
            raise CompositionError(
                "<meta> needs a 'name', 'http-equiv', 'property' or 'charset' attribute",
                source=path,
            )
        if meta in descriptor.metas:
            raise CompositionError(f"duplicate meta {meta.attributes()}", source=path)
        descriptor.metas.append(meta)

    for element in root.iter("link"):
        href = element.get("href")
        if not href:
            raise CompositionError("<link> is missing the 'href' attribute", source=path)
        _check_local(href, project_root, path, "link")
        link = LinkDescriptor(
            href=href,
            rel=element.get("rel"),
            type=element.get("type"),
            hreflang=element.get("hreflang"),
            media=element.get("media"),
            referrerpolicy=element.get("referrerpolicy"),
            crossorigin=element.get("crossorigin"),
            integrity=element.get("integrity"),
            disabled=element.get("disabled"),
            as_type=element.get("as"),
            sizes=element.get("sizes"),
            title=element.get("title"),
        )
        if link in descriptor.links:
            raise CompositionError(f"duplicate link {href}", source=path)
        descriptor.links.append(link)

    for element in root.iter("script"):
        parent = element.getparent()
        if parent is not None and parent.tag == "script":
            # nested scripts declare dependencies of their parent
            continue
        script = _script(element, project_root, path)
        if any(existing.source == script.source for existing in descriptor.scripts):
            raise CompositionError(f"duplicate script {script.source}", source=path)
        descriptor.scripts.append(script)

    return descriptor


def read_group(path: Path) -> Optional[str]:
    """Return the output group a descriptor declares, without expanding references."""
    if not path.is_file():
        return None
    try:
        root = etree.parse(str(path), _PARSER).getroot()
    except etree.XMLSyntaxError as exc:
        raise CompositionError(f"malformed component descriptor: {exc}", source=path) from exc
    group = _text(root, "group")
    return group.strip("/") if group else None


def _script(element: etree._Element, project_root: Path, source: Path) -> ScriptDescriptor:
    src = element.get("src")
    if not src:
        raise CompositionError("<script> is missing the 'src' attribute", source=source)
    _check_local(src, project_root, source, "script")
    dependencies = tuple(
        _script(child, project_root, source) for child in element.iterchildren("script")
    )
    return ScriptDescriptor(
        source=src,
        type=element.get("type") or "text/javascript",
        async_=element.get("async"),
        defer=element.get("defer", "true"),
        nomodule=element.get("nomodule"),
        nonce=element.get("nonce"),
        referrerpolicy=element.get("referrerpolicy"),
        integrity=element.get("integrity"),
        crossorigin=element.get("crossorigin"),
        embedded=element.get("embedded") == "true",
        dynamic=element.get("dynamic") == "true",
        dependencies=dependencies,
    )


def _check_local(href: str, project_root: Path, source: Path, kind: str) -> None:
    if is_url(href):
        return
    if not (project_root / href).is_file():
        raise CompositionError(f"missing {kind} file {href}", source=source)


def _text(root: etree._Element, tag: str) -> Optional[str]:
    element = root.find(tag)
    if element is None:
        return None
    value = "".join(element.itertext()).strip()
    return value or None


__all__ = ["ComponentDescriptor", "load_descriptor", "read_group"]
