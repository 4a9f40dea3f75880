"""In-memory page document assembled by the builder and rendered once."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from jinja2 import Environment, FileSystemLoader
from lxml import etree

from .models import LinkDescriptor, MetaDescriptor, ScriptDescriptor

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
_PAGE_TEMPLATE = "page.html.j2"


@dataclass
class HeadElement:
    """One element of the document head."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    void: bool = True
    raw: bool = False


class PageDocument:
    """Collects head elements around a composed layout.

    Head elements keep insertion order. Identical metas and scripts sharing a
    source are emitted once.
    """

    def __init__(self, layout: etree._Element, *, environment: Optional[Environment] = None) -> None:
        self.layout = layout
        self.language: Optional[str] = None
        self.head: List[HeadElement] = []
        self._metas: Set[tuple] = set()
        self._scripts: Set[str] = set()
        self._env = environment or create_environment()

    def set_language(self, language: str) -> None:
        self.language = language

    def set_content_type(self, content_type: str) -> None:
        self._append("meta", {"http-equiv": "Content-Type", "content": content_type})

    def set_title(self, title: str) -> None:
        self.head.append(HeadElement("title", text=title, void=False))

    def set_authors(self, authors: Sequence[str]) -> None:
        if not authors:
            return
        content = authors[0] if len(authors) == 1 else "co-authored by " + ", ".join(authors)
        self._append("meta", {"name": "Author", "content": content})

    def set_description(self, description: Optional[str]) -> None:
        if description:
            self._append("meta", {"name": "Description", "content": description})

    def add_meta(self, meta: MetaDescriptor) -> None:
        attributes = meta.attributes()
        key = tuple(sorted(attributes.items()))
        if key in self._metas:
            return
        self._metas.add(key)
        self._append("meta", attributes)

    def add_manifest(self, href: str) -> None:
        self._append("link", {"href": href, "rel": "manifest"})

    def add_favicon(self, href: str) -> None:
        self._append("link", {"href": href, "rel": "shortcut icon", "type": "image/x-icon"})

    def add_link(self, link: LinkDescriptor, href: Optional[str] = None) -> None:
        self._append("link", link.attributes(href))

    def add_style(self, href: str) -> None:
        self._append("link", {"href": href, "rel": "stylesheet", "type": "text/css"})

    def add_script(self, script: ScriptDescriptor, src: Optional[str], text: Optional[str] = None) -> bool:
        """Add a script tag; returns False for duplicates and dynamic scripts."""
        if script.source in self._scripts:
            return False
        self._scripts.add(script.source)
        # dynamic scripts are fetched by a runtime loader, not the page head
        if script.dynamic:
            return False
        self.head.append(
            HeadElement(
                "script",
                attributes=script.attributes(src),
                text=text if script.embedded and text else "",
                void=False,
                raw=True,
            )
        )
        return True

    @property
    def script_sources(self) -> List[str]:
        return [element.attributes.get("src", "") for element in self.head if element.name == "script"]

    def render(self) -> str:
        body = etree.tostring(self.layout, encoding="unicode", method="html")
        template = self._env.get_template(_PAGE_TEMPLATE)
        return template.render(language=self.language or "", head=self.head, body=body)

    def _append(self, name: str, attributes: Dict[str, str]) -> None:
        self.head.append(HeadElement(name, attributes=attributes))


def create_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


__all__ = ["HeadElement", "PageDocument", "create_environment"]
