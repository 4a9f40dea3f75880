"""Core data models shared across sitekit components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class ReferenceType(str, Enum):
    """Kinds of symbolic resource references found in project sources."""

    STRING = "string"
    TEXT = "text"
    COLOR = "color"
    DIMEN = "dimen"
    LINK = "link"
    TIP = "tip"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    PARAM = "param"

    @property
    def is_variable(self) -> bool:
        return self in VARIABLE_TYPES

    @property
    def is_media(self) -> bool:
        return self in MEDIA_TYPES

    @classmethod
    def from_name(cls, name: str) -> Optional["ReferenceType"]:
        try:
            return cls(name)
        except ValueError:
            return None


VARIABLE_TYPES = frozenset(
    {
        ReferenceType.STRING,
        ReferenceType.TEXT,
        ReferenceType.COLOR,
        ReferenceType.DIMEN,
        ReferenceType.LINK,
        ReferenceType.TIP,
    }
)

MEDIA_TYPES = frozenset({ReferenceType.IMAGE, ReferenceType.AUDIO, ReferenceType.VIDEO})

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class Reference:
    """Parsed ``@type/name`` mention; media references may carry a sub-path."""

    type: ReferenceType
    name: str
    path: Optional[str] = None

    def __post_init__(self) -> None:
        if not _NAME_PATTERN.match(self.name):
            raise ValueError(f"invalid reference name '{self.name}'")
        if self.path is not None and not self.type.is_media:
            raise ValueError(f"only media references may carry a path: {self}")

    @property
    def is_variable(self) -> bool:
        return self.type.is_variable

    @property
    def is_media(self) -> bool:
        return self.type.is_media

    @classmethod
    def parse(cls, text: str) -> "Reference":
        """Parse ``@type/name`` or ``@type/sub/dir/name``."""
        body = text[1:] if text.startswith("@") else text
        type_name, sep, rest = body.partition("/")
        if not sep or not rest:
            raise ValueError(f"invalid reference '{text}'")
        ref_type = ReferenceType.from_name(type_name)
        if ref_type is None:
            raise ValueError(f"unknown reference type '{type_name}'")
        path, _, name = rest.rpartition("/")
        return cls(type=ref_type, name=name, path=path or None)

    def __str__(self) -> str:
        if self.path:
            return f"@{self.type.value}/{self.path}/{self.name}"
        return f"@{self.type.value}/{self.name}"


class DependencyKind(str, Enum):
    """How a script depends on another script."""

    STRONG = "strong"
    WEAK = "weak"
    THIRD_PARTY = "third_party"


@dataclass(frozen=True)
class Dependency:
    """Script dependency discovered by the analyzer."""

    name: str
    kind: DependencyKind


@dataclass(frozen=True)
class MetaDescriptor:
    """``<meta>`` element declared by the project or a component."""

    name: Optional[str] = None
    http_equiv: Optional[str] = None
    property: Optional[str] = None
    content: Optional[str] = None
    charset: Optional[str] = None

    def attributes(self) -> Dict[str, str]:
        pairs = (
            ("name", self.name),
            ("http-equiv", self.http_equiv),
            ("property", self.property),
            ("content", self.content),
            ("charset", self.charset),
        )
        return {key: value for key, value in pairs if value is not None}


@dataclass(frozen=True)
class LinkDescriptor:
    """``<link>`` element declared by the project or a component."""

    href: str
    rel: Optional[str] = None
    type: Optional[str] = None
    hreflang: Optional[str] = None
    media: Optional[str] = None
    referrerpolicy: Optional[str] = None
    crossorigin: Optional[str] = None
    integrity: Optional[str] = None
    disabled: Optional[str] = None
    as_type: Optional[str] = None
    sizes: Optional[str] = None
    title: Optional[str] = None

    @property
    def is_stylesheet(self) -> bool:
        return (self.rel or "stylesheet") == "stylesheet"

    def attributes(self, href: Optional[str] = None) -> Dict[str, str]:
        rel = self.rel or "stylesheet"
        link_type = self.type or ("text/css" if rel == "stylesheet" else None)
        pairs = (
            ("href", href or self.href),
            ("hreflang", self.hreflang),
            ("rel", rel),
            ("type", link_type),
            ("media", self.media),
            ("referrerpolicy", self.referrerpolicy),
            ("crossorigin", self.crossorigin),
            ("integrity", self.integrity),
            ("disabled", self.disabled),
            ("as", self.as_type),
            ("sizes", self.sizes),
            ("title", self.title),
        )
        return {key: value for key, value in pairs if value is not None}


@dataclass(frozen=True)
class ScriptDescriptor:
    """``<script>`` declaration; ``source`` is project-relative or a URL.

    ``dependencies`` lists sources that must load before this script, as
    declared explicitly by nested ``<script>`` elements or project.yml.
    """

    source: str
    type: str = "text/javascript"
    async_: Optional[str] = None
    defer: Optional[str] = "true"
    nomodule: Optional[str] = None
    nonce: Optional[str] = None
    referrerpolicy: Optional[str] = None
    integrity: Optional[str] = None
    crossorigin: Optional[str] = None
    embedded: bool = False
    dynamic: bool = False
    dependencies: Tuple["ScriptDescriptor", ...] = field(default=(), compare=False)

    def attributes(self, src: Optional[str] = None) -> Dict[str, str]:
        pairs = (
            ("src", None if self.embedded else src),
            ("type", self.type),
            ("async", self.async_),
            ("defer", None if self.embedded else self.defer),
            ("nomodule", self.nomodule),
            ("nonce", self.nonce),
            ("referrerpolicy", self.referrerpolicy),
            ("crossorigin", self.crossorigin),
            ("integrity", self.integrity),
        )
        return {key: value for key, value in pairs if value is not None}


__all__ = [
    "Dependency",
    "DependencyKind",
    "LinkDescriptor",
    "MEDIA_TYPES",
    "MetaDescriptor",
    "Reference",
    "ReferenceType",
    "ScriptDescriptor",
    "VARIABLE_TYPES",
]
