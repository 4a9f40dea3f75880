"""Tests for sitekit.models and sitekit.references."""

from __future__ import annotations

import pytest

from sitekit import references
from sitekit.errors import ResolutionError
from sitekit.models import (
    LinkDescriptor,
    MetaDescriptor,
    Reference,
    ReferenceType,
    ScriptDescriptor,
)


def test_reference_parse_variable_and_media() -> None:
    title = Reference.parse("@string/title")
    assert title.type is ReferenceType.STRING
    assert title.name == "title"
    assert title.path is None
    assert title.is_variable and not title.is_media

    logo = Reference.parse("@image/icons/logo")
    assert logo.type is ReferenceType.IMAGE
    assert logo.path == "icons"
    assert logo.name == "logo"
    assert str(logo) == "@image/icons/logo"


def test_reference_rejects_path_on_variable() -> None:
    with pytest.raises(ValueError):
        Reference(type=ReferenceType.STRING, name="title", path="sub")


def test_reference_rejects_unknown_type() -> None:
    with pytest.raises(ValueError):
        Reference.parse("@media/screen")


def test_iter_references_skips_escapes_and_unknown_types() -> None:
    text = "@@string/literal @media/print @string/title @text/body @image/a/b/logo"
    found = [str(reference) for reference in references.iter_references(text)]
    assert found == ["@string/title", "@text/body", "@image/a/b/logo"]


def test_expand_replaces_known_references() -> None:
    text = "a @@ b @string/title @import url(x) mail@@example.com"
    expanded = references.expand(text, lambda reference: reference.name.upper())
    assert expanded == "a @ b TITLE @import url(x) mail@example.com"


def test_expand_reports_invalid_media_free_path() -> None:
    with pytest.raises(ResolutionError):
        references.expand("@string/sub/title", lambda reference: "")


def test_meta_attributes_skip_missing_values() -> None:
    meta = MetaDescriptor(name="keywords", content="a, b")
    assert meta.attributes() == {"name": "keywords", "content": "a, b"}


def test_link_defaults_to_stylesheet() -> None:
    link = LinkDescriptor(href="res/theme/print.css")
    assert link.is_stylesheet
    assert link.attributes("style/print.css") == {
        "href": "style/print.css",
        "rel": "stylesheet",
        "type": "text/css",
    }
    icon = LinkDescriptor(href="res/icon.png", rel="apple-touch-icon")
    assert not icon.is_stylesheet
    assert "type" not in icon.attributes()


def test_embedded_script_drops_src_and_defer() -> None:
    script = ScriptDescriptor(source="lib/boot.js", embedded=True)
    assert script.attributes("script/lib.boot.js") == {"type": "text/javascript"}
    linked = ScriptDescriptor(source="lib/boot.js")
    assert linked.attributes("script/lib.boot.js") == {
        "src": "script/lib.boot.js",
        "type": "text/javascript",
        "defer": "true",
    }
