"""Tests for the directory-scoped variable stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitekit.errors import ResolutionError
from sitekit.models import Reference
from sitekit.stores import VariableRegistry, VariableStore


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_store_prefers_locale_then_plain_then_default(tmp_path: Path) -> None:
    _write(tmp_path / "strings.xml", "<string><title>Home</title><motto>Play</motto></string>")
    _write(tmp_path / "strings_fr.xml", "<string><title>Accueil</title></string>")
    _write(tmp_path / "strings_en.xml", "<string><extra>Only English</extra></string>")

    store = VariableStore(tmp_path, "en")
    title = Reference.parse("@string/title")

    assert store.get("fr", title) == "Accueil"
    assert store.get("en", title) == "Home"
    assert store.get("fr", Reference.parse("@string/motto")) == "Play"
    assert store.get("fr", Reference.parse("@string/extra")) == "Only English"
    assert store.get("fr", Reference.parse("@string/missing")) is None
    assert title in store
    assert Reference.parse("@string/missing") not in store
    assert len(store) == 4


def test_store_keys_values_by_variable_type(tmp_path: Path) -> None:
    _write(tmp_path / "colors.xml", "<color><accent>#ff0000</accent></color>")
    store = VariableStore(tmp_path, "en")

    assert store.get("en", Reference.parse("@color/accent")) == "#ff0000"
    assert store.get("en", Reference.parse("@string/accent")) is None


def test_store_ignores_component_descriptors(tmp_path: Path) -> None:
    _write(tmp_path / "index.xml", "<page><title>Index</title></page>")
    store = VariableStore(tmp_path, "en")

    assert len(store) == 0


def test_text_variables_keep_inline_markup(tmp_path: Path) -> None:
    _write(tmp_path / "text.xml", "<text><intro>Hello <b>world</b>!</intro></text>")
    store = VariableStore(tmp_path, "en")

    assert store.get("en", Reference.parse("@text/intro")) == "Hello <b>world</b>!"


def test_markup_in_string_variable_is_rejected(tmp_path: Path) -> None:
    _write(tmp_path / "strings.xml", "<string><intro>Hello <b>world</b></intro></string>")
    with pytest.raises(ResolutionError):
        VariableStore(tmp_path, "en")


def test_malformed_variables_file_is_rejected(tmp_path: Path) -> None:
    _write(tmp_path / "strings.xml", "<string><title>Home</string>")
    with pytest.raises(ResolutionError):
        VariableStore(tmp_path, "en")


def test_registry_creates_stores_lazily_and_caches_them(tmp_path: Path) -> None:
    asset_dir = tmp_path / "res" / "asset"
    _write(asset_dir / "strings.xml", "<string><title>Home</title></string>")
    registry = VariableRegistry(asset_dir, "en")

    assert len(registry) == 0
    store = registry.store_for(tmp_path / "res" / "page")
    assert registry.store_for(tmp_path / "res" / "page") is store
    assert registry.asset_store.get("en", Reference.parse("@string/title")) == "Home"
    assert len(registry) == 2
