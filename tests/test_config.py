"""Tests for sitekit.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitekit.config import ProjectConfig, load_config
from sitekit.errors import ConfigError
from sitekit.models import MetaDescriptor
from sitekit.operators import OperatorNaming


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ProjectConfig)
    assert config.root == tmp_path.resolve()
    assert config.locales == ["en"]
    assert config.default_locale == "en"
    assert config.build_dir == "site"
    assert config.asset_dir == "res/asset"
    assert config.theme_dir == "res/theme"
    assert config.favicon == "res/asset/favicon.ico"
    assert config.operators is OperatorNaming.DATA_ATTR
    assert config.metas == []
    assert config.scripts == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / "project.yml"
    config_file.write_text(
        """
title: Kids Cademy
authors: [Iulian Rotaru, Jane Doe]
locales: en, fr_ca
build-dir: /out/
operators: xmlns
exclude-dirs:
  - drafts/
meta:
  - name: keywords
    content: kids, games
links:
  - https://fonts.example.com/roboto.css
  - href: res/icon.png
    rel: apple-touch-icon
scripts:
  - src: lib/app.js
    dependencies:
      - lib/base.js
  - src: https://cdn.example.com/analytics.js
    async: true
    defer: false
script-aliases:
  Console: js.ua.Console
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.title == "Kids Cademy"
    assert config.authors == ["Iulian Rotaru", "Jane Doe"]
    assert config.locales == ["en", "fr-CA"]
    assert config.build_dir == "out"
    assert config.operators is OperatorNaming.XMLNS
    assert config.exclude_dirs == ["drafts"]
    assert config.metas == [MetaDescriptor(name="keywords", content="kids, games")]
    assert [link.href for link in config.links] == [
        "https://fonts.example.com/roboto.css",
        "res/icon.png",
    ]
    assert config.links[1].rel == "apple-touch-icon"

    app, analytics = config.scripts
    assert app.source == "lib/app.js"
    assert [dependency.source for dependency in app.dependencies] == ["lib/base.js"]
    assert app.defer == "true"
    assert analytics.async_ == "true"
    assert analytics.defer is None
    assert config.script_aliases == {"Console": "js.ua.Console"}


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / "project.yml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_unknown_operators(tmp_path: Path) -> None:
    (tmp_path / "project.yml").write_text("operators: magic\n", encoding="utf-8")
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert "data-attr" in str(excinfo.value)


def test_load_config_rejects_invalid_locale(tmp_path: Path) -> None:
    (tmp_path / "project.yml").write_text("locales: [en, english]\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_meta_without_key(tmp_path: Path) -> None:
    (tmp_path / "project.yml").write_text("meta:\n  - content: orphan\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)
