"""Tests for the tree-sitter script dependency analyzer."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitekit.analyzers.scripts import (
    LOG_CLASS,
    OPERATOR_CLASS,
    WINDOW_CLASS,
    ScriptDependencyAnalyzer,
    dependency_class,
    is_class_name,
)
from sitekit.errors import DependencyAnalysisError


def _analyze(source: str, **kwargs):
    return ScriptDependencyAnalyzer(**kwargs).analyze(source, Path("app.js"))


def test_dependency_class_extracts_class_part() -> None:
    assert dependency_class("js.dom.Document") == "js.dom.Document"
    assert dependency_class("js.util.Timer.start") == "js.util.Timer"
    assert dependency_class("js.ua.Window.EVENT_LOAD") == "js.ua.Window"
    assert dependency_class("document.getElementById") is None
    assert dependency_class("Math.max") is None
    assert is_class_name("js.app.Main")
    assert not is_class_name("js.app.Main.prototype")


def test_global_references_are_strong_and_function_references_weak() -> None:
    analysis = _analyze(
        """
$package("js.app");

js.app.Main = function () {
    this.document = new js.dom.Document();
};

js.app.Main.prototype = {
    run: function () {
        js.util.Timer.start();
    }
};

var page = new js.ui.Page();
"""
    )

    assert analysis.declared_classes == ["js.app.Main"]
    assert set(analysis.strong) == {OPERATOR_CLASS, "js.ui.Page"}
    assert set(analysis.weak) == {"js.dom.Document", "js.util.Timer"}
    assert "js.app.Main" not in analysis.strong + analysis.weak


@pytest.mark.parametrize(
    "source",
    [
        """
function later() { return new js.dom.Element(); }
var early = js.dom.Element.create();
""",
        """
var early = js.dom.Element.create();
function later() { return new js.dom.Element(); }
""",
    ],
)
def test_strong_reference_wins_in_any_order(source: str) -> None:
    analysis = _analyze(source)

    assert analysis.strong == ["js.dom.Element"]
    assert analysis.weak == []


def test_framework_idioms() -> None:
    analysis = _analyze(
        """
$declare("js.app.Child");
$include("js.widget.Slider");
$include("https://cdn.example.com/chart.js");
$extends(js.app.Child, js.app.Base);

js.app.Child.log = LogFactory.getLogger();
WinMain.on("load", function () {
    js.app.Child.log.debug("ready");
});
"""
    )

    assert analysis.declared_classes == ["js.app.Child"]
    assert set(analysis.strong) == {
        OPERATOR_CLASS,
        "js.widget.Slider",
        "js.app.Base",
        LOG_CLASS,
        WINDOW_CLASS,
    }
    assert analysis.third_party == ["https://cdn.example.com/chart.js"]
    assert analysis.weak == []


def test_custom_aliases_map_to_classes() -> None:
    analysis = _analyze('Console.print("hi");\n', aliases={"Console": "js.ua.Console"})

    assert analysis.strong == ["js.ua.Console"]


def test_string_literal_class_arguments_are_dependencies() -> None:
    analysis = _analyze(
        """
var widget = factory("comp.prj.Widget");
function later() { return make('comp.prj.Lazy'); }
log("not a class", "js.app");
"""
    )

    assert analysis.strong == ["comp.prj.Widget"]
    assert analysis.weak == ["comp.prj.Lazy"]


def test_malformed_script_is_reported() -> None:
    with pytest.raises(DependencyAnalysisError) as excinfo:
        _analyze("var ok = 1;\nvar broken = (;\n")
    assert "malformed script" in str(excinfo.value)


def test_analyze_file_reports_unreadable_scripts(tmp_path: Path) -> None:
    with pytest.raises(DependencyAnalysisError):
        ScriptDependencyAnalyzer().analyze_file(tmp_path / "missing.js")
