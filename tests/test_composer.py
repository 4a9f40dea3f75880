"""Tests for sitekit.composer."""

from __future__ import annotations

from lxml import etree
import pytest

from sitekit.composer import ComponentComposer
from sitekit.errors import CompositionError, MissingResourceError
from sitekit.models import MetaDescriptor


def _classes(element) -> set:
    return set((element.get("class") or "").split())


def _base_template(project_builder) -> None:
    project_builder.write(
        {
            "res/asset/strings.xml": "<string><title>Home</title><label>New</label></string>",
            "res/template/page/page.htm": """
                <body>
                    <header>@string/title</header>
                    <main class="slot" data-editable="body"></main>
                </body>
            """,
            "res/template/page/page.css": "body { margin: 0; }\n",
        }
    )


def test_template_content_fills_editable(project_builder) -> None:
    _base_template(project_builder)
    project_builder.write(
        {
            "res/page/index/index.htm": """
                <body data-template="template/page">
                    <section data-content="body" class="home"><h1>Hi</h1></section>
                </body>
            """,
        }
    )
    project = project_builder.project()

    component = ComponentComposer(project).compose("page/index")

    layout = component.layout
    assert layout.tag == "body"
    assert layout.findtext("header") == "Home"
    assert layout.find("main") is None
    section = layout.find("section")
    assert section.findtext("h1") == "Hi"
    assert _classes(section) == {"slot", "home"}
    assert "data-content" not in section.attrib
    assert "data-editable" not in section.attrib
    assert component.title == "Index"
    assert component.description == "Index"
    assert [path.name for path in component.style_files] == ["page.css"]


def test_template_slot_fills_inner_fragment(project_builder) -> None:
    _base_template(project_builder)
    project_builder.write(
        {
            "res/page/about/about.htm": """
                <div class="wrapper">
                    <article data-template="template/page#body"><p>About us</p></article>
                </div>
            """,
        }
    )
    project = project_builder.project()

    layout = ComponentComposer(project).compose("page/about").layout

    assert layout.tag == "div"
    body = layout.find("body")
    assert body is not None
    assert body.find("article").findtext("p") == "About us"


def test_three_level_chain_fills_only_parent_slots(project_builder) -> None:
    project_builder.write(
        {
            "res/template/base/base.htm": """
                <body>
                    <nav data-editable="menu"></nav>
                    <div data-editable="main"></div>
                </body>
            """,
            "res/template/page/page.htm": """
                <body data-template="template/base">
                    <nav data-content="menu">Menu</nav>
                    <div data-content="main"><section data-editable="body"></section></div>
                </body>
            """,
            "res/page/index/index.htm": """
                <body data-template="template/page">
                    <section data-content="body">Index body</section>
                </body>
            """,
        }
    )
    project = project_builder.project()

    layout = ComponentComposer(project).compose("page/index").layout

    assert layout.findtext("nav") == "Menu"
    assert layout.find("div").findtext("section") == "Index body"
    assert b"data-" not in etree.tostring(layout)


def test_child_cannot_fill_slot_already_filled_by_parent(project_builder) -> None:
    project_builder.write(
        {
            "res/template/base/base.htm": """
                <body>
                    <nav data-editable="menu"></nav>
                    <div data-editable="main"></div>
                </body>
            """,
            "res/template/page/page.htm": """
                <body data-template="template/base">
                    <nav data-content="menu">Menu</nav>
                    <div data-content="main"><section data-editable="body"></section></div>
                </body>
            """,
            "res/page/index/index.htm": """
                <body data-template="template/page">
                    <section data-content="body">Index body</section>
                    <nav data-content="menu">Other menu</nav>
                </body>
            """,
        }
    )
    project = project_builder.project()

    with pytest.raises(CompositionError) as excinfo:
        ComponentComposer(project).compose("page/index")
    assert "missing editable 'menu'" in str(excinfo.value)


def test_unfilled_grandparent_slot_is_an_error(project_builder) -> None:
    project_builder.write(
        {
            "res/template/base/base.htm": """
                <body>
                    <nav data-editable="menu"></nav>
                    <div data-editable="main"></div>
                </body>
            """,
            "res/template/page/page.htm": """
                <body data-template="template/base">
                    <div data-content="main"><section data-editable="body"></section></div>
                </body>
            """,
            "res/page/index/index.htm": """
                <body data-template="template/page">
                    <section data-content="body">Index body</section>
                </body>
            """,
        }
    )
    project = project_builder.project()

    with pytest.raises(CompositionError) as excinfo:
        ComponentComposer(project).compose("page/index")
    assert "unresolved editable 'menu'" in str(excinfo.value)


def test_widget_embedded_twice_contributes_once(project_builder) -> None:
    _base_template(project_builder)
    project_builder.write(
        {
            "res/widget/badge/badge.htm": '<span class="badge">@string/label</span>',
            "res/widget/badge/badge.css": ".badge { color: red; }\n",
            "res/widget/badge/badge.js": "var x = 1;\n",
            "res/page/index/index.htm": """
                <body data-template="template/page">
                    <section data-content="body">
                        <div class="first" data-compo="widget/badge"></div>
                        <div data-compo="widget/badge"></div>
                    </section>
                </body>
            """,
            "res/page/index/index.css": "section { padding: 0; }\n",
        }
    )
    project = project_builder.project()

    component = ComponentComposer(project).compose("page/index")

    markers = component.layout.find("section").findall("div")
    assert [marker.text for marker in markers] == ["New", "New"]
    assert _classes(markers[0]) == {"badge", "first"}
    assert _classes(markers[1]) == {"badge"}
    # templates first, then widgets in document order, then the page itself
    assert [path.name for path in component.style_files] == ["page.css", "badge.css", "index.css"]
    assert [script.source for script in component.scripts] == ["res/widget/badge/badge.js"]


def test_widget_parameters_are_substituted(project_builder) -> None:
    project_builder.write(
        {
            "res/widget/card/card.htm": "<div><h2>@param/caption</h2></div>",
            "res/page/index/index.htm": """
                <body>
                    <div data-compo="widget/card" data-param="caption:Tom &amp; Jerry"></div>
                </body>
            """,
        }
    )
    project = project_builder.project()

    layout = ComponentComposer(project).compose("page/index").layout

    assert layout.find("div").findtext("h2") == "Tom & Jerry"


def test_missing_widget_parameter_is_reported(project_builder) -> None:
    project_builder.write(
        {
            "res/widget/card/card.htm": "<div><h2>@param/caption</h2></div>",
            "res/page/index/index.htm": '<body><div data-compo="widget/card"></div></body>',
        }
    )
    project = project_builder.project()

    with pytest.raises(CompositionError) as excinfo:
        ComponentComposer(project).compose("page/index")
    assert "caption" in str(excinfo.value)


def test_circular_widgets_are_rejected(project_builder) -> None:
    project_builder.write(
        {
            "res/widget/ping/ping.htm": '<div data-compo="widget/pong"></div>',
            "res/widget/pong/pong.htm": '<div data-compo="widget/ping"></div>',
            "res/page/index/index.htm": '<body><div data-compo="widget/ping"></div></body>',
        }
    )
    project = project_builder.project()

    with pytest.raises(CompositionError) as excinfo:
        ComponentComposer(project).compose("page/index")
    assert "circular composition" in str(excinfo.value)
    assert "res/widget/ping -> res/widget/pong -> res/widget/ping" in str(excinfo.value)


def test_missing_widget_layout_is_reported(project_builder) -> None:
    project_builder.write(
        {"res/page/index/index.htm": '<body><div data-compo="widget/ghost"></div></body>'}
    )
    project = project_builder.project()

    with pytest.raises(CompositionError) as excinfo:
        ComponentComposer(project).compose("page/index")
    assert "res/widget/ghost" in str(excinfo.value)


def test_missing_variable_in_layout_propagates(project_builder) -> None:
    project_builder.write({"res/page/index/index.htm": "<body>@string/nothing</body>"})
    project = project_builder.project()

    with pytest.raises(MissingResourceError):
        ComponentComposer(project).compose("page/index")


def test_descriptor_declarations_are_collected(project_builder) -> None:
    project_builder.write(
        {
            "project.yml": "title: Kids\n",
            "lib/app.js": "var app = 1;\n",
            "res/asset/strings.xml": "<string><headline>Welcome</headline></string>",
            "res/page/index/index.htm": "<body><p>Index</p></body>",
            "res/page/index/index.js": "var index = 1;\n",
            "res/page/index/index.xml": """
                <page>
                    <title>@string/headline</title>
                    <group>games</group>
                    <meta name="keywords" content="kids" />
                    <script src="lib/app.js" />
                </page>
            """,
        }
    )
    project = project_builder.project()

    component = ComponentComposer(project).compose("page/index")

    assert component.title == "Welcome"
    assert component.description == "Welcome"
    assert component.group == "games"
    assert component.metas == [MetaDescriptor(name="keywords", content="kids")]
    assert [script.source for script in component.scripts] == ["lib/app.js", "res/page/index/index.js"]


def test_display_name_uses_project_title(project_builder) -> None:
    project_builder.write(
        {
            "project.yml": "title: Kids\n",
            "res/page/game-over/game-over.htm": "<body/>",
        }
    )
    project = project_builder.project()

    component = ComponentComposer(project).compose("page/game-over")

    assert component.title == "Kids / Game Over"


def test_xmlns_operators_are_stripped(project_builder) -> None:
    project_builder.write(
        {
            "project.yml": "operators: xmlns\n",
            "res/widget/badge/badge.htm": '<span class="badge">New</span>',
            "res/page/index/index.htm": """
                <body xmlns:wood="js-lib.com/wood">
                    <div wood:compo="widget/badge"></div>
                </body>
            """,
        }
    )
    project = project_builder.project()

    layout = ComponentComposer(project).compose("page/index").layout

    assert layout.findtext("div") == "New"
    serialized = etree.tostring(layout, encoding="unicode")
    assert "wood" not in serialized
    assert "js-lib.com" not in serialized
