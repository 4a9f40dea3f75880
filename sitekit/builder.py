"""Build pipeline: every page of a project, once per locale."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union, cast

from .buildfs import BuildFS, DefaultBuildFS
from .composer import Component, ComponentComposer
from .descriptors import read_group
from .config import CONFIG_FILENAME
from .errors import CompositionError, ResolutionError
from .logging import get_logger, page_logger
from .models import LinkDescriptor, Reference, ScriptDescriptor
from .page import PageDocument, create_environment
from .paths import CompoPath, FileKind, file_kind, is_url
from .project import Project
from .references import ReferenceHandler
from .resolver import ReferenceResolver
from .scripts import ScriptIndex, ScriptOrder
from .stores.variables import VariableRegistry

CONTENT_TYPE = "text/html; charset=UTF-8"


@dataclass
class BuildResult:
    """Files produced by one build run."""

    pages: List[Path] = field(default_factory=list)
    service_worker: Optional[Path] = None


class Builder:
    """Composes every page of a project and writes it through a build target.

    Variable stores, the script index and the build target's produced-file set
    live for one :meth:`build` run; a second run starts from scratch and
    produces the same tree.
    """

    def __init__(
        self,
        project: Project,
        build_fs: Optional[BuildFS] = None,
        *,
        build_number: int = 0,
    ) -> None:
        self.project = project
        self.build_fs = build_fs or DefaultBuildFS(
            project.build_dir, build_number, source_root=project.root
        )
        self.logger = get_logger("builder")
        self.locale = project.default_locale
        self._env = create_environment()
        self._resolver: Optional[ReferenceResolver] = None
        self._index: Optional[ScriptIndex] = None
        self._group: Optional[str] = None

    def build(self) -> BuildResult:
        project = self.project
        self.logger.info(
            "Building %d page(s) for %s into %s",
            len(project.pages),
            ", ".join(project.locales),
            project.build_dir,
        )
        self._start_run()
        result = BuildResult()
        for locale in project.locales:
            self.locale = locale
            self.build_fs.set_locale(locale if project.is_multi_locale else None)
            self.logger.info("Building locale %s", locale)
            for page in project.pages:
                target = self.build_fs.root_dir() / self.build_page(page)
                # a colliding page name is written once; the later page is skipped
                if target not in result.pages:
                    result.pages.append(target)

        worker = project.service_worker
        if worker.is_file():
            self.build_fs.set_locale(None)
            result.service_worker = self.build_fs.write_service_worker(worker, worker.read_bytes)
        self.logger.info("Wrote %d file(s)", len(self.build_fs.processed_files))
        return result

    def build_page(self, compo_path: Union[CompoPath, str]) -> str:
        """Compose and write one page for the current locale; returns its build-relative path."""
        if self._resolver is None:
            self._start_run()
        project = self.project
        path = compo_path if isinstance(compo_path, CompoPath) else project.compo_path(compo_path)
        descriptor_file = path.sibling(project.root, ".xml")
        # media written while composing is addressed relative to the page directory
        self._group = read_group(descriptor_file) if descriptor_file is not None else None
        log = page_logger(self.logger, path, self.locale)
        log.info("Building page")

        composer = ComponentComposer(project, self._compose_handler, locale=self.locale)
        component = composer.compose(path)
        document = self._assemble(component)
        relative = self.build_fs.write_page(component.layout_file_name, self._group, document.render())
        log.debug("Wrote %s with %d script(s)", relative, len(document.script_sources))
        return relative

    def on_resource_reference(
        self,
        reference: Reference,
        source_file: Path,
        locale: Optional[str] = None,
    ) -> str:
        """Return the text replacing ``reference`` in ``source_file``.

        Variables resolve to their value; media files are written to the build
        target and replaced by a URL relative to the document that loads
        ``source_file``.
        """
        locale = locale or self.locale
        resolver = self._run_resolver()
        if reference.is_variable:
            return resolver.resolve(reference, source_file, locale, self._handler(locale))

        media = cast(Path, resolver.resolve(reference, source_file, locale))
        if source_file == self.project.manifest:
            return self.build_fs.write_manifest_media(media)
        kind = file_kind(source_file)
        if kind in (FileKind.LAYOUT, FileKind.XML):
            return self.build_fs.write_page_media(self._group, media)
        if kind is FileKind.STYLE:
            return self.build_fs.write_style_media(media)
        if kind is FileKind.SCRIPT:
            return self.build_fs.write_script_media(self._group, media)
        if kind is FileKind.MANIFEST:
            return self.build_fs.write_manifest_media(media)
        raise ResolutionError(f"media references are not supported in {source_file.name}", source=source_file)

    # -- page assembly -------------------------------------------------------

    def _assemble(self, component: Component) -> PageDocument:
        project = self.project
        group = self._group
        document = PageDocument(component.layout, environment=self._env)
        document.set_language(self.locale)
        document.set_content_type(CONTENT_TYPE)
        document.set_title(component.title)
        document.set_authors(project.authors)
        document.set_description(component.description)
        for meta in [*project.metas, *component.metas]:
            document.add_meta(meta)

        manifest = project.manifest
        if manifest.is_file():
            document.add_manifest(self.build_fs.write_manifest(group, manifest, self._loader(manifest)))
        favicon = project.favicon
        if favicon.is_file():
            document.add_favicon(self.build_fs.write_favicon(group, favicon))

        for link in [*project.links, *component.links]:
            document.add_link(link, self._link_href(link))

        theme = project.theme_styles()
        for style in (theme.reset, theme.fx, *theme.others):
            if style is not None:
                document.add_style(self.build_fs.write_style(group, style, self._loader(style)))
        for style in component.style_files:
            document.add_style(self.build_fs.write_style(group, style, self._loader(style)))

        order = ScriptOrder(project, self._run_index())
        for script in order.order([*project.scripts, *component.scripts]):
            self._add_script(document, script)
        return document

    def _link_href(self, link: LinkDescriptor) -> Optional[str]:
        if is_url(link.href):
            return None
        link_file = self._project_file(link.href)
        if file_kind(link_file) is FileKind.STYLE:
            return self.build_fs.write_style(self._group, link_file, self._loader(link_file))
        return self.build_fs.write_page_media(self._group, link_file)

    def _add_script(self, document: PageDocument, script: ScriptDescriptor) -> None:
        if is_url(script.source):
            document.add_script(script, script.source)
            return
        script_file = self._project_file(script.source)
        if script.embedded:
            document.add_script(script, None, self._expand_file(script_file))
            return
        src = self.build_fs.write_script(self._group, script_file, self._loader(script_file))
        document.add_script(script, src)

    def _project_file(self, relative: str) -> Path:
        path = self.project.file(relative)
        if not path.is_file():
            # descriptor entries are checked when parsed; these come from project.yml
            raise CompositionError(
                f"missing project file '{relative}'", source=self.project.file(CONFIG_FILENAME)
            )
        return path

    # -- run state -----------------------------------------------------------

    def _start_run(self) -> Tuple[ReferenceResolver, ScriptIndex]:
        project = self.project
        self.build_fs.reset()
        variables = VariableRegistry(project.asset_dir, project.default_locale)
        self._resolver = resolver = ReferenceResolver(project, variables)
        self._index = index = ScriptIndex(project)
        self.logger.debug("Indexed %d script class(es)", len(index))
        return resolver, index

    def _run_resolver(self) -> ReferenceResolver:
        if self._resolver is None:
            return self._start_run()[0]
        return self._resolver

    def _run_index(self) -> ScriptIndex:
        if self._index is None:
            return self._start_run()[1]
        return self._index

    def _compose_handler(self, reference: Reference, source_file: Path) -> str:
        return self.on_resource_reference(reference, source_file)

    def _handler(self, locale: str) -> ReferenceHandler:
        def handle(reference: Reference, source_file: Path) -> str:
            return self.on_resource_reference(reference, source_file, locale)

        return handle

    def _loader(self, source_file: Path) -> Callable[[], str]:
        return lambda: self._expand_file(source_file)

    def _expand_file(self, source_file: Path) -> str:
        text = source_file.read_text(encoding="utf-8")
        return self._run_resolver().expand(text, source_file, self.locale, self._handler(self.locale))


__all__ = ["BuildResult", "Builder", "CONTENT_TYPE"]
