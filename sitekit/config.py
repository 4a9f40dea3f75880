"""Configuration loading for sitekit projects (project.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError
from .models import LinkDescriptor, MetaDescriptor, ScriptDescriptor
from .operators import OperatorNaming
from .paths import normalize_locale

CONFIG_FILENAME = "project.yml"


@dataclass
class ProjectConfig:
    """Represents the project-wide settings defined in project.yml."""

    root: Path
    title: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    locales: List[str] = field(default_factory=lambda: ["en"])
    build_dir: str = "site"
    asset_dir: str = "res/asset"
    theme_dir: str = "res/theme"
    exclude_dirs: List[str] = field(default_factory=list)
    favicon: str = "res/asset/favicon.ico"
    manifest: str = "manifest.json"
    service_worker: str = "sw.js"
    operators: OperatorNaming = OperatorNaming.DATA_ATTR
    metas: List[MetaDescriptor] = field(default_factory=list)
    links: List[LinkDescriptor] = field(default_factory=list)
    scripts: List[ScriptDescriptor] = field(default_factory=list)
    script_aliases: Dict[str, str] = field(default_factory=dict)

    @property
    def default_locale(self) -> str:
        return self.locales[0]


def load_config(config_path: Path) -> ProjectConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ProjectConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root", source=config_file)

    config = ProjectConfig(root=root)
    config.title = _as_str(data.get("title"))
    config.authors = _as_str_list(data.get("authors"))

    locales = _as_str_list(data.get("locales"))
    if len(locales) == 1 and "," in locales[0]:
        locales = [part for part in (item.strip() for item in locales[0].split(",")) if part]
    if locales:
        try:
            config.locales = _unique([normalize_locale(item) for item in locales])
        except ValueError as exc:
            raise ConfigError(str(exc), source=config_file) from exc

    for key, attribute in (
        ("build-dir", "build_dir"),
        ("asset-dir", "asset_dir"),
        ("theme-dir", "theme_dir"),
        ("favicon", "favicon"),
        ("manifest", "manifest"),
        ("service-worker", "service_worker"),
    ):
        value = _as_str(data.get(key))
        if value:
            setattr(config, attribute, value.strip("/"))

    config.exclude_dirs = [item.strip("/") for item in _as_str_list(data.get("exclude-dirs"))]

    operators = _as_str(data.get("operators"))
    if operators:
        try:
            config.operators = OperatorNaming(operators)
        except ValueError as exc:
            choices = ", ".join(naming.value for naming in OperatorNaming)
            raise ConfigError(
                f"unknown operators naming '{operators}'; expected one of {choices}",
                source=config_file,
            ) from exc

    config.metas = [_meta(item, config_file) for item in _as_list(data.get("meta"), "meta", config_file)]
    config.links = [_link(item, config_file) for item in _as_list(data.get("links"), "links", config_file)]
    config.scripts = [
        _script(item, config_file) for item in _as_list(data.get("scripts"), "scripts", config_file)
    ]

    aliases = data.get("script-aliases")
    if aliases is not None:
        if not isinstance(aliases, dict):
            raise ConfigError("script-aliases must be a mapping", source=config_file)
        config.script_aliases = {str(key): str(value) for key, value in aliases.items()}

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}", source=path) from exc
    return loaded if loaded is not None else {}


def _meta(item: Any, source: Path) -> MetaDescriptor:
    data = _as_mapping(item, "meta", source)
    meta = MetaDescriptor(
        name=_as_str(data.get("name")),
        http_equiv=_as_str(data.get("http-equiv")),
        property=_as_str(data.get("property")),
        content=_as_str(data.get("content")),
        charset=_as_str(data.get("charset")),
    )
    if not (meta.name or meta.http_equiv or meta.property or meta.charset):
        raise ConfigError("meta entries need name, http-equiv, property or charset", source=source)
    return meta


def _link(item: Any, source: Path) -> LinkDescriptor:
    if isinstance(item, str):
        return LinkDescriptor(href=item)
    data = _as_mapping(item, "links", source)
    href = _as_str(data.get("href"))
    if not href:
        raise ConfigError("link entries need an href", source=source)
    return LinkDescriptor(
        href=href,
        rel=_as_str(data.get("rel")),
        type=_as_str(data.get("type")),
        hreflang=_as_str(data.get("hreflang")),
        media=_as_str(data.get("media")),
        referrerpolicy=_as_str(data.get("referrerpolicy")),
        crossorigin=_as_str(data.get("crossorigin")),
        integrity=_as_str(data.get("integrity")),
        disabled=_as_str(data.get("disabled")),
        as_type=_as_str(data.get("as")),
        sizes=_as_str(data.get("sizes")),
        title=_as_str(data.get("title")),
    )


def _script(item: Any, source: Path) -> ScriptDescriptor:
    if isinstance(item, str):
        return ScriptDescriptor(source=item)
    data = _as_mapping(item, "scripts", source)
    src = _as_str(data.get("src"))
    if not src:
        raise ConfigError("script entries need a src", source=source)
    dependencies = tuple(
        _script(dependency, source)
        for dependency in _as_list(data.get("dependencies"), "dependencies", source)
    )
    defer = data.get("defer", True)
    return ScriptDescriptor(
        source=src,
        type=_as_str(data.get("type")) or "text/javascript",
        async_=_flag(data.get("async")),
        defer=_flag(defer),
        nomodule=_flag(data.get("nomodule")),
        nonce=_as_str(data.get("nonce")),
        referrerpolicy=_as_str(data.get("referrerpolicy")),
        integrity=_as_str(data.get("integrity")),
        crossorigin=_as_str(data.get("crossorigin")),
        embedded=bool(_as_bool(data.get("embedded"))),
        dynamic=bool(_as_bool(data.get("dynamic"))),
        dependencies=dependencies,
    )


def _flag(value: Any) -> Optional[str]:
    flag = _as_bool(value)
    if flag is None:
        return None
    return "true" if flag else None


def _unique(values: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _as_list(value: Any, key: str, source: Path) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list", source=source)
    return value


def _as_mapping(value: Any, key: str, source: Path) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{key} entries must be mappings", source=source)
    return value


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ProjectConfig", "load_config"]
