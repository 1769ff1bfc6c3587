"""Configuration for Brut.

Site configuration lives in ``brut.yaml`` at the project root. Every key is
optional; directories are given relative to the project root (a leading slash
is accepted, ``/pages`` and ``pages`` mean the same). Import strings for the
context processor, build scripts and HTML postprocessors are resolved here,
once, so the build itself never imports user code.

Key classes:
- BuildConfig: Fully resolved settings threaded through the pipeline.

Key functions:
- load_config: Read brut.yaml and return a BuildConfig.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .minify import MinifyOptions
from .protocols import ContextProcessor, HtmlPostprocessor
from .renderers import DEFAULT_PLUGINS
from .scripts import BuildScriptRegistry, CallableLoader

CONFIG_FILENAME = "brut.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "pages_dir": "/pages",
    "templates_dir": "/templates",
    "partials_dir": "/partials",
    "public_dir": "/public",
    "out_dir": "/dist",
    "collections": [],
    "process_context": None,
    "build_scripts": {},
    "markdown": {},
    "minify": True,
    "concurrency": 64,
    "fail_on_error": False,
    "fail_on_duplicate_names": False,
}


class ConfigError(ValueError):
    """The site configuration is invalid."""


@dataclass
class BuildConfig:
    """Settings for one build.

    Attributes:
        pages_dir: Directory holding .md/.html/.xml pages.
        templates_dir: Directory holding page templates.
        partials_dir: Directory holding partials.
        public_dir: Directory copied verbatim into out_dir.
        out_dir: Build output directory; emptied before each build.
        collections: Collection names, in matching priority order.
        process_context: Optional function transforming the context.
        build_scripts: Build scripts pages may reference.
        markdown_plugins: mistune plugins applied to Markdown pages.
        html_postprocessors: Callables applied to converted Markdown HTML.
        minify: Whether to minify rendered pages.
        minify_options: Switches for minification.
        concurrency: Maximum number of files processed at once.
        fail_on_error: Fail the build when any page fails.
        fail_on_duplicate_names: Fail on template/partial name collisions.
        project_root: Project the directories belong to, if known. The output
            directory may not contain it.
    """

    pages_dir: Path
    templates_dir: Path
    partials_dir: Path
    public_dir: Path
    out_dir: Path
    collections: list[str] = field(default_factory=list)
    process_context: ContextProcessor | None = None
    build_scripts: BuildScriptRegistry = field(default_factory=BuildScriptRegistry)
    markdown_plugins: list[str | Callable[..., Any]] = field(
        default_factory=lambda: list(DEFAULT_PLUGINS)
    )
    html_postprocessors: list[HtmlPostprocessor] = field(default_factory=list)
    minify: bool = True
    minify_options: MinifyOptions = field(default_factory=MinifyOptions)
    concurrency: int = 64
    fail_on_error: bool = False
    fail_on_duplicate_names: bool = False
    project_root: Path | None = None

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        _check_out_dir(self)

    @classmethod
    def for_project(cls, project_root: Path, **overrides: Any) -> BuildConfig:
        """Build a config with the default directory layout under project_root."""
        root = project_root.absolute()
        paths = {
            key: _resolve_dir(root, DEFAULT_CONFIG[key])
            for key in ("pages_dir", "templates_dir", "partials_dir", "public_dir", "out_dir")
        }
        paths["project_root"] = root
        paths.update(overrides)
        return cls(**paths)


def _resolve_dir(project_root: Path, value: Any) -> Path:
    if not isinstance(value, str) or not value.strip("/"):
        raise ConfigError(f"Expected a directory path, got {value!r}")
    return project_root / value.lstrip("/")


def _check_out_dir(config: BuildConfig) -> None:
    """Refuse an out_dir whose cleanup would delete the project or its sources."""
    out_dir = config.out_dir.resolve()
    protected: dict[str, Path] = {}
    if config.project_root is not None:
        protected["the project root"] = config.project_root
    protected.update(
        pages_dir=config.pages_dir,
        templates_dir=config.templates_dir,
        partials_dir=config.partials_dir,
        public_dir=config.public_dir,
    )
    for name, path in protected.items():
        if path.resolve().is_relative_to(out_dir):
            raise ConfigError(
                f"out_dir {config.out_dir} would delete {name} ({path}) when cleaned"
            )


def _as_list(key: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigError(f"{key} must be a list, got {type(value).__name__}")
    return list(value)


def _load_callable(loader: CallableLoader, key: str, target: Any) -> Callable[..., Any]:
    if not isinstance(target, str):
        raise ConfigError(f"{key} must be an import string, got {target!r}")
    try:
        return loader.load(target)
    except (ImportError, AttributeError, ValueError, OSError) as exc:
        raise ConfigError(f"Cannot resolve {key} {target!r}: {exc}") from exc


def _minify_settings(value: Any) -> tuple[bool, MinifyOptions]:
    """Accept ``minify: false`` or a mapping of MinifyOptions switches."""
    if isinstance(value, dict):
        try:
            return True, MinifyOptions(**value)
        except TypeError as exc:
            raise ConfigError(f"minify: {exc}") from exc
    return bool(value), MinifyOptions()


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file and merge it over the defaults.

    Args:
        path: Path to the config file. A missing file yields the defaults.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not a YAML mapping or has unknown keys.
    """
    config = DEFAULT_CONFIG.copy()
    if not path.exists():
        return config
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    unknown = sorted(set(loaded) - set(DEFAULT_CONFIG))
    if unknown:
        raise ConfigError(f"{path}: unknown keys: {', '.join(unknown)}")
    config.update(loaded)
    return config


def load_config(project_root: Path, config_file: Path | None = None) -> BuildConfig:
    """Load the site configuration for a project.

    Args:
        project_root: Root directory of the project.
        config_file: Optional config path; defaults to ``brut.yaml`` in project_root.

    Returns:
        Fully resolved BuildConfig.

    Raises:
        ConfigError: If any value is invalid or an import string cannot be resolved.
    """
    root = project_root.absolute()
    raw = read_config_file(config_file or root / CONFIG_FILENAME)
    loader = CallableLoader(root)

    collections = [str(name) for name in _as_list("collections", raw["collections"])]

    process_context = None
    if raw["process_context"]:
        process_context = _load_callable(loader, "process_context", raw["process_context"])

    scripts = raw["build_scripts"] or {}
    if not isinstance(scripts, dict):
        raise ConfigError("build_scripts must be a mapping of name to import string")
    registry = BuildScriptRegistry(
        {
            str(name): _load_callable(loader, f"build_scripts.{name}", target)
            for name, target in scripts.items()
        }
    )

    markdown = raw["markdown"] or {}
    if not isinstance(markdown, dict):
        raise ConfigError("markdown must be a mapping")
    unknown = sorted(set(markdown) - {"plugins", "postprocessors"})
    if unknown:
        raise ConfigError(f"markdown: unknown keys: {', '.join(unknown)}")
    plugins = _as_list("markdown.plugins", markdown.get("plugins", list(DEFAULT_PLUGINS)))
    postprocessors = [
        _load_callable(loader, "markdown.postprocessors", target)
        for target in _as_list("markdown.postprocessors", markdown.get("postprocessors"))
    ]

    minify_enabled, minify_options = _minify_settings(raw["minify"])

    concurrency = raw["concurrency"]
    if not isinstance(concurrency, int) or isinstance(concurrency, bool):
        raise ConfigError(f"concurrency must be an integer, got {concurrency!r}")

    return BuildConfig(
        pages_dir=_resolve_dir(root, raw["pages_dir"]),
        templates_dir=_resolve_dir(root, raw["templates_dir"]),
        partials_dir=_resolve_dir(root, raw["partials_dir"]),
        public_dir=_resolve_dir(root, raw["public_dir"]),
        out_dir=_resolve_dir(root, raw["out_dir"]),
        collections=collections,
        process_context=process_context,
        build_scripts=registry,
        markdown_plugins=plugins,
        html_postprocessors=postprocessors,
        minify=minify_enabled,
        minify_options=minify_options,
        concurrency=concurrency,
        fail_on_error=bool(raw["fail_on_error"]),
        fail_on_duplicate_names=bool(raw["fail_on_duplicate_names"]),
        project_root=root,
    )
