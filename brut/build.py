"""Site building functionality for Brut.

This module sequences the build. Phases are separated by hard barriers, and
work inside a phase runs concurrently under one concurrency cap:

1. Load pages, templates and partials.
2. Convert Markdown pages to HTML.
3. Build the shared context.
4. Render every page and write it to its output path.

A page that fails in phase 2 or 4 is recorded in the BuildReport and skipped;
its siblings are unaffected. Failures in phases 1 and 3 abort the build with a
BuildError.

Key functions:
- build_site: Empty the output directory, copy static files and build pages.
- build_pages: Run the four page phases and return a BuildReport.
- resolve_output_path: Map a slug to the file it is written to.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import TemplateSyntaxError

from .assets import copy_public
from .collections import build_context
from .config import BuildConfig
from .content import Page, PageLoader, PageLoadError
from .minify import MinifyOptions, minify
from .renderers import MarkdownConverter
from .scripts import BuildScriptRegistry
from .templates import DuplicateNameError, TemplateEngine, load_registry
from .utils import ensure_clean_dir, gather_limited, is_xml

logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class PageFailuresError(BuildError):
    """Raised after rendering when pages failed and fail_on_error is set.

    Attributes:
        report: The complete BuildReport, including the pages that succeeded.
    """

    def __init__(self, report: BuildReport):
        self.report = report
        first = report.failed[0]
        super().__init__(
            first.page.path,
            f"{len(report.failed)} page(s) failed to build",
            first.error,
        )


class OutputPathError(ValueError):
    """A slug resolves to a location outside the output directory."""


@dataclass
class PageResult:
    """Outcome of building one page.

    Attributes:
        page: The page.
        destination: File the page was (or would have been) written to.
        error: The exception that stopped the page, if any.
    """

    page: Page
    destination: Path | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BuildReport:
    """Result of a page build.

    Attributes:
        out_dir: Directory where the site was built.
        results: One PageResult per loaded page.
        context: The context pages were rendered with.
    """

    out_dir: Path
    results: list[PageResult] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def written(self) -> list[PageResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[PageResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def resolve_output_path(out_dir: Path, slug: str) -> Path:
    """Compute the file a page with the given slug is written to.

    - ``/404/`` is written to ``404.html`` so static hosts pick it up.
    - Slugs ending with ``/`` get pretty URLs: ``<slug>index.html``.
    - Anything else is used verbatim, e.g. ``/feed.xml``.

    Args:
        out_dir: Build output directory.
        slug: Page slug.

    Returns:
        Absolute destination path.

    Raises:
        OutputPathError: If the slug would escape out_dir.
    """
    if slug == "/404/":
        rel = "404.html"
    elif slug.endswith("/"):
        rel = f"{slug.strip('/')}/index.html".lstrip("/")
    else:
        rel = slug.lstrip("/")
    parts = PurePosixPath(rel).parts
    if not parts or ".." in parts:
        raise OutputPathError(f"Slug {slug!r} does not map into the output directory")
    return out_dir.absolute().joinpath(*parts)


def write_page(destination: Path, html: str) -> None:
    """Write rendered HTML, creating parent directories as needed."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(html, encoding="utf-8")


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"

    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


class PageRenderer:
    """Turns a converted page into its final HTML.

    Attributes:
        engine: Template engine holding templates and partials.
        context: Shared, read-only render context.
        build_scripts: Registered build scripts.
        minify_options: Minification switches, or None to skip minification.
    """

    def __init__(
        self,
        engine: TemplateEngine,
        context: dict[str, Any],
        build_scripts: BuildScriptRegistry,
        minify_options: MinifyOptions | None = None,
    ):
        self.engine = engine
        self.context = context
        self.build_scripts = build_scripts
        self.minify_options = minify_options

    async def render(self, page: Page) -> str:
        """Render a page through its template, build script and minifier.

        Args:
            page: Page with HTML content.

        Returns:
            Final HTML.
        """
        html = await asyncio.to_thread(self.engine.render_page, page, self.context)
        script_name = page.frontmatter.get("buildScript")
        if script_name:
            html = await self._run_build_script(str(script_name), page, html)
        if self.minify_options is not None and not self._is_xml(page):
            html = await asyncio.to_thread(minify, html, self.minify_options)
        return html

    async def _run_build_script(self, name: str, page: Page, html: str) -> str:
        script = self.build_scripts.resolve(name)
        frontmatter = dict(page.frontmatter)
        if inspect.iscoroutinefunction(script):
            result = await script(html, frontmatter, page.slug)
        else:
            result = await asyncio.to_thread(script, html, frontmatter, page.slug)
            if inspect.isawaitable(result):
                result = await result
        if not isinstance(result, str):
            raise TypeError(
                f"Build script {name!r} returned {type(result).__name__}, expected str"
            )
        return result

    @staticmethod
    def _is_xml(page: Page) -> bool:
        return is_xml(page.path) or page.slug.endswith(".xml")


async def _load(config: BuildConfig, limit: asyncio.Semaphore):
    try:
        return await asyncio.gather(
            PageLoader(config.pages_dir, limit).load(),
            load_registry(
                config.templates_dir, "template", config.fail_on_duplicate_names, limit
            ),
            load_registry(
                config.partials_dir, "partial", config.fail_on_duplicate_names, limit
            ),
        )
    except PageLoadError as exc:
        raise BuildError(
            exc.source_path, _format_error_message(exc.original_error), exc.original_error
        ) from exc
    except DuplicateNameError as exc:
        raise BuildError(exc.source_path, str(exc), exc) from exc


async def _convert(converter: MarkdownConverter, page: Page) -> PageResult:
    try:
        page.content = await asyncio.to_thread(converter.convert, page.content)
    except Exception as exc:
        logger.error("Failed to convert %s: %s", page.path, _format_error_message(exc))
        return PageResult(page=page, error=exc)
    return PageResult(page=page)


async def _render_and_write(
    renderer: PageRenderer, page: Page, out_dir: Path
) -> PageResult:
    destination: Path | None = None
    try:
        destination = resolve_output_path(out_dir, page.slug)
        html = await renderer.render(page)
        await asyncio.to_thread(write_page, destination, html)
    except Exception as exc:
        logger.error("Failed to build %s: %s", page.path, _format_error_message(exc))
        return PageResult(page=page, destination=destination, error=exc)
    logger.debug("Wrote %s", destination)
    return PageResult(page=page, destination=destination)


def _warn_on_shared_destinations(pages: list[Page], out_dir: Path) -> None:
    seen: dict[Path, Page] = {}
    for page in pages:
        try:
            destination = resolve_output_path(out_dir, page.slug)
        except OutputPathError:
            continue
        if destination in seen:
            logger.warning(
                "%s and %s both write to %s; the last write wins",
                seen[destination].path,
                page.path,
                destination,
            )
        seen[destination] = page


async def build_pages(config: BuildConfig) -> BuildReport:
    """Build every page into config.out_dir.

    Args:
        config: Build configuration.

    Returns:
        BuildReport with one result per loaded page.

    Raises:
        BuildError: If loading or context building fails.
        PageFailuresError: If pages failed and config.fail_on_error is set.
    """
    limit = asyncio.Semaphore(config.concurrency)
    pages, templates, partials = await _load(config, limit)

    converter = MarkdownConverter(config.markdown_plugins, config.html_postprocessors)
    converted = await gather_limited(
        limit,
        (_convert(converter, p) for p in pages if p.source_type == "markdown"),
    )
    failures = [r for r in converted if not r.ok]
    failed_paths = {r.page.path for r in failures}
    renderable = [p for p in pages if p.path not in failed_paths]

    try:
        context = await build_context(
            renderable,
            config.collections,
            config.pages_dir.absolute(),
            config.process_context,
        )
    except Exception as exc:
        raise BuildError(
            config.pages_dir,
            f"Context processing failed: {_format_error_message(exc)}",
            exc,
        ) from exc

    renderer = PageRenderer(
        TemplateEngine(templates, partials),
        context,
        config.build_scripts,
        config.minify_options if config.minify else None,
    )
    _warn_on_shared_destinations(renderable, config.out_dir)
    rendered = await gather_limited(
        limit, (_render_and_write(renderer, p, config.out_dir) for p in renderable)
    )

    report = BuildReport(
        out_dir=config.out_dir, results=failures + rendered, context=context
    )
    logger.info(
        "Built %d of %d pages into %s.",
        len(report.written),
        len(report.results),
        config.out_dir,
    )
    if config.fail_on_error and not report.ok:
        raise PageFailuresError(report)
    return report


async def _copy_public(config: BuildConfig) -> int:
    try:
        return await asyncio.to_thread(copy_public, config.public_dir, config.out_dir)
    except OSError as exc:
        raise BuildError(
            config.public_dir, f"Cannot copy static files: {exc}", exc
        ) from exc


async def build_site_async(config: BuildConfig) -> BuildReport:
    """Clean the output directory, then copy static files and build pages concurrently."""
    start = time.perf_counter()
    try:
        await asyncio.to_thread(ensure_clean_dir, config.out_dir)
    except OSError as exc:
        raise BuildError(
            config.out_dir, f"Cannot clean output directory: {exc}", exc
        ) from exc
    _, report = await asyncio.gather(_copy_public(config), build_pages(config))
    logger.info("Total build time: %.2fs", time.perf_counter() - start)
    return report


def build_site(config: BuildConfig) -> BuildReport:
    """Build the entire static site.

    Args:
        config: Build configuration.

    Returns:
        BuildReport describing every page.
    """
    return asyncio.run(build_site_async(config))
