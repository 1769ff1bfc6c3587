"""Templates and partials for Brut.

Templates and partials are plain files whose name (basename without the last
extension) is the key pages and other templates refer to them by. Rendering
uses Jinja2: the variables ``page`` and ``context`` are available everywhere,
and every partial, plus the page body under the name ``content``, can be
pulled in with ``{% include "name" %}``.

Key functions:
- load_registry: Read every file of a directory into a name to source dict.

Key classes:
- TemplateEngine: Renders a page through its template, or the page itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import DictLoader, Environment

from .content import Page
from .utils import gather_limited, registry_name, walk_tree

logger = logging.getLogger(__name__)


class DuplicateNameError(ValueError):
    """Two template or partial files share the same name.

    Attributes:
        source_path: The second file claiming the name.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        super().__init__(message)


class TemplateNotFoundError(LookupError):
    """A page asks for a template that is not in the registry."""


async def load_registry(
    directory: Path,
    kind: str = "template",
    fail_on_duplicates: bool = False,
    limit: asyncio.Semaphore | None = None,
) -> dict[str, str]:
    """Load every file under a directory into a name to source mapping.

    Files are keyed by basename without extension. When two files share a
    name, the one later in path order wins and a warning is logged.

    Args:
        directory: Templates or partials directory.
        kind: Label used in log messages ("template" or "partial").
        fail_on_duplicates: Raise instead of warning on name collisions.
        limit: Semaphore bounding concurrent reads.

    Returns:
        Mapping of name to raw source. Empty if the directory does not exist.

    Raises:
        DuplicateNameError: On a name collision when fail_on_duplicates is set.
    """
    paths = await asyncio.to_thread(walk_tree, directory)
    if not paths:
        logger.info("No %ss found in %s", kind, directory)
        return {}
    limit = limit or asyncio.Semaphore(64)
    sources = await gather_limited(
        limit, (asyncio.to_thread(p.read_text, encoding="utf-8") for p in paths)
    )

    registry: dict[str, str] = {}
    origins: dict[str, Path] = {}
    for path, source in zip(paths, sources):
        name = registry_name(path)
        if name in origins:
            message = f"Duplicate {kind} name {name!r}: {origins[name]} and {path}"
            if fail_on_duplicates:
                raise DuplicateNameError(path, message)
            logger.warning("%s (using the latter)", message)
        origins[name] = path
        registry[name] = source
    logger.info("Loaded %d %ss.", len(registry), kind)
    return registry


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        templates: Mapping of template name to source.
        partials: Mapping of partial name to source.
        env: Base Jinja2 environment; each render works on an overlay whose
            loader holds the partials and the page content.
    """

    def __init__(self, templates: Mapping[str, str], partials: Mapping[str, str]):
        self.templates = dict(templates)
        self.partials = dict(partials)
        self.env = Environment(autoescape=True, keep_trailing_newline=True)

    def render_page(self, page: Page, context: Mapping[str, Any]) -> str:
        """Render a page.

        If ``template`` is set in the frontmatter, that template is rendered;
        otherwise the page content is itself the template source.

        Args:
            page: Page to render, with its content already converted to HTML.
            context: Shared render context.

        Returns:
            Rendered HTML string.

        Raises:
            TemplateNotFoundError: If the named template does not exist.
        """
        name = page.frontmatter.get("template")
        if name:
            try:
                source = self.templates[name]
            except KeyError:
                raise TemplateNotFoundError(f"Unknown template: {name!r}") from None
        else:
            source = page.content
        env = self._environment_for(page)
        return env.from_string(source).render(page=page, context=context)

    def _environment_for(self, page: Page) -> Environment:
        """Return an environment whose includable names are the partials and ``content``."""
        loader = DictLoader({"content": page.content, **self.partials})
        return self.env.overlay(loader=loader, cache_size=0)
