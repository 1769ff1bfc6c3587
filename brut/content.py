"""Content loading for Brut.

This module discovers page files under the pages directory, extracts their
frontmatter and builds the in-memory Page objects the rest of the pipeline
works on.

Key classes:
- Page: Dataclass representing one source file.
- PageLoader: Loads every eligible page under a directory concurrently.

Key functions:
- derive_slug: Compute the canonical URL path of a page.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .extractors import FrontmatterError, extract_frontmatter
from .utils import gather_limited, is_markdown, is_page_source, is_xml, walk_tree

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """Represents one content file discovered under the pages directory.

    Attributes:
        path: Absolute path to the source file.
        slug: Canonical URL path, e.g. ``/posts/hello/``.
        frontmatter: Metadata parsed from the frontmatter block.
        content: Body text. Raw Markdown/HTML at load time, rendered HTML
            after the Markdown conversion phase.
    """

    path: Path
    slug: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    content: str = ""

    @property
    def source_type(self) -> str:
        """Return "markdown", "xml" or "html" based on the file extension."""
        if is_markdown(self.path):
            return "markdown"
        if is_xml(self.path):
            return "xml"
        return "html"


class PageLoadError(Exception):
    """A page could not be read or its frontmatter could not be parsed.

    Attributes:
        source_path: Path to the page that failed.
        original_error: The underlying exception.
    """

    def __init__(self, source_path: Path, original_error: Exception):
        self.source_path = source_path
        self.original_error = original_error
        super().__init__(f"{source_path}: {original_error}")


def derive_slug(path: Path, pages_dir: Path, frontmatter: Mapping[str, Any]) -> str:
    """Derive the slug for a page.

    A ``permalink`` frontmatter value wins. Otherwise the slug mirrors the
    path below the pages directory: ``index`` files collapse onto their folder
    and every other file gets its extension replaced by a trailing slash.

    Args:
        path: Path to the source file.
        pages_dir: Root directory of the pages.
        frontmatter: Parsed frontmatter of the page.

    Returns:
        URL path for the page.

    Examples:
        >>> derive_slug(Path("/site/pages/index.html"), Path("/site/pages"), {})
        '/'
        >>> derive_slug(Path("/site/pages/posts/hello.md"), Path("/site/pages"), {})
        '/posts/hello/'
    """
    permalink = frontmatter.get("permalink")
    if permalink:
        return str(permalink)
    rel = path.relative_to(pages_dir)
    parent = rel.parent.as_posix()
    prefix = "/" if parent == "." else f"/{parent}/"
    if rel.stem == "index":
        return prefix
    return f"{prefix}{rel.stem}/"


class PageLoader:
    """Loads every page file under a directory.

    Attributes:
        pages_dir: Root directory of the pages.
        limit: Semaphore bounding the number of files read at once.
    """

    def __init__(self, pages_dir: Path, limit: asyncio.Semaphore | None = None):
        self.pages_dir = pages_dir.absolute()
        self.limit = limit or asyncio.Semaphore(64)

    def iter_files(self) -> list[Path]:
        """Return the paths of all .md, .html and .xml files under pages_dir."""
        return [path for path in walk_tree(self.pages_dir) if is_page_source(path)]

    async def load(self) -> list[Page]:
        """Load every page concurrently.

        Returns:
            List of Page objects, in path order.

        Raises:
            PageLoadError: On the first file that cannot be read or parsed.
        """
        paths = await asyncio.to_thread(self.iter_files)
        if not paths:
            logger.info("No pages found in %s", self.pages_dir)
            return []
        pages = await gather_limited(self.limit, (self.load_page(p) for p in paths))
        logger.info("Loaded %d pages.", len(pages))
        return pages

    async def load_page(self, path: Path) -> Page:
        """Read one file and build its Page.

        Args:
            path: Path to the source file.

        Returns:
            Page object.
        """
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            frontmatter, content = extract_frontmatter(text)
        except (OSError, UnicodeDecodeError, FrontmatterError) as exc:
            raise PageLoadError(path, exc) from exc
        slug = derive_slug(path, self.pages_dir, frontmatter)
        return Page(path=path, slug=slug, frontmatter=frontmatter, content=content)
