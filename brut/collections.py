"""Collections and the shared render context for Brut.

A collection is a named, date-sorted group of pages living under the same
folder of the pages directory (``posts`` holds ``pages/posts/**``). Only pages
with a ``published_date`` take part. The context maps every configured
collection name to its pages and is handed to every template.

Key classes:
- PageCollection: Read-only sequence of pages with template helpers.

Key functions:
- build_context: Group, sort and post-process pages into the context dict.
- parse_published_date: Turn a frontmatter date value into a datetime.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Iterator, Sequence
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

from .content import Page
from .protocols import ContextProcessor

logger = logging.getLogger(__name__)


class PageCollection(Sequence[Page]):
    """Lightweight helper for working with lists of Pages in templates and code."""

    def __init__(self, pages: Iterable[Page] = ()):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def latest(self, count: int = 5) -> PageCollection:
        return PageCollection(self._pages[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"


def parse_published_date(value: Any) -> datetime | None:
    """Parse a ``published_date`` frontmatter value.

    YAML already turns ``2024-01-01`` into a ``date``; quoted values arrive as
    ISO-8601 strings. Naive values are taken as UTC.

    Args:
        value: Raw frontmatter value.

    Returns:
        Timezone-aware datetime, or None if the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            text = value.strip()
            # fromisoformat only accepts a trailing Z from Python 3.11
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_by_published_date(pages: Iterable[Page]) -> list[Page]:
    """Sort pages newest first. Unparseable dates go last, in input order."""
    dated: list[tuple[datetime, Page]] = []
    undated: list[Page] = []
    for page in pages:
        parsed = parse_published_date(page.frontmatter.get("published_date"))
        if parsed is None:
            logger.warning(
                "Unparseable published_date %r in %s",
                page.frontmatter.get("published_date"),
                page.path,
            )
            undated.append(page)
        else:
            dated.append((parsed, page))
    dated.sort(key=lambda item: item[0], reverse=True)
    return [page for _, page in dated] + undated


def match_collection(
    page: Page, collections: Sequence[str], pages_dir: Path
) -> str | None:
    """Return the first collection whose folder contains the page.

    Matching is done on whole path segments: ``posts`` matches
    ``pages/posts/a.md`` but not ``pages/postscript/a.md``. Nested names are
    not resolved hierarchically; the first configured match wins.
    """
    try:
        rel_parts = page.path.relative_to(pages_dir).parts[:-1]
    except ValueError:
        return None
    for name in collections:
        parts = Path(name.strip("/")).parts
        if parts and rel_parts[: len(parts)] == parts:
            return name
    return None


async def build_context(
    pages: Iterable[Page],
    collections: Sequence[str],
    pages_dir: Path,
    process_context: ContextProcessor | None = None,
) -> dict[str, Any]:
    """Build the context shared by every page render.

    Args:
        pages: All loaded pages.
        collections: Configured collection names, in priority order.
        pages_dir: Root directory of the pages.
        process_context: Optional function receiving the assembled context and
            returning the context to use. May be a coroutine function.

    Returns:
        The context dict, as returned by ``process_context``.
    """
    published = [p for p in pages if p.frontmatter.get("published_date")]
    grouped: dict[str, list[Page]] = {name: [] for name in collections}
    for page in sort_by_published_date(published):
        name = match_collection(page, collections, pages_dir)
        if name is not None:
            grouped[name].append(page)

    context: dict[str, Any] = {
        name: PageCollection(members) for name, members in grouped.items()
    }
    for name, members in context.items():
        logger.debug("Collection %s has %d pages.", name, len(members))

    if process_context is None:
        return context
    result = process_context(context)
    if inspect.isawaitable(result):
        result = await result
    return result
