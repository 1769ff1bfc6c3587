"""Protocol definitions for Brut.

These are the extension points a site can plug into the pipeline. Each is a
plain callable; the protocols only document the expected signature.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ContextProcessor(Protocol):
    """Transforms the shared context once, before any page renders.

    It may add keys or replace collections (for instance to format dates for
    display). The return value becomes the context.
    """

    def __call__(
        self, context: dict[str, Any]
    ) -> dict[str, Any] | Awaitable[dict[str, Any]]: ...


@runtime_checkable
class BuildScript(Protocol):
    """Post-processes one rendered page.

    Args:
        html: Rendered page HTML.
        frontmatter: The page frontmatter.
        slug: The page slug.

    Returns:
        The new HTML, or an awaitable resolving to it.
    """

    def __call__(
        self, html: str, frontmatter: dict[str, Any], slug: str
    ) -> str | Awaitable[str]: ...


@runtime_checkable
class HtmlPostprocessor(Protocol):
    """Transforms the HTML produced by the Markdown converter."""

    def __call__(self, html: str) -> str: ...
