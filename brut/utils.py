"""Utility functions for Brut.

This module contains path helpers used throughout the Brut codebase.

Key functions:
    walk_tree: Recursively list every file under a directory.
    is_page_source: Check if a path is a buildable page.
    is_markdown: Check if a path is a Markdown file.
    is_xml: Check if a path is an XML file.
    registry_name: Derive a template/partial name from a file path.
    ensure_clean_dir: Ensure a directory exists and is empty.
    gather_limited: Await many awaitables under a concurrency cap.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Awaitable, Iterable
from pathlib import Path
from typing import TypeVar

T = TypeVar("T")

PAGE_EXTENSIONS = (".md", ".html", ".xml")


def walk_tree(directory: Path) -> list[Path]:
    """Recursively list every regular file under a directory.

    Args:
        directory: Directory to walk.

    Returns:
        Sorted list of absolute file paths. Empty if the directory does not exist.
    """
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.absolute().rglob("*") if p.is_file())


def is_page_source(path: Path) -> bool:
    """Check if a path is a page the pipeline should build.

    Args:
        path: Path to check.

    Returns:
        True for .md, .html and .xml files (case-insensitive).
    """
    return path.suffix.lower() in PAGE_EXTENSIONS


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_xml(path: Path) -> bool:
    """Check if a path is an XML file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .xml extension (case-insensitive).
    """
    return path.suffix.lower() == ".xml"


def registry_name(path: Path) -> str:
    """Return the registry key for a template or partial file.

    Only the last extension is dropped, so ``nav.html`` becomes ``nav`` and
    ``feed.xml.j2`` becomes ``feed.xml``.
    """
    return path.stem


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


async def gather_limited(
    limit: asyncio.Semaphore, awaitables: Iterable[Awaitable[T]]
) -> list[T]:
    """Await every awaitable concurrently, at most ``limit`` at a time.

    Results keep the input order. The first exception propagates; awaitables
    already running are not cancelled.
    """

    async def run(awaitable: Awaitable[T]) -> T:
        async with limit:
            return await awaitable

    return list(await asyncio.gather(*(run(aw) for aw in awaitables)))
