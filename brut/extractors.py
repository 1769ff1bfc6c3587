"""Frontmatter extraction for Brut.

A page may start with a metadata block delimited either by ``---`` lines or by
an HTML comment (``<!--`` / ``-->``), each delimiter on its own line. The
block body is YAML and must describe a mapping.

Key functions:
- extract_frontmatter: Split raw file text into a frontmatter dict and the body.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

FRONTMATTER_RE = re.compile(
    r"\A(?:(?P<dashes>---)|<!--)(?:\r?\n|\r)"
    r"(?:(?P<body>.*?)(?:\r?\n|\r))?"
    r"(?(dashes)---|-->)(?:\r?\n|\r|\Z)",
    re.DOTALL,
)


class FrontmatterError(ValueError):
    """Raised when a frontmatter block is present but is not a YAML mapping."""


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract the leading frontmatter block from file content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Text without a block
        yields an empty dict and the text unchanged.

    Raises:
        FrontmatterError: If the block body is not valid YAML or is not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    body = match.group("body")
    try:
        data = yaml.safe_load(body) if body else None
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid frontmatter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Frontmatter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]
