"""Markdown conversion for Brut.

Markdown pages are converted to HTML once, before rendering. Raw HTML inside
Markdown is passed through untouched, and fenced code blocks with a known
language are highlighted with Pygments. Braces inside code are written as
character references, so the template pass leaves code samples alone.

Key classes:
- MarkdownConverter: Configurable Markdown to HTML adapter around mistune.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .protocols import HtmlPostprocessor

# GitHub-flavoured defaults: tables, footnotes, strikethrough, autolinks, task lists
DEFAULT_PLUGINS: tuple[str, ...] = (
    "strikethrough",
    "footnotes",
    "table",
    "url",
    "task_lists",
)


def _escape(code: str) -> str:
    return code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_braces(html: str) -> str:
    """Keep code samples literal when the page is later rendered by Jinja2."""
    return html.replace("{", "&#123;").replace("}", "&#125;")


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer that keeps raw HTML and highlights fenced code."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Info string of the fence; its first word is the language.

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return _escape_braces(
                    highlight(code, lexer, HtmlFormatter(cssclass="highlight"))
                )
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{_escape_braces(_escape(code))}</code></pre>\n"

    def codespan(self, text: str) -> str:
        return _escape_braces(super().codespan(text))


class MarkdownConverter:
    """Converts Markdown text to HTML.

    Attributes:
        plugins: mistune plugins applied while parsing, by name or callable.
        postprocessors: Callables applied in order to the produced HTML.
    """

    def __init__(
        self,
        plugins: Sequence[str | Callable[..., Any]] = DEFAULT_PLUGINS,
        postprocessors: Iterable[HtmlPostprocessor] = (),
    ):
        self.plugins = list(plugins)
        self.postprocessors = list(postprocessors)

    def convert(self, text: str) -> str:
        """Render Markdown to HTML.

        A fresh parser is built per call so conversions can run in parallel
        threads.

        Args:
            text: Markdown source, without frontmatter.

        Returns:
            Rendered HTML.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=self.plugins
        )
        html = markdown(text)
        for postprocess in self.postprocessors:
            html = postprocess(html)
        return html
