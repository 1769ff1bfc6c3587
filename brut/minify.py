"""HTML minification for Brut.

Thin adapter over minify-html. Whitespace collapsing and boolean attribute
shortening are always applied; the remaining behaviour is driven by
MinifyOptions.
"""

from __future__ import annotations

from dataclasses import dataclass

import minify_html


@dataclass(frozen=True)
class MinifyOptions:
    """Switches for HTML minification.

    Attributes:
        remove_comments: Strip HTML comments.
        remove_optional_tags: Drop optional closing tags and the ``<html>`` and
            ``<head>`` opening tags.
        minify_js: Minify inline ``<script>`` contents.
        minify_css: Minify inline ``<style>`` contents and style attributes.
    """

    remove_comments: bool = True
    remove_optional_tags: bool = True
    minify_js: bool = True
    minify_css: bool = True


def minify(html: str, options: MinifyOptions | None = None) -> str:
    """Minify an HTML document or fragment.

    Args:
        html: HTML to minify.
        options: Minification switches; defaults to MinifyOptions().

    Returns:
        Minified HTML.
    """
    options = options or MinifyOptions()
    return minify_html.minify(
        html,
        keep_comments=not options.remove_comments,
        keep_closing_tags=not options.remove_optional_tags,
        keep_html_and_head_opening_tags=not options.remove_optional_tags,
        minify_js=options.minify_js,
        minify_css=options.minify_css,
    )
