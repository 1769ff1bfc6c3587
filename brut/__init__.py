"""Brut static site builder.

This package turns a tree of Markdown, HTML and XML pages with YAML frontmatter
into a tree of minified HTML files with pretty URLs. Pages are wrapped in Jinja2
templates, may include named partials, and can be post-processed by registered
build scripts.

The main entry point is the CLI module (``brut build``). Library users call
:func:`brut.build.build_site` with a :class:`brut.config.BuildConfig`.

Pipeline phases:
- Load pages, templates and partials concurrently.
- Convert Markdown pages to HTML.
- Build the shared context (collections) once.
- Render and write every page concurrently.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
