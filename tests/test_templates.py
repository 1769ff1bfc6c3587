import asyncio
import logging
from pathlib import Path

import pytest

from brut.content import Page
from brut.templates import (
    DuplicateNameError,
    TemplateEngine,
    TemplateNotFoundError,
    load_registry,
)


def make_page(content: str, **frontmatter) -> Page:
    return Page(
        path=Path("/site/pages/hello.md"),
        slug="/hello/",
        frontmatter=frontmatter,
        content=content,
    )


def test_load_registry_keys_by_basename(tmp_path):
    templates = tmp_path / "templates"
    (templates / "blog").mkdir(parents=True)
    (templates / "default.html").write_text("D", encoding="utf-8")
    (templates / "blog" / "post.html").write_text("P", encoding="utf-8")
    registry = asyncio.run(load_registry(templates))
    assert registry == {"default": "D", "post": "P"}


def test_load_registry_missing_directory(tmp_path):
    assert asyncio.run(load_registry(tmp_path / "partials", "partial")) == {}


def test_load_registry_duplicate_names_warn(tmp_path, caplog):
    partials = tmp_path / "partials"
    (partials / "a").mkdir(parents=True)
    (partials / "b").mkdir()
    (partials / "a" / "nav.html").write_text("A", encoding="utf-8")
    (partials / "b" / "nav.html").write_text("B", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="brut.templates"):
        registry = asyncio.run(load_registry(partials, "partial"))
    assert registry == {"nav": "B"}
    assert "Duplicate partial name 'nav'" in caplog.text

    with pytest.raises(DuplicateNameError) as excinfo:
        asyncio.run(load_registry(partials, "partial", fail_on_duplicates=True))
    assert excinfo.value.source_path == partials / "b" / "nav.html"


def test_render_with_template_content_and_partials():
    engine = TemplateEngine(
        templates={
            "default": "<title>{{ page.frontmatter.title }}</title>"
            "{% include 'nav' %}<main>{% include 'content' %}</main>"
        },
        partials={"nav": "<nav>{{ context.site }}</nav>"},
    )
    page = make_page("<p>Hi</p>", title="Hello", template="default")
    rendered = engine.render_page(page, {"site": "Brut"})
    assert rendered == "<title>Hello</title><nav>Brut</nav><main><p>Hi</p></main>"


def test_self_templating_page():
    engine = TemplateEngine({}, {"footer": "<footer>bye</footer>"})
    page = make_page(
        "<ul>{% for p in context.posts %}<li>{{ p.slug }}</li>{% endfor %}</ul>"
        "{% include 'footer' %}"
    )
    others = [Page(path=Path("/site/pages/posts/a.md"), slug="/posts/a/")]
    rendered = engine.render_page(page, {"posts": others})
    assert rendered == "<ul><li>/posts/a/</li></ul><footer>bye</footer>"


def test_variables_are_escaped_but_content_is_not():
    engine = TemplateEngine({"t": "{{ page.frontmatter.title }}|{% include 'content' %}"}, {})
    page = make_page("<em>body</em>", title="<b>x</b>", template="t")
    assert engine.render_page(page, {}) == "&lt;b&gt;x&lt;/b&gt;|<em>body</em>"


def test_content_partial_is_per_page():
    engine = TemplateEngine({"t": "[{% include 'content' %}]"}, {})
    first = engine.render_page(make_page("one", template="t"), {})
    second = engine.render_page(make_page("two", template="t"), {})
    assert (first, second) == ("[one]", "[two]")


def test_unknown_template_raises():
    engine = TemplateEngine({}, {})
    with pytest.raises(TemplateNotFoundError, match="missing"):
        engine.render_page(make_page("x", template="missing"), {})
