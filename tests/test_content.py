import asyncio
from pathlib import Path

import pytest

from brut.content import Page, PageLoader, PageLoadError, derive_slug

PAGES = Path("/site/pages")


def test_derive_slug_from_path():
    assert derive_slug(PAGES / "index.html", PAGES, {}) == "/"
    assert derive_slug(PAGES / "index.md", PAGES, {}) == "/"
    assert derive_slug(PAGES / "about.html", PAGES, {}) == "/about/"
    assert derive_slug(PAGES / "posts" / "hello.md", PAGES, {}) == "/posts/hello/"
    assert derive_slug(PAGES / "posts" / "index.md", PAGES, {}) == "/posts/"
    assert derive_slug(PAGES / "a" / "b" / "c.xml", PAGES, {}) == "/a/b/c/"


def test_permalink_overrides_path():
    assert derive_slug(PAGES / "posts" / "x.md", PAGES, {"permalink": "/custom/"}) == "/custom/"
    assert derive_slug(PAGES / "feed.xml", PAGES, {"permalink": "/feed.xml"}) == "/feed.xml"
    # empty permalink falls back to the path
    assert derive_slug(PAGES / "x.md", PAGES, {"permalink": ""}) == "/x/"


def test_slug_is_deterministic():
    fm = {"title": "Same"}
    assert derive_slug(PAGES / "posts" / "a.md", PAGES, fm) == derive_slug(
        PAGES / "posts" / "a.md", PAGES, dict(fm)
    )


def create_pages(tmp_path: Path) -> Path:
    pages = tmp_path / "pages"
    (pages / "posts").mkdir(parents=True)
    (pages / "index.html").write_text(
        "<!--\ntitle: Home\n-->\n<h1>Home</h1>", encoding="utf-8"
    )
    (pages / "posts" / "hello.md").write_text(
        "---\ntitle: Hello\npublished_date: 2024-01-01\n---\n# Hello\n", encoding="utf-8"
    )
    (pages / "feed.xml").write_text(
        "---\npermalink: /feed.xml\n---\n<rss></rss>", encoding="utf-8"
    )
    (pages / "notes.txt").write_text("ignored", encoding="utf-8")
    return pages


def test_loader_builds_pages(tmp_path):
    pages_dir = create_pages(tmp_path)
    pages = asyncio.run(PageLoader(pages_dir).load())
    by_slug = {p.slug: p for p in pages}
    assert set(by_slug) == {"/", "/posts/hello/", "/feed.xml"}

    home = by_slug["/"]
    assert home.frontmatter == {"title": "Home"}
    assert home.content == "<h1>Home</h1>"
    assert home.source_type == "html"
    assert home.path == pages_dir / "index.html"

    post = by_slug["/posts/hello/"]
    assert post.content == "# Hello\n"
    assert post.source_type == "markdown"
    assert by_slug["/feed.xml"].source_type == "xml"


def test_loader_missing_directory(tmp_path):
    assert asyncio.run(PageLoader(tmp_path / "nope").load()) == []


def test_loader_fails_on_malformed_frontmatter(tmp_path):
    pages_dir = create_pages(tmp_path)
    bad = pages_dir / "bad.md"
    bad.write_text("---\ntitle: [oops\n---\nbody", encoding="utf-8")
    with pytest.raises(PageLoadError) as excinfo:
        asyncio.run(PageLoader(pages_dir).load())
    assert excinfo.value.source_path == bad


def test_page_defaults():
    page = Page(path=Path("/p/a.md"), slug="/a/")
    assert page.frontmatter == {}
    assert page.content == ""
