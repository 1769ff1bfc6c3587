import asyncio
from pathlib import Path

from brut.utils import (
    ensure_clean_dir,
    gather_limited,
    is_markdown,
    is_page_source,
    is_xml,
    registry_name,
    walk_tree,
)


def test_walk_tree_recurses_and_returns_absolute_paths(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "top.md").write_text("x", encoding="utf-8")
    (tmp_path / "a" / "b" / "deep.html").write_text("x", encoding="utf-8")
    files = walk_tree(tmp_path)
    assert {p.name for p in files} == {"top.md", "deep.html"}
    assert all(p.is_absolute() for p in files)


def test_walk_tree_missing_directory_is_empty(tmp_path):
    assert walk_tree(tmp_path / "missing") == []


def test_extension_helpers():
    assert is_page_source(Path("a.md"))
    assert is_page_source(Path("a.HTML"))
    assert is_page_source(Path("feed.xml"))
    assert not is_page_source(Path("notes.txt"))
    assert is_markdown(Path("post.MD"))
    assert not is_markdown(Path("post.html"))
    assert is_xml(Path("feed.xml"))
    assert registry_name(Path("/t/layouts/default.html")) == "default"


def test_ensure_clean_dir(tmp_path):
    out = tmp_path / "dist"
    (out / "old").mkdir(parents=True)
    (out / "old" / "stale.html").write_text("x", encoding="utf-8")
    ensure_clean_dir(out)
    assert out.exists()
    assert list(out.iterdir()) == []
    ensure_clean_dir(tmp_path / "fresh")
    assert (tmp_path / "fresh").is_dir()


def test_gather_limited_caps_concurrency_and_keeps_order():
    active = 0
    peak = 0

    async def work(i):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return i

    async def main():
        limit = asyncio.Semaphore(3)
        return await gather_limited(limit, (work(i) for i in range(10)))

    assert asyncio.run(main()) == list(range(10))
    assert peak == 3
