import os.path

import pytest

from brut.scripts import BuildScriptRegistry, CallableLoader, UnknownBuildScriptError


def test_registry_register_and_resolve():
    def stars(html, frontmatter, slug):
        return html

    registry = BuildScriptRegistry({"stars": stars})
    assert registry.resolve("stars") is stars
    assert "stars" in registry
    assert len(registry) == 1
    with pytest.raises(UnknownBuildScriptError, match="nope"):
        registry.resolve("nope")
    with pytest.raises(TypeError):
        registry.register("bad", "not callable")


def test_loader_imports_module_attribute(tmp_path):
    loader = CallableLoader(tmp_path)
    assert loader.load("os.path:join") is os.path.join


def test_loader_loads_project_file(tmp_path):
    scripts = tmp_path / "scripts"
    scripts.mkdir()
    (scripts / "stars.py").write_text(
        "CALLS = []\n\n"
        "def build_page(html, frontmatter, slug):\n"
        "    CALLS.append(slug)\n"
        "    return html.replace('--STARS--', '42')\n",
        encoding="utf-8",
    )
    loader = CallableLoader(tmp_path)
    build_page = loader.load("/scripts/stars.py:build_page")
    assert build_page("<p>--STARS--</p>", {}, "/") == "<p>42</p>"
    # the file is executed only once per loader
    again = loader.load("scripts/stars.py:build_page")
    assert again is build_page


def test_loader_errors(tmp_path):
    loader = CallableLoader(tmp_path)
    with pytest.raises(ValueError):
        loader.load("no_colon_here")
    with pytest.raises(ImportError):
        loader.load("scripts/missing.py:build_page")
    with pytest.raises(AttributeError):
        loader.load("os.path:no_such_function")
    with pytest.raises(ValueError):
        loader.load("os:sep")
