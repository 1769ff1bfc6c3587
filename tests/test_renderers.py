from brut.renderers import DEFAULT_PLUGINS, MarkdownConverter


def test_converts_gfm_tables_and_strikethrough():
    html = MarkdownConverter().convert(
        "| a | b |\n|---|---|\n| 1 | 2 |\n\n~~gone~~\n"
    )
    assert "<table>" in html
    assert "<td>1</td>" in html
    assert "<del>gone</del>" in html


def test_footnotes():
    html = MarkdownConverter().convert("Text[^1]\n\n[^1]: The note.\n")
    assert "footnotes" in html
    assert "The note." in html


def test_raw_html_passes_through():
    html = MarkdownConverter().convert(
        '<div class="hero"><span>HTML stays</span></div>\n\nSome *text*.\n'
    )
    assert '<div class="hero"><span>HTML stays</span></div>' in html
    assert "<em>text</em>" in html


def test_fenced_code_is_highlighted():
    html = MarkdownConverter().convert("```python\nx = 1\n```\n")
    assert 'class="highlight"' in html


def test_unknown_language_falls_back_to_escaped_code():
    html = MarkdownConverter().convert("```nosuchlang\n<x>\n```\n")
    assert '<pre><code class="language-nosuchlang">&lt;x&gt;' in html


def test_plain_fence_is_escaped():
    html = MarkdownConverter().convert("```\na < b\n```\n")
    assert "<pre><code>a &lt; b" in html


def test_postprocessors_run_in_order():
    converter = MarkdownConverter(
        postprocessors=[
            lambda html: html.replace("Hello", "Howdy"),
            lambda html: html + "<!-- done -->",
        ]
    )
    html = converter.convert("Hello\n")
    assert html == "<p>Howdy</p>\n<!-- done -->"


def test_plugins_are_configurable():
    table = "| a | b |\n|---|---|\n| 1 | 2 |\n"
    assert "<table>" not in MarkdownConverter(plugins=[]).convert(table)
    assert "table" in DEFAULT_PLUGINS


def test_braces_in_code_are_written_as_references():
    converter = MarkdownConverter()

    block = converter.convert("```\necho ${#arr[@]}\n```\n")
    assert "<pre><code>echo $&#123;#arr[@]&#125;" in block

    span = converter.convert("Use `{{ msg }}` in the template.\n")
    assert "<code>&#123;&#123; msg &#125;&#125;</code>" in span

    highlighted = converter.convert("```python\nd = {}\n```\n")
    assert "{" not in highlighted
    assert "&#123;" in highlighted


def test_braces_in_prose_are_kept():
    assert MarkdownConverter().convert("Hi {{ page.slug }}\n") == "<p>Hi {{ page.slug }}</p>\n"
