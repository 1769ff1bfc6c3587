from brut.minify import MinifyOptions, minify


def test_minify_removes_comments_and_whitespace():
    html = "<div>\n    <p>Hello</p>\n    <!-- note -->\n</div>\n"
    out = minify(html)
    assert "Hello" in out
    assert "note" not in out
    assert len(out) < len(html)


def test_minify_keeps_comments_when_asked():
    out = minify("<p>Hi</p><!-- keep -->", MinifyOptions(remove_comments=False))
    assert "<!-- keep -->" in out


def test_minify_can_keep_closing_tags():
    out = minify("<ul><li>a</li><li>b</li></ul>", MinifyOptions(remove_optional_tags=False))
    assert "<li>a</li><li>b</li>" in out


def test_minify_is_deterministic():
    html = "<html><head><title>x</title></head><body><p>a   b</p></body></html>"
    assert minify(html) == minify(html)
