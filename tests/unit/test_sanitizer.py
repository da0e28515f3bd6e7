"""
Tests for HTML Sanitizer
========================

Allow-list sanitizing of entry content.
"""

import pytest
from unittest.mock import patch

from fullfeed.processing.sanitizer import HTMLSanitizer, sanitize_html


URL = "http://site.example/posts/a"


@pytest.fixture
def sanitizer():
    return HTMLSanitizer()


class TestHTMLSanitizer:
    """Test HTMLSanitizer.sanitize."""

    def test_safe_markup_is_unchanged(self, sanitizer):
        assert sanitizer.sanitize(URL, "<p>hi</p>") == "<p>hi</p>"

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_empty_content(self, sanitizer, content):
        assert sanitizer.sanitize(URL, content) == ""

    def test_plain_text_is_unchanged(self, sanitizer):
        assert sanitizer.sanitize(URL, "just text") == "just text"

    @pytest.mark.parametrize("markup", [
        "<script>alert(1)</script>",
        "<style>p { color: red }</style>",
        '<object data="x.swf"><param name="a"></object>',
        '<form action="/x"><input name="q"></form>',
        "<noscript>enable js</noscript>",
        "<svg><circle r='1'/></svg>",
    ])
    def test_dangerous_elements_removed_with_content(self, sanitizer, markup):
        assert sanitizer.sanitize(URL, f"<p>keep</p>{markup}") == "<p>keep</p>"

    def test_unknown_elements_are_unwrapped(self, sanitizer):
        result = sanitizer.sanitize(URL, "<section><p>a <font color='red'>b</font></p></section>")
        assert result == "<p>a b</p>"

    def test_comments_and_doctype_removed(self, sanitizer):
        result = sanitizer.sanitize(URL, "<!DOCTYPE html><!-- hidden --><p>x</p>")
        assert result == "<p>x</p>"

    def test_event_handlers_and_styles_removed(self, sanitizer):
        result = sanitizer.sanitize(
            URL, '<p onclick="steal()" style="color:red" class="lead" id="p1">x</p>'
        )
        assert result == "<p>x</p>"

    def test_links_open_safely(self, sanitizer):
        result = sanitizer.sanitize(URL, '<a href="https://other.example/" onclick="x()">go</a>')
        assert result == (
            '<a href="https://other.example/" rel="noopener noreferrer" target="_blank">go</a>'
        )

    def test_relative_urls_resolved(self, sanitizer):
        result = sanitizer.sanitize(URL, '<a href="../b">b</a><img src="/img/c.png">')

        assert 'href="http://site.example/b"' in result
        assert 'src="http://site.example/img/c.png"' in result

    @pytest.mark.parametrize("href", [
        "javascript:alert(1)",
        "  JavaScript:alert(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
        "vbscript:msgbox(1)",
        "ftp://files.example/x",
    ])
    def test_unsafe_link_schemes_removed(self, sanitizer, href):
        result = sanitizer.sanitize(URL, f'<a href="{href}">x</a>')
        assert result == "<a>x</a>"

    def test_mailto_links_kept(self, sanitizer):
        result = sanitizer.sanitize(URL, '<a href="mailto:me@example.com">mail</a>')
        assert 'href="mailto:me@example.com"' in result

    @pytest.mark.parametrize("src", ["data:image/png;base64,AAAA", "javascript:x()", "mailto:a@b"])
    def test_images_with_unsafe_sources_removed(self, sanitizer, src):
        assert sanitizer.sanitize(URL, f'<p>a<img src="{src}"></p>') == "<p>a</p>"

    def test_images_keep_safe_attributes(self, sanitizer):
        result = sanitizer.sanitize(
            URL, '<img src="http://cdn.example/a.jpg" alt="A" width="640" loading="lazy">'
        )
        assert result == '<img src="http://cdn.example/a.jpg" alt="A" width="640"/>'

    @pytest.mark.parametrize("size", [("1", "1"), ("0", "0"), ("1", "0")])
    def test_tracking_pixels_removed(self, sanitizer, size):
        width, height = size
        content = f'<p>text<img src="http://t.example/p.gif" width="{width}" height="{height}"></p>'
        assert sanitizer.sanitize(URL, content) == "<p>text</p>"

    def test_trusted_iframes_kept(self, sanitizer):
        content = (
            '<iframe src="https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ" '
            'width="650" height="350" frameborder="0" allowfullscreen onload="x()"></iframe>'
        )

        result = sanitizer.sanitize(URL, content)

        assert result == (
            '<iframe src="https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ" '
            'width="650" height="350" frameborder="0" allowfullscreen=""></iframe>'
        )

    @pytest.mark.parametrize("src", [
        "https://evil.example/embed",
        "javascript:alert(1)",
        "https://www.youtube.com.evil.example/embed/x",
        "",
    ])
    def test_untrusted_iframes_removed(self, sanitizer, src):
        content = f'<p>a</p><iframe src="{src}"><p>inner</p></iframe>'
        assert sanitizer.sanitize(URL, content) == "<p>a</p>"

    def test_figure_and_caption_kept(self, sanitizer):
        content = (
            '<figure><img src="http://site.example/c.png" title="T"/>'
            '<figcaption><p>T</p></figcaption></figure>'
        )
        assert sanitizer.sanitize(URL, content) == content

    def test_entities_preserved(self, sanitizer):
        assert sanitizer.sanitize(URL, "<p>a &amp; b &lt;c&gt;</p>") == "<p>a &amp; b &lt;c&gt;</p>"

    @pytest.mark.parametrize("content", [
        "<p>hi</p>",
        '<a href="/x" rel="nofollow">x</a>',
        '<div><section><img src="a.png" width="10"></section><script>1</script></div>',
        '<iframe src="https://player.vimeo.com/video/1" allowfullscreen></iframe>',
        "<ul><li>one<li>two</ul><br>",
        "a < b & c",
    ])
    def test_idempotent(self, sanitizer, content):
        once = sanitizer.sanitize(URL, content)
        assert sanitizer.sanitize(URL, once) == once

    def test_failure_degrades_to_escaped_text(self, sanitizer):
        content = '<p>Tom &amp; <b>Jerry</b></p><script>alert("x")</script>'

        with patch.object(sanitizer, "_sanitize_element", side_effect=RuntimeError("broken")):
            result = sanitizer.sanitize(URL, content)

        assert result == "Tom &amp; Jerry"
        assert "<" not in result

    def test_convenience_function(self):
        assert sanitize_html(URL, "<p onclick='x'>hi</p>") == "<p>hi</p>"
