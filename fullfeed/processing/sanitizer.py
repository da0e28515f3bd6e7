"""
HTML Sanitizer
==============

Allow-list HTML sanitizer for entry content.

This module provides:
- Removal of dangerous elements together with their content
- Unwrapping of unknown elements, keeping their text
- Attribute filtering and URL scheme validation
- Relative URL resolution against the entry URL
- Trusted video iframes, tracking pixel removal

Sanitizing is idempotent and never fails: on internal error the content is
degraded to escaped plain text.
"""

import re
import html
from typing import Dict, List, Optional, Set
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Comment, Tag
from bs4.element import CData, Declaration, Doctype, ProcessingInstruction

from ..utils.logging import get_logger_for_component


class HTMLSanitizer:
    """
    Allow-list HTML sanitizer.

    Features:
    - Removes dangerous HTML elements and attributes
    - Keeps formatting, links, images and trusted video players
    - Resolves relative links and images against the entry URL
    - Opens links in a new tab without leaking the opener
    """

    # HTML elements to completely remove (including content)
    DANGEROUS_ELEMENTS = {
        "script",
        "style",
        "embed",
        "object",
        "applet",
        "form",
        "input",
        "button",
        "select",
        "textarea",
        "meta",
        "link",
        "base",
        "noscript",
        "canvas",
        "svg",
        "math",
        "template",
        "frame",
        "frameset",
        "head",
        "title",
    }

    # HTML elements that are safe to keep
    SAFE_ELEMENTS = {
        "p",
        "br",
        "hr",
        "div",
        "span",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "strong",
        "b",
        "em",
        "i",
        "u",
        "s",
        "del",
        "ins",
        "sub",
        "sup",
        "small",
        "mark",
        "abbr",
        "cite",
        "time",
        "code",
        "kbd",
        "samp",
        "var",
        "pre",
        "blockquote",
        "q",
        "ul",
        "ol",
        "li",
        "dl",
        "dt",
        "dd",
        "table",
        "tr",
        "td",
        "th",
        "thead",
        "tbody",
        "tfoot",
        "caption",
        "figure",
        "figcaption",
        "picture",
        "a",
        "img",
        "iframe",
        "audio",
        "video",
        "source",
    }

    # Attributes to keep for specific elements
    SAFE_ATTRIBUTES: Dict[str, List[str]] = {
        "a": ["href", "title"],
        "img": ["src", "alt", "title", "width", "height"],
        "blockquote": ["cite"],
        "q": ["cite"],
        "abbr": ["title"],
        "time": ["datetime"],
        "td": ["rowspan", "colspan"],
        "th": ["rowspan", "colspan"],
        "ol": ["start"],
        "iframe": ["src", "width", "height", "frameborder", "allowfullscreen"],
        "audio": ["src", "controls"],
        "video": ["src", "poster", "controls", "width", "height"],
        "source": ["src", "type"],
    }

    URL_ATTRIBUTES = {"href", "src", "cite", "poster"}

    # Schemes accepted per URL attribute; anything else is dropped
    LINK_SCHEMES = {"http", "https", "mailto"}
    MEDIA_SCHEMES = {"http", "https"}

    TRUSTED_IFRAME_HOSTS = {
        "www.youtube.com",
        "youtube.com",
        "www.youtube-nocookie.com",
        "youtube-nocookie.com",
        "player.vimeo.com",
        "www.dailymotion.com",
        "dailymotion.com",
    }

    TRACKING_PIXEL_SIZES = {"0", "1"}

    # Patterns for cleaning text
    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)

    # URL validation patterns
    JAVASCRIPT_URL_PATTERN = re.compile(r"^\s*javascript:", re.IGNORECASE)
    DATA_URL_PATTERN = re.compile(r"^\s*data:", re.IGNORECASE)

    def __init__(self):
        self.logger = get_logger_for_component("sanitizer")
        self.parser = "html.parser"

    def sanitize(self, url: str, content: str) -> str:
        """
        Sanitize entry HTML.

        Args:
            url: Entry URL, used to resolve relative links
            content: HTML content to sanitize

        Returns:
            Safe HTML, or escaped plain text if sanitizing failed
        """
        if not content or not content.strip():
            return ""

        try:
            soup = BeautifulSoup(content, self.parser)

            self._remove_non_content_elements(soup)
            self._remove_dangerous_elements(soup)

            for element in soup.find_all(True):
                if element.decomposed:
                    continue
                self._sanitize_element(element, url)

            return str(soup)

        except Exception as e:
            self.logger.error(f"Failed to sanitize content of {url}, keeping text only: {e}")
            return html.escape(self._extract_text_fallback(content))

    def _remove_non_content_elements(self, soup: BeautifulSoup) -> None:
        """Remove comments, CDATA, doctypes and processing instructions."""
        for element in soup.find_all(
            string=lambda text: isinstance(
                text, (Comment, CData, ProcessingInstruction, Doctype, Declaration)
            )
        ):
            element.extract()

    def _remove_dangerous_elements(self, soup: BeautifulSoup) -> None:
        """Remove dangerous HTML elements completely."""
        for element in soup.find_all(self.DANGEROUS_ELEMENTS):
            if not element.decomposed:
                element.decompose()

    def _sanitize_element(self, element: Tag, base_url: str) -> None:
        element_name = element.name.lower()

        if element_name not in self.SAFE_ELEMENTS:
            element.unwrap()
            return

        self._clean_attributes(element, element_name, base_url)

        if element_name == "a":
            if "href" in element.attrs:
                element["rel"] = "noopener noreferrer"
                element["target"] = "_blank"

        elif element_name == "img":
            if "src" not in element.attrs or self._is_tracking_pixel(element):
                element.decompose()

        elif element_name == "iframe":
            if not self._is_trusted_iframe(element.get("src", "")):
                element.decompose()

    def _clean_attributes(self, element: Tag, element_name: str, base_url: str) -> None:
        """Keep safe attributes only, with valid absolute URLs."""
        safe_attrs = self.SAFE_ATTRIBUTES.get(element_name, [])

        for attr_name in list(element.attrs):
            if attr_name.lower() not in safe_attrs:
                del element[attr_name]
                continue

            if attr_name.lower() in self.URL_ATTRIBUTES:
                schemes = self.LINK_SCHEMES if element_name == "a" else self.MEDIA_SCHEMES
                resolved = self._resolve_url(element.get(attr_name, ""), base_url, schemes)
                if resolved is None:
                    del element[attr_name]
                else:
                    element[attr_name] = resolved

    def _resolve_url(self, value, base_url: str, schemes: Set[str]) -> Optional[str]:
        """Return ``value`` as an absolute URL with an allowed scheme, or None."""
        if isinstance(value, list):
            value = " ".join(value)
        value = (value or "").strip()

        if not value:
            return None
        if self.JAVASCRIPT_URL_PATTERN.match(value) or self.DATA_URL_PATTERN.match(value):
            return None

        if base_url and not urlparse(value).scheme:
            value = urljoin(base_url, value)

        if urlparse(value).scheme.lower() not in schemes:
            return None
        return value

    def _is_tracking_pixel(self, img: Tag) -> bool:
        width = str(img.get("width", "")).strip()
        height = str(img.get("height", "")).strip()
        return width in self.TRACKING_PIXEL_SIZES and height in self.TRACKING_PIXEL_SIZES

    def _is_trusted_iframe(self, src: str) -> bool:
        hostname = (urlparse(src).hostname or "").lower()
        return hostname in self.TRUSTED_IFRAME_HOSTS

    def _extract_text_fallback(self, html_content: str) -> str:
        """Fallback text extraction using regex when BeautifulSoup fails."""
        content = re.sub(
            r"<(script|style)[^>]*>.*?</\1>",
            "",
            html_content,
            flags=re.IGNORECASE | re.DOTALL,
        )
        content = re.sub(r"<[^>]+>", "", content)
        content = html.unescape(content)
        return self.WHITESPACE_PATTERN.sub(" ", content).strip()


def sanitize_html(url: str, content: str) -> str:
    """Quick function to sanitize entry HTML."""
    return HTMLSanitizer().sanitize(url, content)
