"""
Content Scraper
===============

Downloads the original web page of an entry and extracts its main content.

Extraction rules are comma-separated CSS selectors, configured per feed or
predefined per website. Without usable rules, readability picks the main
content block.
"""

from typing import Dict, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable
from soupsieve import SelectorSyntaxError

from ..config.settings import FullFeedSettings, get_settings
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator, validate_user_agent
from ..utils.exceptions import ErrorCode, ScraperError, ValidationError


# Extraction rules for websites whose layout defeats readability
PREDEFINED_SCRAPER_RULES: Dict[str, str] = {
    "arstechnica.com": "div.article-content",
    "lemonde.fr": "div#articleBody",
    "lesjoiesducode.fr": ".blog-post-content img",
    "opensource.com": "div[property='schema:text']",
    "phoronix.com": "div.content",
    "theregister.co.uk": "#body",
    "wired.com": "main figure, article",
}


class ContentScraper:
    """Local full-content extractor."""

    MIN_CONTENT_CHARS = 25
    CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        settings: Optional[FullFeedSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the scraper.

        Args:
            settings: Application settings (default: global settings)
            session: HTTP session to use (default: a new ``requests.Session``)
        """
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.logger = get_logger_for_component("scraper")
        self.parser = "html.parser"

    def fetch(self, url: str, rules: str = "", user_agent: str = "") -> str:
        """Download ``url`` and extract its main content.

        Args:
            url: Page URL
            rules: Comma-separated CSS selectors, empty for predefined rules or readability
            user_agent: User agent to send, empty for the configured default

        Returns:
            Extracted HTML, or an empty string when nothing was found

        Raises:
            ScraperError: If the page cannot be downloaded or is not HTML
        """
        try:
            url = URLValidator.validate_entry_url(
                url, allow_private_hosts=self.settings.scraper.allow_private_hosts
            )
            user_agent = validate_user_agent(user_agent)
        except ValidationError as e:
            raise ScraperError(
                f"scraper: refusing to fetch {url}: {e}",
                entry_url=url,
                error_code=ErrorCode.FETCH_INVALID_DOCUMENT,
                recoverable=False,
            ) from e

        headers = {
            "User-Agent": user_agent or self.settings.scraper.default_user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        }

        self.logger.debug(f"Scraping {url}")

        try:
            response = self.session.get(
                url,
                headers=headers,
                timeout=self.settings.limits.request_timeout,
                stream=True,
            )
        except requests.RequestException as e:
            raise ScraperError(f"scraper: unable to fetch {url}: {e}", entry_url=url) from e

        try:
            body = self._read_body(response, url)
        finally:
            response.close()

        content_type = response.headers.get("Content-Type", "")
        encoding = response.encoding if "charset" in content_type.lower() else None
        soup = BeautifulSoup(body, self.parser, from_encoding=encoding)

        rules = (rules or "").strip() or self.get_predefined_rules(url)
        content = None
        if rules:
            content = self._extract_with_rules(soup, rules, url)
        if content is None:
            content = self._extract_readable(soup, url)

        self.logger.debug(f"Scraped {len(content)} chars from {url}")
        return content

    def _read_body(self, response: requests.Response, url: str) -> bytes:
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise ScraperError(
                f"scraper: unable to fetch {url}: {e}",
                entry_url=url,
                error_code=ErrorCode.FETCH_HTTP_STATUS,
                context={"status_code": response.status_code},
            ) from e

        content_type = response.headers.get("Content-Type", "")
        if "html" not in content_type.lower():
            raise ScraperError(
                f"scraper: {url} is not an HTML document ({content_type or 'no content type'})",
                entry_url=url,
                error_code=ErrorCode.FETCH_INVALID_DOCUMENT,
                recoverable=False,
            )

        max_size = self.settings.scraper.max_body_size
        chunks = []
        size = 0
        try:
            for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                size += len(chunk)
                if size > max_size:
                    raise ScraperError(
                        f"scraper: {url} is larger than {max_size} bytes",
                        entry_url=url,
                        error_code=ErrorCode.FETCH_TOO_LARGE,
                        recoverable=False,
                    )
                chunks.append(chunk)
        except requests.RequestException as e:
            raise ScraperError(f"scraper: unable to read {url}: {e}", entry_url=url) from e

        return b"".join(chunks)

    @staticmethod
    def get_predefined_rules(url: str) -> str:
        """Return the predefined extraction rules for the website of ``url``."""
        hostname = (urlparse(url).hostname or "").lower()
        for domain, rules in PREDEFINED_SCRAPER_RULES.items():
            if hostname == domain or hostname.endswith("." + domain):
                return rules
        return ""

    def _extract_with_rules(self, soup: BeautifulSoup, rules: str, url: str) -> Optional[str]:
        """Concatenate the elements matching ``rules``; None if the rules are unusable."""
        try:
            matches = soup.select(rules)
        except SelectorSyntaxError as e:
            self.logger.warning(f"Invalid scraper rules {rules!r} for {url}: {e}")
            return None

        return "".join(str(element) for element in matches)

    def _extract_readable(self, soup: BeautifulSoup, url: str) -> str:
        """Run readability over the page and return its article HTML."""
        try:
            summary = Document(str(soup), url=url).summary(html_partial=True)
        except Unparseable as e:
            self.logger.warning(f"Readability could not parse {url}: {e}")
            return ""

        text = BeautifulSoup(summary, self.parser).get_text(strip=True)
        if len(text) < self.MIN_CONTENT_CHARS:
            return ""
        return summary


def scrape_content(url: str, rules: str = "", user_agent: str = "") -> str:
    """Quick function to scrape the main content of a page."""
    return ContentScraper().fetch(url, rules, user_agent)
