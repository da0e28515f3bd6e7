"""
Remote Content Fetcher
======================

Fetches the full content of an entry through a remote content API
(a Mercury-style parser): ``GET <endpoint>?url=<entry url>`` answering with
``{title, author, date_published, content, url}``. Only ``content`` is used.

One request per call. No retries and no caching; callers avoid redundant
fetches themselves.
"""

from typing import Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from ..config.settings import FullFeedSettings, get_settings
from ..database.models import RemoteContentResponse
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ErrorCode, RemoteFetchError, ResponseDecodeError


class RemoteContentFetcher:
    """Client for a remote content extraction API."""

    def __init__(
        self,
        settings: Optional[FullFeedSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the fetcher.

        Args:
            settings: Application settings (default: global settings)
            session: HTTP session to use (default: a new ``requests.Session``)
        """
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": f"{self.settings.app_name}/{self.settings.version}",
                "Accept": "application/json",
            }
        )
        self.logger = get_logger_for_component("remote_content")

    def fetch(self, entry_url: str, api_url: str) -> str:
        """Fetch the full content of ``entry_url`` from the API at ``api_url``.

        Args:
            entry_url: URL of the entry to extract
            api_url: Remote content API endpoint

        Returns:
            Extracted content, or an empty string when the API found none

        Raises:
            RemoteFetchError: If the API cannot be reached or answers non-2xx
            ResponseDecodeError: If the response is not a valid JSON object
        """
        params = {self.settings.remote_content.url_parameter: entry_url}

        try:
            response = self.session.get(
                api_url,
                params=params,
                timeout=self.settings.limits.request_timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            raise RemoteFetchError(
                f"remote content: unable to fetch {entry_url}: {e}",
                entry_url=entry_url,
                error_code=ErrorCode.FETCH_HTTP_STATUS,
                context={"api_url": api_url, "status_code": e.response.status_code if e.response is not None else None},
            ) from e
        except requests.RequestException as e:
            raise RemoteFetchError(
                f"remote content: unable to fetch {entry_url}: {e}",
                entry_url=entry_url,
                context={"api_url": api_url},
            ) from e

        payload = self._decode(response, entry_url)

        content = payload.content or ""
        self.logger.debug(
            f"Remote content API returned {len(content)} chars for {entry_url}"
        )
        return content

    def _decode(self, response: requests.Response, entry_url: str) -> RemoteContentResponse:
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"remote content: unable to decode response for {entry_url}: {e}",
                entry_url=entry_url,
            ) from e

        if not isinstance(data, dict):
            raise ResponseDecodeError(
                f"remote content: unable to decode response for {entry_url}: "
                f"expected a JSON object, got {type(data).__name__}",
                entry_url=entry_url,
            )

        try:
            return RemoteContentResponse.model_validate(data)
        except PydanticValidationError as e:
            raise ResponseDecodeError(
                f"remote content: unable to decode response for {entry_url}: {e}",
                entry_url=entry_url,
            ) from e


def fetch_remote_content(entry_url: str, api_url: str) -> str:
    """Quick function to fetch an entry's content from a remote content API."""
    return RemoteContentFetcher().fetch(entry_url, api_url)
