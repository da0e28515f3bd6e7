"""
FullFeed Input Validators
=========================

URL and configuration validation for entry URLs, remote content API
endpoints, and user agents.
"""

import ipaddress
from urllib.parse import urlparse, urlunparse
from typing import Optional

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    ALLOWED_SCHEMES = {'http', 'https'}

    # Names the local scraper refuses to contact besides private IP literals
    LOCAL_HOSTNAMES = {"localhost", "localhost.localdomain"}

    @classmethod
    def _parse(cls, url: str, field_name: str):
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name=field_name
            )

        try:
            parsed = urlparse(url.strip())
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name=field_name
            ) from e

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be {' or '.join(sorted(cls.ALLOWED_SCHEMES))}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name=field_name
            )

        if not parsed.netloc or not parsed.hostname:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name=field_name
            )

        return parsed

    @classmethod
    def validate_entry_url(cls, url: str, allow_private_hosts: bool = False) -> str:
        """Validate the URL of an entry before the scraper downloads it.

        Args:
            url: Entry URL to validate
            allow_private_hosts: Permit loopback and private network hosts

        Returns:
            URL with scheme and host lowercased and the fragment removed

        Raises:
            ValidationError: If URL is invalid
        """
        parsed = cls._parse(url, "url")

        if not allow_private_hosts and cls.is_private_host(parsed.hostname):
            raise ValidationError(
                f"Refusing to fetch private host {parsed.hostname}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        return urlunparse(parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            fragment=''
        ))

    @classmethod
    def validate_endpoint_url(cls, url: str) -> str:
        """Validate a remote content API endpoint.

        Self-hosted parsers commonly run on localhost, so private hosts are
        accepted here.

        Raises:
            ValidationError: If URL is invalid
        """
        parsed = cls._parse(url, "remote_api_url")
        return urlunparse(parsed._replace(scheme=parsed.scheme.lower(), fragment=''))

    @classmethod
    def is_private_host(cls, hostname: Optional[str]) -> bool:
        """Check whether a hostname points at a loopback or private network."""
        if not hostname:
            return False
        hostname = hostname.lower().strip("[]")
        if hostname in cls.LOCAL_HOSTNAMES or hostname.endswith(".localhost"):
            return True
        try:
            address = ipaddress.ip_address(hostname)
        except ValueError:
            return False
        return address.is_private or address.is_loopback or address.is_link_local


def validate_url(url: str) -> bool:
    """
    Quick validation function for entry URLs.

    Args:
        url: URL to validate

    Returns:
        True if URL is valid, False otherwise
    """
    try:
        URLValidator.validate_entry_url(url)
        return True
    except ValidationError:
        return False


def validate_user_agent(user_agent: Optional[str]) -> str:
    """Normalize a feed user agent, rejecting header injection attempts.

    Returns:
        Stripped user agent, empty string when none is set

    Raises:
        ValidationError: If the value contains line breaks
    """
    if not user_agent:
        return ""

    if "\r" in user_agent or "\n" in user_agent:
        raise ValidationError(
            "User agent must not contain line breaks",
            field_name="user_agent"
        )

    return user_agent.strip()
