"""
FullFeed Custom Exceptions
==========================

Custom exception hierarchy for FullFeed with error codes, context
information and user-facing messages.

The content-acquisition errors map onto the failure classes the entry
processor distinguishes:

- transport failures reaching a remote site or API (``RemoteFetchError``,
  ``ScraperError``)
- malformed remote payloads (``ResponseDecodeError``)
- missing per-user remote endpoint (``RemoteEndpointNotConfiguredError``)
- owning-user lookup failures (``UserLookupError``)
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    REMOTE_ENDPOINT_MISSING = "C003"

    # Database errors (D001-D099)
    DATABASE_CONNECTION = "D001"
    DATABASE_SCHEMA = "D002"
    DATABASE_CONSTRAINT = "D003"
    DATABASE_TRANSACTION = "D004"
    DATABASE_ERROR = "D006"
    USER_LOOKUP_FAILED = "D007"

    # Content acquisition errors (F001-F099)
    FETCH_NETWORK_ERROR = "F001"
    FETCH_HTTP_STATUS = "F002"
    FETCH_DECODE_ERROR = "F003"
    FETCH_INVALID_DOCUMENT = "F004"
    FETCH_TOO_LARGE = "F005"

    # Content processing errors (P001-P099)
    CONTENT_INVALID = "P001"
    ENTRY_FEED_MISSING = "P002"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # Resource management errors (R001-R099)
    RESOURCE_NOT_FOUND = "R002"


class FullFeedError(Exception):
    """Base exception for all FullFeed errors.

    Subclasses declare their defaults as class attributes; any of them can
    still be overridden per instance through the constructor.
    """

    default_code: Optional[ErrorCode] = None
    default_user_message: Optional[str] = None
    default_recoverable: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.error_code = error_code or self.default_code
        self.context = dict(context or {})
        self.user_message = user_message or self.default_user_message or message
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for structured logs."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.error_code.value}] {message}" if self.error_code else message


def _with_context(kwargs: Dict[str, Any], **fields: Any) -> Dict[str, Any]:
    """Fold the non-empty ``fields`` into ``kwargs['context']``."""
    context = dict(kwargs.pop("context", None) or {})
    context.update({k: v for k, v in fields.items() if v is not None and v != ""})
    kwargs["context"] = context
    return kwargs


class ConfigurationError(FullFeedError):
    """Invalid or incomplete configuration."""

    default_code = ErrorCode.CONFIG_INVALID

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        kwargs.setdefault(
            "user_message", self.default_user_message or f"Configuration error: {message}"
        )
        super().__init__(message, **_with_context(kwargs, config_key=config_key))


class RemoteEndpointNotConfiguredError(ConfigurationError):
    """Remote content is enabled for a feed but its owner has no API endpoint."""

    default_code = ErrorCode.REMOTE_ENDPOINT_MISSING
    default_user_message = "No remote content API endpoint is configured for your account"

    def __init__(self, message: str, user_id: Optional[int] = None, **kwargs):
        super().__init__(
            message, config_key="remote_api_url", **_with_context(kwargs, user_id=user_id)
        )


class DatabaseError(FullFeedError):
    """Storage failures."""

    default_code = ErrorCode.DATABASE_CONNECTION
    default_user_message = "Database operation failed"
    default_recoverable = True

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, query=query))


class UserNotFoundError(DatabaseError):
    """Requested user does not exist."""

    default_code = ErrorCode.RESOURCE_NOT_FOUND
    default_user_message = "User not found"
    default_recoverable = False

    def __init__(self, user_id: int, **kwargs):
        super().__init__(f"User {user_id} not found", **_with_context(kwargs, user_id=user_id))


class UserLookupError(DatabaseError):
    """Owning user of a feed or entry could not be resolved."""

    default_code = ErrorCode.USER_LOOKUP_FAILED
    default_user_message = "Unable to load account settings"

    def __init__(self, message: str, user_id: Optional[int] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, user_id=user_id))


class ContentFetchError(FullFeedError):
    """Failure while acquiring full content for an entry."""

    default_code = ErrorCode.FETCH_NETWORK_ERROR
    default_user_message = "Unable to fetch the original content"
    default_recoverable = True

    def __init__(self, message: str, entry_url: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, entry_url=entry_url))


class RemoteFetchError(ContentFetchError):
    """Remote content API could not be reached or answered with an error."""


class ResponseDecodeError(ContentFetchError):
    """Remote content API answered with a payload that cannot be decoded."""

    default_code = ErrorCode.FETCH_DECODE_ERROR
    default_user_message = "The content API returned an invalid response"
    default_recoverable = False


class ScraperError(ContentFetchError):
    """Local scraper could not download or read the origin page."""


class ProcessingError(FullFeedError):
    """Entry enrichment could not run."""

    default_code = ErrorCode.CONTENT_INVALID
    default_user_message = "Entry processing failed"

    def __init__(self, message: str, entry_id: Optional[int] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, entry_id=entry_id))


class ValidationError(FullFeedError):
    """User-supplied value rejected."""

    default_code = ErrorCode.VALIDATION_INVALID_FORMAT

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        kwargs.setdefault("user_message", f"Invalid {field_name or 'input'}: {message}")
        super().__init__(message, **_with_context(kwargs, field_name=field_name))


# Transient failures a later batch run may succeed on
RETRYABLE_CODES = frozenset({
    ErrorCode.FETCH_NETWORK_ERROR,
    ErrorCode.FETCH_HTTP_STATUS,
    ErrorCode.DATABASE_CONNECTION,
    ErrorCode.USER_LOOKUP_FAILED,
})


def is_retryable_error(exception: FullFeedError) -> bool:
    """Check if an error is worth retrying on a later pass."""
    return exception.recoverable and exception.error_code in RETRYABLE_CODES


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, FullFeedError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
