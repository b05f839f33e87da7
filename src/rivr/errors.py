"""Error taxonomy for station data access and the helpers that turn errors into UI text."""
from __future__ import annotations

from typing import Any, Optional

import requests
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="errors")


class RivrError(Exception):
    """Base class for every error raised by rivr."""

    default_code = "rivr_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.original_error = original_error

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    @property
    def is_connection_issue(self) -> bool:
        return False


class NetworkUnavailable(RivrError):
    """No connectivity, or offline mode is on."""

    default_code = "no_connection"

    def __init__(self, message: str = "No internet connection.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)

    @property
    def is_connection_issue(self) -> bool:
        return True


class NetworkTimeout(RivrError):
    """The transport gave up waiting for the remote API."""

    default_code = "timeout"

    def __init__(self, seconds: Optional[float] = None, **kwargs: Any) -> None:
        message = (
            f"Request timed out after {seconds} seconds" if seconds is not None
            else "Request timed out"
        )
        super().__init__(message, **kwargs)
        self.seconds = seconds

    @property
    def is_connection_issue(self) -> bool:
        return True


class ServerError(RivrError):
    """The remote API answered with a non-2xx status."""

    default_code = "server_error"

    def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None, **kwargs: Any) -> None:
        kwargs.setdefault("code", f"http_{status_code}" if status_code else None)
        super().__init__(message or f"HTTP Error: {status_code}", **kwargs)
        self.status_code = status_code


class ParseError(RivrError):
    """The remote API answered with something that is not a usable payload."""

    default_code = "parse_error"


class StorageError(RivrError):
    """The local store could not be read or written."""

    default_code = "storage_error"


class UnexpectedError(RivrError):
    """Anything the classifier does not recognise."""

    default_code = "unexpected_error"


class InvalidName(RivrError):
    """A display name was empty or whitespace only."""

    default_code = "invalid_name"

    def __init__(self, message: str = "Name cannot be empty.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NoOriginalName(RivrError):
    """A reset was requested but no API name was ever recorded."""

    default_code = "no_original_name"

    def __init__(self, station_id: Any = None, **kwargs: Any) -> None:
        super().__init__(f"No original API name recorded for station {station_id}", **kwargs)
        self.station_id = station_id


class FavoriteNotFound(RivrError):
    """A favorites operation named a station the user has not favorited."""

    default_code = "favorite_not_found"

    def __init__(self, user_id: Any = None, station_id: Any = None, **kwargs: Any) -> None:
        super().__init__(f"Station {station_id} is not a favorite of user '{user_id}'", **kwargs)
        self.user_id = user_id
        self.station_id = station_id


def classify_error(exc: BaseException, *, context: Optional[str] = None) -> RivrError:
    """Map a transport, validation or storage exception onto the rivr taxonomy."""
    prefix = f" [{context}]" if context else ""
    logger.debug(f"Classifying error{prefix}: {exc!r}")

    if isinstance(exc, RivrError):
        return exc

    # Timeout before ConnectionError: ConnectTimeout is both.
    if isinstance(exc, requests.exceptions.Timeout):
        return NetworkTimeout(original_error=exc)

    # A body cut off mid-transfer is a lost connection, not a bad payload.
    if isinstance(exc, (requests.exceptions.ChunkedEncodingError, requests.exceptions.ContentDecodingError)):
        return NetworkUnavailable(original_error=exc)

    if isinstance(exc, requests.exceptions.ConnectionError):
        return NetworkUnavailable(original_error=exc)

    if isinstance(exc, requests.exceptions.HTTPError):
        status = exc.response.status_code if exc.response is not None else None
        return ServerError(status_code=status, message=str(exc), original_error=exc)

    # JSONDecodeError is also a RequestException.
    if isinstance(exc, requests.exceptions.JSONDecodeError):
        return ParseError(f"Failed to parse data: {exc}", original_error=exc)

    if isinstance(exc, requests.exceptions.RequestException):
        return ServerError(message=f"Request failed: {exc}", original_error=exc)

    if isinstance(exc, ValidationError):
        return ParseError(
            f"Failed to parse data: {exc.error_count()} invalid field(s)",
            original_error=exc,
        )

    if isinstance(exc, ValueError):
        return ParseError(f"Failed to parse data: {exc}", original_error=exc)

    if isinstance(exc, SQLAlchemyError):
        return StorageError(f"Local storage failure: {exc}", original_error=exc)

    return UnexpectedError(str(exc) or "An unexpected error occurred", original_error=exc)


def user_friendly_message(exc: BaseException) -> str:
    """Return the text shown to the user for ``exc``."""
    error = classify_error(exc)

    if error.is_connection_issue:
        return "Please check your internet connection and try again."

    if isinstance(error, ServerError):
        if error.status_code == 401:
            return "Your session has expired. Please log in again."
        if error.status_code == 403:
            return "You don't have permission to access this resource."
        if error.status_code == 404:
            return "The requested resource was not found."
        if error.status_code in (500, 502, 503):
            return "Server error. Please try again later."
        if error.status_code is not None:
            return f"Network error ({error.status_code}). Please try again."
        return "Network error. Please try again."

    if isinstance(error, ParseError):
        return "There was a problem with the data. Please try again."

    if isinstance(error, FavoriteNotFound):
        return "This station is not in your favorites."

    if isinstance(error, (InvalidName, NoOriginalName)):
        return error.message

    return "Something went wrong. Please try again."


def recovery_suggestion(exc: BaseException) -> Optional[str]:
    """Return an optional hint on how the user can recover from ``exc``."""
    error = classify_error(exc)

    if error.is_connection_issue:
        return "Check your WiFi or mobile data connection and try again."

    if isinstance(error, ServerError) and (error.status_code or 0) >= 500:
        return "The river data service is having problems. Try again in a few minutes."

    if isinstance(error, ParseError):
        return "The data format might have changed. Try updating the app."

    return None
