import pytest
import requests
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import OperationalError

from rivr import errors


class _Strict(BaseModel):
    value: int


def _validation_error() -> ValidationError:
    try:
        _Strict.model_validate({"value": "nope"})
    except ValidationError as exc:
        return exc
    raise AssertionError("expected a validation error")


def _http_error(status: int) -> requests.exceptions.HTTPError:
    response = requests.Response()
    response.status_code = status
    return requests.exceptions.HTTPError(f"{status} Error", response=response)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (requests.exceptions.ConnectTimeout("slow"), errors.NetworkTimeout),
        (requests.exceptions.ReadTimeout("slow"), errors.NetworkTimeout),
        (requests.exceptions.ConnectionError("dns"), errors.NetworkUnavailable),
        (requests.exceptions.ChunkedEncodingError("connection broken"), errors.NetworkUnavailable),
        (requests.exceptions.ContentDecodingError("bad gzip"), errors.NetworkUnavailable),
        (_http_error(502), errors.ServerError),
        (requests.exceptions.TooManyRedirects("loop"), errors.ServerError),
        (requests.exceptions.InvalidURL("nope"), errors.ServerError),
        (requests.exceptions.JSONDecodeError("Expecting value", "", 0), errors.ParseError),
        (_validation_error(), errors.ParseError),
        (ValueError("bad json"), errors.ParseError),
        (OperationalError("SELECT 1", {}, Exception("locked")), errors.StorageError),
        (RuntimeError("boom"), errors.UnexpectedError),
    ],
)
def test_classify_error(exc, expected):
    classified = errors.classify_error(exc)
    assert isinstance(classified, expected)
    assert classified.original_error is exc


def test_classify_error_passes_rivr_errors_through():
    original = errors.InvalidName()
    assert errors.classify_error(original) is original


def test_favorite_not_found_is_a_rivr_error():
    err = errors.FavoriteNotFound("u1", 9)
    assert isinstance(err, errors.RivrError)
    assert err.code == "favorite_not_found"
    assert (err.user_id, err.station_id) == ("u1", 9)
    assert errors.user_friendly_message(err) == "This station is not in your favorites."
    assert errors.recovery_suggestion(err) is None


def test_server_error_code_and_str():
    err = errors.ServerError(status_code=404)
    assert err.code == "http_404"
    assert str(err) == "http_404: HTTP Error: 404"
    assert errors.ServerError().code == "server_error"


@pytest.mark.parametrize(
    "status, message",
    [
        (401, "Your session has expired. Please log in again."),
        (403, "You don't have permission to access this resource."),
        (404, "The requested resource was not found."),
        (500, "Server error. Please try again later."),
        (503, "Server error. Please try again later."),
        (418, "Network error (418). Please try again."),
        (None, "Network error. Please try again."),
    ],
)
def test_user_friendly_message_for_server_errors(status, message):
    assert errors.user_friendly_message(errors.ServerError(status_code=status)) == message


def test_user_friendly_message_for_other_errors():
    connection = "Please check your internet connection and try again."
    assert errors.user_friendly_message(errors.NetworkUnavailable()) == connection
    assert errors.user_friendly_message(errors.NetworkTimeout(5)) == connection
    assert errors.user_friendly_message(requests.exceptions.ConnectionError()) == connection
    assert errors.user_friendly_message(errors.ParseError("x")) == (
        "There was a problem with the data. Please try again."
    )
    assert errors.user_friendly_message(errors.InvalidName()) == "Name cannot be empty."
    assert errors.user_friendly_message(KeyError("x")) == "Something went wrong. Please try again."


def test_recovery_suggestion():
    assert errors.recovery_suggestion(errors.NetworkTimeout()) == (
        "Check your WiFi or mobile data connection and try again."
    )
    assert errors.recovery_suggestion(errors.ServerError(status_code=503)) == (
        "The river data service is having problems. Try again in a few minutes."
    )
    assert errors.recovery_suggestion(errors.ParseError("x")) == (
        "The data format might have changed. Try updating the app."
    )
    assert errors.recovery_suggestion(errors.ServerError(status_code=404)) is None
    assert errors.recovery_suggestion(errors.InvalidName()) is None
