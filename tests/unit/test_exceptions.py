"""Unit tests for structured exceptions."""

import json

import pytest

from spellbook.exceptions import (
    BadResponseError,
    BadResponseTypeError,
    ConfigurationError,
    HTTPClientError,
    RequestBuildError,
    SpellbookError,
)


def test_base_error_defaults():
    error = SpellbookError("something happened")
    assert error.code == "SpellbookError"
    assert error.details == {}
    assert str(error) == "something happened"


def test_to_dict_and_json():
    error = ConfigurationError("bad value", setting="log_min_level")
    expected = {
        "error": "CONFIGURATION_ERROR",
        "message": "bad value",
        "details": {"setting": "log_min_level"},
    }
    assert error.to_dict() == expected
    assert json.loads(error.to_json()) == expected


@pytest.mark.parametrize(
    "error, code",
    [
        (RequestBuildError(ValueError("x")), "REQUEST_BUILD_ERROR"),
        (BadResponseTypeError(object()), "BAD_RESPONSE_TYPE"),
        (BadResponseError(ValueError("x")), "BAD_RESPONSE"),
    ],
)
def test_http_errors_share_base(error, code):
    assert isinstance(error, HTTPClientError)
    assert isinstance(error, SpellbookError)
    assert error.code == code
    json.loads(error.to_json())


def test_wrapped_error_details():
    cause = ValueError("invalid literal")
    error = BadResponseError(cause)
    assert error.underlying_error is cause
    assert error.details == {
        "underlying_error": "invalid literal",
        "error_type": "ValueError",
    }
    assert "invalid literal" in error.message
