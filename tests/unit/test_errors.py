"""Tests for the domain error taxonomy."""

import pytest

from studybuddy.domain.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    StudyBuddyError,
    UnauthorizedError,
    UpstreamError,
    error_for_status,
)


@pytest.mark.parametrize(
    "status_code,error_cls",
    [
        (400, BadRequestError),
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (409, ConflictError),
        (429, RateLimitedError),
        (502, UpstreamError),
    ],
)
def test_error_for_status(status_code, error_cls):
    error = error_for_status(status_code, "boom")
    assert type(error) is error_cls
    assert error.status_code == status_code
    assert error.message == "boom"


def test_unknown_status_falls_back_to_base():
    error = error_for_status(418)
    assert type(error) is StudyBuddyError
    assert error.status_code == 500


def test_default_message_is_docstring():
    assert NotFoundError().message == "The requested entity does not exist."


def test_rate_limited_keeps_retry_after():
    assert RateLimitedError("slow down", retry_after=12).retry_after == 12
