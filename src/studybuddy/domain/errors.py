"""Domain error taxonomy.

Services raise these errors; the API layer maps each one to an HTTP status
and the Python client maps HTTP statuses back to them.
"""


class StudyBuddyError(Exception):
    """Base class for all errors surfaced to callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class BadRequestError(StudyBuddyError):
    """Missing required fields or an invalid request."""

    status_code = 400
    code = "bad_request"


class UnauthorizedError(StudyBuddyError):
    """No resolvable identity, or group membership required but absent."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(StudyBuddyError):
    """Authenticated but not allowed to perform this operation."""

    status_code = 403
    code = "forbidden"


class NotFoundError(StudyBuddyError):
    """The requested entity does not exist."""

    status_code = 404
    code = "not_found"


class ConflictError(StudyBuddyError):
    """A unique key is already taken."""

    status_code = 409
    code = "conflict"


class RateLimitedError(StudyBuddyError):
    """Too many requests for this caller."""

    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str = "", retry_after: int = 60) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(StudyBuddyError):
    """A storage or AI collaborator failed."""

    status_code = 502
    code = "upstream_failure"


ERRORS_BY_STATUS: dict[int, type[StudyBuddyError]] = {
    cls.status_code: cls
    for cls in (
        BadRequestError,
        UnauthorizedError,
        ForbiddenError,
        NotFoundError,
        ConflictError,
        RateLimitedError,
        UpstreamError,
    )
}


def error_for_status(status_code: int, message: str = "") -> StudyBuddyError:
    """Build the domain error matching an HTTP status code."""
    error_cls = ERRORS_BY_STATUS.get(status_code, StudyBuddyError)
    return error_cls(message)
