from __future__ import annotations


class AppError(Exception):
    """Base application error.

    ``code`` is the stable machine-readable tag sent to clients and
    ``retryable`` tells them whether re-invoking the same call can succeed.
    """

    code = "internal_error"
    status_code = 400
    retryable = False

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class InvalidInputError(AppError):
    code = "invalid_input"


class UnauthenticatedError(AppError):
    code = "unauthenticated"
    status_code = 401


class UnauthorizedError(AppError):
    code = "unauthorized"


class ResourceInactiveError(AppError):
    code = "resource_inactive"


class ResourceConflictError(AppError):
    code = "resource_conflict"


class UpstreamUnavailableError(AppError):
    code = "upstream_unavailable"
    retryable = True
