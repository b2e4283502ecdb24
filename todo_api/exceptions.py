# PURPOSE: domain errors raised by the store layer.
# Each error carries the HTTP status it maps to, so api.errors renders them
# without knowing the individual classes.


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationMissing(DomainError):
    """No organization/user in the caller's identity."""

    status_code = 401

    def __init__(self, message: str = "User information not found"):
        super().__init__(message)


class AuthorizationDenied(DomainError):
    """Caller is authenticated but may not perform this mutation."""

    status_code = 403


class NotFound(DomainError):
    """Entity absent, soft-deleted, or owned by another organization."""

    status_code = 404


class InvalidReference(DomainError):
    """A supplied foreign id does not resolve within the organization."""

    status_code = 400


class Conflict(DomainError):
    """Uniqueness violation or a delete blocked by dependents."""

    status_code = 409
