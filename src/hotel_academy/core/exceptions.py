class DomainError(Exception):
    """Base for rule violations a service reports to its caller.

    `status_code` is the HTTP status the JSON error handler answers with.
    """

    status_code = 400


class ValidationError(DomainError):
    """Bad input: missing fields, out-of-range ratings, unknown enum values."""


class AuthenticationError(DomainError):
    status_code = 401


class AuthorizationError(DomainError):
    """The actor is signed in but their role or page permissions do not allow this."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Duplicate join request, existing membership, or a request that already left PENDING."""

    status_code = 409
