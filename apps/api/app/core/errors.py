class BackofficeError(Exception):
    """Base class for errors raised by services and mapped to HTTP responses."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DomainValidationError(BackofficeError):
    """Raised when input is well-formed but violates a business rule."""

    status_code = 400


class NotFoundError(BackofficeError):
    """Raised when a tenant-scoped record does not exist."""

    status_code = 404


class PermissionDeniedError(BackofficeError):
    """Raised when the caller lacks access to a module or capability."""

    status_code = 403


class InvalidTransitionError(BackofficeError):
    """Raised when a workflow transition is not allowed from the current state."""

    status_code = 400
