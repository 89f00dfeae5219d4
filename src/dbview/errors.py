from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class CapabilityError(UserError):
    """Raised when an operation would break a schema invariant, e.g. hiding a required property."""


class PersistenceError(UserError):
    """Raised when the record store rejects a write.

    Local optimistic state is left as is; the caller decides whether to reload.
    """

    def __init__(self, message: str = "Failed to save changes") -> None:
        super().__init__(message)
