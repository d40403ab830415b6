"""Exceptions raised by key validation and persistence."""

INVALID_KEY_MESSAGE = (
    "This API key appears to be invalid. "
    "Please check the instructions for generating an API key."
)
VALIDATION_ERROR_MESSAGE = "Error validating API key."


class KeyManagementError(Exception):
    """Base class for recoverable key management failures.

    ``str(error)`` is always safe to show to an end user.
    """


class ValidationRejected(KeyManagementError):
    """The provider reported that the key is not valid."""

    def __init__(self, message: str = INVALID_KEY_MESSAGE):
        super().__init__(message)


class ValidationFailed(KeyManagementError):
    """The validation call itself failed."""

    def __init__(self, message: str = VALIDATION_ERROR_MESSAGE):
        super().__init__(message)


class PersistenceFailed(KeyManagementError):
    """Saving, removing, or updating the preference failed."""


class StorageUnavailable(Exception):
    """No storage backend accepted the key record."""
