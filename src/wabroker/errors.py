from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class ValidationError(UserError):
    """Raised when user input fails validation."""


class BrokerError(Exception):
    """Base class for downstream failures.

    The message is passed through to the caller with a 500 status.
    """


class SessionTimeoutError(BrokerError):
    """Raised when a session does not become ready within the allowed wait."""

    def __init__(self, message: str = "Timeout: Client not ready after waiting.") -> None:
        super().__init__(message)


class SessionVanishedError(BrokerError):
    """Raised when a session is removed while a caller is waiting for it."""

    def __init__(self, message: str = "Session closed while waiting for client to be ready") -> None:
        super().__init__(message)


class BackendError(BrokerError):
    """Raised when the messaging backend rejects an operation."""


class FetchError(BrokerError):
    """Raised when remote media cannot be downloaded."""


class QRRenderError(BrokerError):
    """Raised when a QR payload cannot be rendered to an image."""

    def __init__(self, message: str = "QR generation failed") -> None:
        super().__init__(message)
