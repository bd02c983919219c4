"""
Error taxonomy for the credential service.

Every error carries an HTTP status code and a message that is safe to return
to the client. Internal detail belongs in the logs, never in the message.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed or missing input."""
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class DuplicateIdentityError(ConflictError):
    """An account with this email already exists."""

    def __init__(self, message: str = "Email address is already in use."):
        super().__init__(message)


class AuthError(ServiceError):
    """Bad credentials or token. 401 by default, 403 for rejected bearer tokens."""
    status_code = 401


class TransientServerError(ServiceError):
    """Store or hashing failure. The message stays generic."""
    status_code = 500


class NotificationError(Exception):
    """Outbound delivery failed. Never surfaced to the client."""
