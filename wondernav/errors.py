"""Exceptions raised while serving a chat request.

Every error a request can end in is a ``ChatServiceError``. The Lambda entry
point turns it into an HTTP response using ``status_code`` and ``kind``.
"""


class ChatServiceError(Exception):
    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(ChatServiceError):
    """The request body is missing, malformed or has an unusable ``input``."""
    status_code = 400
    kind = "validation_error"


class UpstreamError(ChatServiceError):
    """The completion service failed or returned something we cannot use."""
    status_code = 502
    kind = "upstream_error"


class UpstreamTimeoutError(UpstreamError):
    """The completion service did not answer within the time budget."""
    status_code = 504
    kind = "upstream_timeout"


class StorageError(ChatServiceError):
    """Reading or writing the chats table failed.

    When raised from a write, the completion call has already been made, so
    retrying the whole request calls the completion service again.
    """
    status_code = 500
    kind = "storage_error"


class ConfigurationError(Exception):
    """An environment variable holds a value the service cannot use."""
