"""
Exceptions raised by the task board services.

The HTTP layer maps them onto status codes:
  ValidationError  -> 400
  MalformedRequest -> 400
  NotFound         -> 404
  StoreError       -> 500
"""


class BoardError(Exception):
    """Base class for every task board error."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BoardError):
    """Raised when client input breaks a field or workflow rule."""
    pass


class NotFound(BoardError):
    """Raised when a referenced entity does not exist."""
    pass


class MalformedRequest(BoardError):
    """Raised when a request body cannot be parsed or is too large."""
    pass


class StoreError(BoardError):
    """Raised when the underlying collection store fails."""
    pass
