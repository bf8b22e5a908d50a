"""
Application error taxonomy.

Every failure a handler reports is an ErrorKind. The kind fixes the HTTP status
and the message the client sees; the free-form detail stays in the server log.
"""
from enum import Enum


class ErrorKind(Enum):
    """Client-facing error categories: (status code, public message)."""

    INVALID_REQUEST = (400, "Invalid request")
    UPLOAD_FAILED = (400, "Failed to retrieve the uploaded file")
    UNAUTHORIZED = (401, "Invalid token")
    INVALID_CREDENTIALS = (401, "Invalid credentials")
    NOT_FOUND = (404, "Bookmark not found")
    USER_EXISTS = (409, "User already exists")
    PARSE_FAILED = (500, "Failed to parse bookmarks")
    PERSISTENCE_FAILED = (500, "Failed to save bookmarks")
    INTERNAL = (500, "Internal server error")

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class AppError(Exception):
    """Raised by services and dependencies; rendered by the app's exception handler."""

    def __init__(self, kind: ErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail or kind.message
        super().__init__(self.detail)
