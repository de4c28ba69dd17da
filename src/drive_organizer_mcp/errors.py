"""Exception hierarchy for drive-organizer-mcp.

Authentication failures are kept apart from remote call failures so callers
can tell "could not authenticate" from "authenticated but Drive rejected
the call".
"""

from typing import Any


class DriveError(Exception):
    """Base exception for drive-organizer-mcp.

    Attributes:
        details: Optional structured information (HTTP status, path, ...).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class AuthenticationError(DriveError):
    """Raised when no usable bearer credential can be obtained."""


class CredentialsUnavailableError(AuthenticationError):
    """Raised when the credential cannot be refreshed.

    Missing refresh token or client credentials. This state is terminal for
    the client instance.
    """


class TokenRefreshError(AuthenticationError):
    """Raised when the token endpoint rejects or fails a refresh request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            details={"status_code": status_code, "body": body},
            cause=cause,
        )
        self.status_code = status_code
        self.body = body


class DriveApiError(DriveError):
    """Raised when the Drive API answers with a non-2xx status."""

    def __init__(
        self,
        action: str,
        status_code: int | None,
        body: str = "",
        *,
        cause: BaseException | None = None,
    ) -> None:
        status = status_code if status_code is not None else "network error"
        super().__init__(
            f"Failed to {action}: {status} {body}".rstrip(),
            details={"action": action, "status_code": status_code, "body": body},
            cause=cause,
        )
        self.action = action
        self.status_code = status_code
        self.body = body


class DriveNetworkError(DriveApiError):
    """Raised when a request never produced an HTTP response."""

    def __init__(self, action: str, cause: BaseException) -> None:
        super().__init__(action, None, str(cause), cause=cause)


class PathNotFoundError(DriveError):
    """Raised when a path (or one of its segments) does not exist."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"Path not found: {path}", details={"path": path})
        self.path = path


class SourceNotFoundError(PathNotFoundError):
    """Raised when the source of a move/rename cannot be found."""

    def __init__(self, path: str) -> None:
        super().__init__(path, f"Source file/folder not found: {path}")


class DestinationNotFoundError(PathNotFoundError):
    """Raised when the destination folder of a move does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(path, f"Destination folder not found: {path}")


class InvalidOperationError(DriveError):
    """Raised for structurally invalid requests, before any remote call."""
