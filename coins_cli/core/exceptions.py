"""
Custom exceptions for the Coins CLI.

All custom exceptions are defined here so command handlers can render them
consistently (see ``coins_cli.cli.errors``).
"""
from typing import Any, Optional


class CoinsCliError(Exception):
    """Base exception for all Coins CLI errors."""
    pass


class ApiError(CoinsCliError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
        reason: str = "",
    ):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"API Error: {status_code} - {reason}".rstrip(" -"))

    @property
    def server_message(self) -> Optional[str]:
        """Human readable message the server put in the body, if any."""
        if isinstance(self.body, dict):
            for key in ("msg", "message", "error"):
                value = self.body.get(key)
                if isinstance(value, str) and value:
                    return value
        return None


class NetworkError(CoinsCliError):
    """Raised when no response was received (DNS, connection, timeout)."""

    def __init__(self, message: str, method: Optional[str] = None, url: Optional[str] = None):
        self.method = method
        self.url = url
        super().__init__(message)


class ValidationError(CoinsCliError):
    """Raised for bad local input, before any network call."""
    pass


class AuthenticationError(CoinsCliError):
    """Raised when a command needs a session and there is none."""
    pass


class SessionExpiredError(AuthenticationError):
    """Raised when the session was rejected or has expired."""
    pass


class ResponseFormatError(CoinsCliError):
    """Raised when a 2xx body matches none of the accepted shapes."""
    pass


class ExportError(CoinsCliError):
    """Raised when an export file cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class ConfigStoreError(CoinsCliError):
    """Raised when the persisted config cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
