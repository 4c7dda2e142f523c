"""
Turn exceptions into user-facing messages.

Every command renders its own failures through ``render_error``: a status
specific line, the server's message when it sent one, and request details
when ``--debug`` is on.
"""
import json
import traceback
from typing import Dict, Optional

from coins_cli.cli import display
from coins_cli.cli.context import state
from coins_cli.core.exceptions import (
    ApiError,
    AuthenticationError,
    CoinsCliError,
    NetworkError,
    ResponseFormatError,
    ValidationError,
)
from coins_cli.logger import logger


STATUS_MESSAGES: Dict[int, str] = {
    400: "Bad request - check your input",
    401: "Unauthorized - please login again",
    403: "Forbidden - you do not have access to this resource",
    404: "Not found",
    409: "Conflict - the request could not be completed",
}

LOGIN_MESSAGES = {401: "Invalid email or password", 404: "Login endpoint not found"}
REGISTER_MESSAGES = {409: "Username or email already exists", 404: "Registration endpoint not found"}
TRADE_MESSAGES = {
    400: "Invalid transaction request",
    404: "Coin not found",
    409: "Insufficient funds or holdings for this transaction",
}


def status_message(status_code: int, messages: Optional[Dict[int, str]] = None) -> str:
    """Pick the message for ``status_code``, preferring ``messages`` overrides."""
    if messages and status_code in messages:
        return messages[status_code]
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if status_code >= 500:
        return "Server error occurred - please try again later"
    return f"Unexpected error ({status_code})"


def render_error(exc: BaseException, action: str, messages: Optional[Dict[int, str]] = None) -> None:
    """
    Print a failed command's error.

    Args:
        exc: The exception that ended the command
        action: What failed, e.g. "Login failed"
        messages: Per-status overrides for this command
    """
    if isinstance(exc, ApiError):
        logger.debug(f"{action}: HTTP {exc.status_code} body={exc.body!r}")
        display.error(f"{action} (HTTP {exc.status_code})")
        display.error(status_message(exc.status_code, messages))
        if exc.server_message:
            display.info(f"Server message: {exc.server_message}")
        if state.debug:
            display.info("Debug information:")
            display.info(f"  Request URL: {exc.url or 'Unknown'}")
            display.info(f"  Request method: {exc.method or 'Unknown'}")
            display.info(f"  Response status: {exc.status_code}")
            display.info(f"  Response data: {json.dumps(exc.body, indent=2, default=str)}")
    elif isinstance(exc, NetworkError):
        display.error(f"{action}: network error - no response received from server")
        display.info("Please check your internet connection and the API URL (coins-cli config show)")
        if state.debug:
            display.info("Debug information:")
            display.info(f"  Request URL: {exc.url or 'Unknown'}")
            display.info(f"  Request method: {exc.method or 'Unknown'}")
            display.info(f"  Error: {exc}")
    elif isinstance(exc, ValidationError):
        display.error(str(exc))
    elif isinstance(exc, AuthenticationError):
        display.error(f"{action}: {exc}")
        display.info("Please run: coins-cli login")
    elif isinstance(exc, ResponseFormatError):
        display.error(f"{action}: unexpected response from server")
        if state.debug:
            display.info(f"  {exc}")
    elif isinstance(exc, CoinsCliError):
        display.error(f"{action}: {exc}")
    else:
        display.error(f"{action}: {exc or type(exc).__name__}")

    if state.debug and not isinstance(exc, (ApiError, ValidationError)):
        display.err_console.print(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), markup=False
        )
