"""
Process-wide CLI state shared by the Typer commands and the interactive shell.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
import typer

from coins_cli.config.store import PREF_CURRENCY, get_config_store
from coins_cli.config.settings import settings
from coins_cli.core.exceptions import CoinsCliError
from coins_cli.logger import logger
from coins_cli.services.api import create_api


@dataclass
class CliState:
    debug: bool = False
    verbose: bool = False
    # Tests swap in httpx.MockTransport
    transport: Optional[httpx.AsyncBaseTransport] = None


state = CliState()


def open_api():
    """``create_api`` bound to the current store and transport."""
    return create_api(transport=state.transport)


def currency() -> str:
    return get_config_store().get(PREF_CURRENCY, settings.DEFAULT_CURRENCY)


def run_action(
    action: Callable[[], Awaitable[Any]],
    failure: str,
    messages: Optional[Dict[int, str]] = None,
) -> Any:
    """
    Run one async command body, rendering whatever it raises.

    A failed action exits with code 1; ``SystemExit`` raised by the auth
    gate passes straight through.
    """
    from coins_cli.cli.errors import render_error

    try:
        return asyncio.run(action())
    except CoinsCliError as e:
        render_error(e, failure, messages)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info(f"Interrupted: {failure}")
        raise typer.Exit(code=130)
    except typer.Exit:
        raise
    except Exception as e:
        logger.error(f"Unexpected error: {failure}: {e!r}")
        logger.opt(exception=e).debug("Traceback of the unexpected error")
        render_error(e, failure, messages)
        raise typer.Exit(code=1)
