"""
CLI commands for authentication: login, register, logout, whoami
"""
import re
from datetime import datetime
from typing import Optional

import typer
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich import box

from coins_cli.cli import display
from coins_cli.cli.context import currency, open_api, run_action
from coins_cli.cli.errors import LOGIN_MESSAGES, REGISTER_MESSAGES
from coins_cli.core.exceptions import ResponseFormatError, ValidationError
from coins_cli.logger import logger
from coins_cli.models.schemas import AuthResult
from coins_cli.services.auth_middleware import get_auth_middleware


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def validate_registration(username: str, email: str, password: str) -> None:
    if len(username or "") < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")
    if not EMAIL_RE.match(email or ""):
        raise ValidationError("Please enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def _store_session(result: AuthResult) -> None:
    if not result.token or result.user.user_id is None:
        raise ResponseFormatError("Authentication response is missing the token or user id")
    get_auth_middleware().save_session(
        result.token, result.user.user_id, result.user.username, result.user.funds
    )


async def login_action(email: str, password: str) -> AuthResult:
    """Log in and persist the session."""
    if not email.strip() or not password.strip():
        raise ValidationError("Email and password are required")

    async with open_api() as api:
        with display.spinner("Logging in..."):
            result = await api.login(email.strip(), password)

    _store_session(result)
    logger.info(f"User logged in: {result.user.username}")
    display.success(f"Welcome back, {result.user.username}!")
    display.info(f"Current funds: {display.format_currency(result.user.funds, currency())}")
    return result


async def register_action(username: str, email: str, password: str) -> AuthResult:
    """Create an account; the session is stored when the server returns a token."""
    validate_registration(username, email, password)

    async with open_api() as api:
        with display.spinner("Creating account..."):
            result = await api.register(username, email, password)

    logger.info(f"User registered: {result.user.username}")
    display.success(f"Welcome, {result.user.username}!")
    display.info(
        f"Your account has been created with "
        f"{display.format_currency(result.user.funds, currency())} in funds."
    )
    if result.token and result.user.user_id is not None:
        _store_session(result)
    else:
        display.info("Please run: coins-cli login")
    return result


def login(
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Account email"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Account password"),
):
    """
    Log in to your account
    """
    display.header("User Login")
    email = email or Prompt.ask("[cyan]Email[/cyan]")
    password = password or Prompt.ask("[cyan]Password[/cyan]", password=True)
    run_action(lambda: login_action(email, password), "Login failed", LOGIN_MESSAGES)


def register(
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Username (min 3 characters)"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Account email"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Password (min 6 characters)"),
):
    """
    Register a new account
    """
    display.header("User Registration")
    username = username or Prompt.ask("[cyan]Username[/cyan]")
    email = email or Prompt.ask("[cyan]Email[/cyan]")
    if password is None:
        password = Prompt.ask("[cyan]Password[/cyan]", password=True)
        confirm = Prompt.ask("[cyan]Confirm password[/cyan]", password=True)
        if confirm != password:
            display.error("Passwords do not match")
            raise typer.Exit(code=1)
    run_action(lambda: register_action(username, email, password), "Registration failed", REGISTER_MESSAGES)


def logout(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Log out and clear the stored session
    """
    if not yes and not Confirm.ask("Are you sure you want to logout?", default=True):
        display.info("Logout cancelled")
        return
    get_auth_middleware().clear_auth()
    display.success("Logged out successfully")


def whoami():
    """
    Show the current session
    """
    auth = get_auth_middleware()
    if not auth.is_authenticated():
        display.info("Not logged in")
        display.info("Please run: coins-cli login")
        raise typer.Exit(code=1)

    session = auth.get_current_user()
    claims = auth.decode_claims(session.token) or {}
    exp = claims.get("exp")

    table = Table(title="Current Session", box=box.ROUNDED)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Username", str(session.username or "-"))
    table.add_row("User ID", str(session.user_id))
    table.add_row("Funds", display.format_currency(session.funds, currency()))
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        expires = datetime.fromtimestamp(exp).strftime("%Y-%m-%d %H:%M:%S")
        status = "[green]valid[/green]" if auth.validate_token(session.token) else "[red]expired[/red]"
        table.add_row("Token Expires", f"{expires} ({status})")
    else:
        table.add_row("Token Expires", "[yellow]unknown[/yellow]")
    display.console.print(table)
