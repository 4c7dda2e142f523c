"""
CLI commands for the stored configuration
"""
import typer
from rich.prompt import Confirm
from rich.table import Table
from rich import box

from coins_cli.cli import display
from coins_cli.cli.context import open_api, run_action
from coins_cli.config.settings import settings
from coins_cli.config.store import (
    PREF_CURRENCY,
    USER_TOKEN,
    get_config_store,
)
from coins_cli.logger import logger

app = typer.Typer()


def _mask(value) -> str:
    if not value:
        return "-"
    text = str(value)
    return text[:6] + "…" if len(text) > 10 else "***"


@app.command("show")
def show():
    """
    Show stored settings
    """
    store = get_config_store()
    table = Table(title="Configuration", box=box.ROUNDED)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in sorted(store.as_dict().items()):
        table.add_row(key, _mask(value) if key == USER_TOKEN else ("-" if value is None else str(value)))
    display.console.print(table)
    display.console.print(f"\n[dim]Stored in {settings.config_file}[/dim]")


@app.command("set-url")
def set_url(url: str = typer.Argument(..., help="API base URL, e.g. https://api.example.com")):
    """
    Change the API base URL
    """
    if not url.startswith(("http://", "https://")):
        display.error("URL must start with http:// or https://")
        raise typer.Exit(code=1)
    url = url.rstrip("/")
    run_action(lambda: set_url_action(url), "Failed to update API base URL")


async def set_url_action(url: str) -> None:
    async with open_api() as api:
        api.set_base_url(url)
    display.success(f"API base URL set to {url}")


@app.command("set-currency")
def set_currency(code: str = typer.Argument(..., help="ISO currency code, e.g. GBP")):
    """
    Change the display currency
    """
    code = code.strip().upper()
    if len(code) != 3 or not code.isalpha():
        display.error("Currency must be a three letter code")
        raise typer.Exit(code=1)
    get_config_store().set(PREF_CURRENCY, code)
    display.success(f"Display currency set to {code}")


@app.command("reset")
def reset(yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    """
    Restore defaults (this also logs you out)
    """
    if not yes and not Confirm.ask("Reset all settings to defaults?", default=False):
        display.info("Reset cancelled")
        return
    get_config_store().reset()
    logger.info("Configuration reset to defaults")
    display.success("Configuration reset to defaults")
