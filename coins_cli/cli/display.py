"""
Terminal output helpers built on rich.

Formatting functions return rich markup strings so they can be dropped into
tables or ``console.print`` calls alike.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from rich import box
from rich.console import Console
from rich.table import Table


console = Console()
err_console = Console(stderr=True)

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
    "JPY": "¥",
}


def success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def error(message: str) -> None:
    err_console.print(f"[red]✗ {message}[/red]")


def warning(message: str) -> None:
    console.print(f"[yellow]⚠ {message}[/yellow]")


def info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def header(title: str) -> None:
    console.print(f"\n[bold blue]{title}[/bold blue]")


def subheader(title: str) -> None:
    console.print(f"\n[bold]{title}[/bold]")


@contextmanager
def spinner(text: str) -> Iterator[None]:
    """Show a spinner while the block runs"""
    with console.status(f"[cyan]{text}[/cyan]", spinner="dots"):
        yield


def format_currency(amount: Optional[float], currency: str = "GBP") -> str:
    """
    Format an amount the way en-GB locales print money.

    Args:
        amount: Value to format (None counts as zero)
        currency: ISO code; unknown codes are printed as a prefix

    Returns:
        e.g. ``£1,234.56``, ``-£5.00``, ``CHF 10.00``
    """
    value = float(amount or 0)
    code = (currency or "GBP").upper()
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def format_percentage(value: Optional[float]) -> str:
    """Signed percentage, green when >= 0 and red otherwise"""
    value = float(value or 0)
    if value >= 0:
        return f"[green]+{value:.2f}%[/green]"
    return f"[red]{value:.2f}%[/red]"


def profit(text: str) -> str:
    return f"[green]+{text}[/green]"


def loss(text: str) -> str:
    return f"[red]-{text}[/red]"


def format_profit_loss(amount: float, currency: str = "GBP") -> str:
    """Green ``+£x`` for gains, red ``-£x`` for losses"""
    if amount >= 0:
        return profit(format_currency(amount, currency))
    return loss(format_currency(abs(amount), currency))


def format_timestamp(value: Optional[str]) -> str:
    """ISO-8601 string to local ``YYYY-MM-DD HH:MM:SS``; unparsable input is echoed."""
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


def coin_table(title: Optional[str] = None) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name", style="white")
    table.add_column("Symbol", style="yellow")
    table.add_column("Price", justify="right")
    table.add_column("Market Cap", justify="right")
    table.add_column("24h Change", justify="right")
    return table


def portfolio_table(title: Optional[str] = None, with_ids: bool = False) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    if with_ids:
        table.add_column("Coin ID", style="cyan", justify="right")
    table.add_column("Coin", style="white")
    table.add_column("Symbol", style="yellow")
    table.add_column("Quantity", justify="right")
    table.add_column("Current Price", justify="right")
    table.add_column("Total Value", justify="right")
    table.add_column("P&L", justify="right")
    return table


def transaction_table(title: Optional[str] = None) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Type")
    table.add_column("Coin", style="yellow")
    table.add_column("Quantity", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Date", style="dim")
    return table


def format_quantity(value: float) -> str:
    """Drop trailing zeros: 2.0 -> 2, 0.125 -> 0.125"""
    return f"{value:,.8f}".rstrip("0").rstrip(".")
