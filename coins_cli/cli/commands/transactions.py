"""
CLI commands for transaction history
"""
from typing import List, Optional

import typer

from coins_cli.cli import display
from coins_cli.cli.context import currency, open_api, run_action
from coins_cli.core.enums import ExportFormat, TransactionType
from coins_cli.core.exceptions import ValidationError
from coins_cli.models.schemas import Transaction
from coins_cli.services.auth_middleware import get_auth_middleware
from coins_cli.services.export import export_transactions

app = typer.Typer()


def filter_by_type(transactions: List[Transaction], tx_type: Optional[TransactionType]) -> List[Transaction]:
    if tx_type is None:
        return list(transactions)
    wanted = TransactionType(tx_type).value
    return [t for t in transactions if t.type.upper() == wanted]


async def fetch_transactions(limit: int) -> List[Transaction]:
    if limit < 1:
        raise ValidationError("Limit must be a positive number")
    session = get_auth_middleware().require_auth()
    async with open_api() as api:
        with display.spinner("Fetching transaction history..."):
            return await api.get_user_transactions(session.user_id, limit)


async def history_action(limit: int = 10, tx_type: Optional[TransactionType] = None) -> List[Transaction]:
    display.header("Transaction History")
    transactions = filter_by_type(await fetch_transactions(limit), tx_type)

    if not transactions:
        display.info("No transactions found")
        return transactions

    cur = currency()
    table = display.transaction_table()
    for t in transactions:
        color = "green" if t.type.upper() == TransactionType.BUY.value else "red"
        table.add_row(
            str(t.transaction_id),
            f"[{color}]{t.type}[/{color}]",
            t.symbol or "-",
            display.format_quantity(t.quantity),
            display.format_currency(t.price, cur),
            display.format_currency(t.total_amount, cur),
            display.format_timestamp(t.created_at),
        )
    display.console.print(table)
    display.info(f"Showing {len(transactions)} transactions")
    return transactions


async def details_action(transaction_id: str) -> Transaction:
    get_auth_middleware().require_auth()
    display.header(f"Transaction Details ({transaction_id})")
    async with open_api() as api:
        with display.spinner("Fetching transaction details..."):
            t = await api.get_transaction(transaction_id)

    cur = currency()
    display.subheader("Transaction Information:")
    display.console.print(f"  ID: {t.transaction_id}")
    display.console.print(f"  Type: {t.type}")
    display.console.print(f"  User ID: {t.user_id}")
    display.console.print(f"  Coin ID: {t.coin_id}")
    display.console.print(f"  Coin Name: {t.coin_name or '-'}")
    display.console.print(f"  Coin Symbol: {t.symbol or '-'}")
    display.console.print(f"  Quantity: {display.format_quantity(t.quantity)}")
    display.console.print(f"  Price per Coin: {display.format_currency(t.price, cur)}")
    display.console.print(f"  Total Amount: {display.format_currency(t.total_amount, cur)}")
    display.console.print(f"  Timestamp: {display.format_timestamp(t.created_at)}")
    if t.status:
        display.console.print(f"  Status: {t.status}")
    return t


async def export_action(
    fmt: ExportFormat = ExportFormat.JSON,
    limit: int = 100,
    filename: Optional[str] = None,
):
    display.header("Transaction History Export")
    transactions = await fetch_transactions(limit)
    path = export_transactions(transactions, fmt, filename)
    display.success(f"Transaction history exported to {path}")
    return path


@app.command("history")
def history(
    limit: int = typer.Option(10, "--limit", "-l", help="Number of transactions"),
    tx_type: Optional[TransactionType] = typer.Option(None, "--type", "-t", help="BUY or SELL"),
):
    """
    Show your transaction history
    """
    run_action(lambda: history_action(limit, tx_type), "Failed to fetch transaction history")


@app.command("details")
def details(transaction_id: str = typer.Argument(..., help="Transaction ID")):
    """
    Show a single transaction
    """
    run_action(
        lambda: details_action(transaction_id),
        f"Failed to fetch transaction details for {transaction_id}",
        {404: "Transaction not found"},
    )


@app.command("export")
def export(
    fmt: ExportFormat = typer.Option(ExportFormat.JSON, "--format", "-f", help="Export format"),
    limit: int = typer.Option(100, "--limit", "-l", help="Number of transactions"),
    filename: Optional[str] = typer.Option(None, "--filename", "-o", help="File name without extension"),
):
    """
    Export transaction history to JSON or CSV
    """
    run_action(lambda: export_action(fmt, limit, filename), "Failed to export transaction history")
