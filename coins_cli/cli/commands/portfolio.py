"""
CLI commands for the user's portfolio
"""
from typing import List, Optional

import typer

from coins_cli.cli import display
from coins_cli.cli.context import currency, open_api, run_action
from coins_cli.core.enums import ExportFormat, SortField
from coins_cli.core.exceptions import ValidationError
from coins_cli.models.schemas import Holding, Portfolio
from coins_cli.services.auth_middleware import get_auth_middleware
from coins_cli.services.export import export_portfolio
from coins_cli.services.portfolio import filter_holdings, summarize

app = typer.Typer()


async def fetch_portfolio() -> Portfolio:
    session = get_auth_middleware().require_auth()
    async with open_api() as api:
        with display.spinner("Fetching portfolio data..."):
            portfolio = await api.get_portfolio(session.user_id)
    get_auth_middleware().update_funds(portfolio.available_funds)
    return portfolio


def holdings_table(holdings: List[Holding], cur: str, title: Optional[str] = None, with_ids: bool = False):
    table = display.portfolio_table(title, with_ids=with_ids)
    for h in holdings:
        row = [
            h.coin_name,
            h.coin_symbol,
            display.format_quantity(h.quantity),
            display.format_currency(h.current_price, cur),
            display.format_currency(h.current_value, cur),
            display.format_profit_loss(h.profit_loss, cur),
        ]
        if with_ids:
            row.insert(0, str(h.coin_id if h.coin_id is not None else "-"))
        table.add_row(*row)
    return table


def print_totals(portfolio: Portfolio, cur: str) -> None:
    display.subheader("Portfolio Summary:")
    display.console.print(f"  Total Portfolio Value: {display.format_currency(portfolio.total_value, cur)}")
    display.console.print(f"  Total Invested: {display.format_currency(portfolio.total_invested, cur)}")
    display.console.print(f"  Total P&L: {display.format_profit_loss(portfolio.total_profit_loss, cur)}")
    display.console.print(f"  P&L %: {display.format_percentage(portfolio.total_profit_loss_percent)}")
    display.console.print(f"  Available Funds: {display.format_currency(portfolio.available_funds, cur)}")


async def view_action() -> Portfolio:
    display.header("Portfolio View")
    portfolio = await fetch_portfolio()
    cur = currency()

    if not portfolio.holdings:
        display.info("Your portfolio is empty")
        display.info(f"Available funds: {display.format_currency(portfolio.available_funds, cur)}")
        return portfolio

    display.console.print(holdings_table(portfolio.holdings, cur))
    print_totals(portfolio, cur)
    return portfolio


async def summary_action() -> Portfolio:
    display.header("Portfolio Summary")
    portfolio = await fetch_portfolio()
    summary = summarize(portfolio)
    cur = currency()

    display.subheader("Portfolio Overview:")
    display.console.print(f"  Total Portfolio Value: {display.format_currency(summary.total_value, cur)}")
    display.console.print(f"  Total Invested: {display.format_currency(summary.total_invested, cur)}")
    display.console.print(f"  Total P&L: {display.format_profit_loss(summary.total_profit_loss, cur)}")
    display.console.print(f"  P&L %: {display.format_percentage(summary.total_profit_loss_percent)}")
    display.console.print(f"  Available Funds: {display.format_currency(summary.available_funds, cur)}")
    display.console.print(f"  Number of Holdings: {summary.holdings_count}")

    if summary.holdings_count:
        display.subheader("Performance Metrics:")
        display.console.print(f"  Profitable Positions: {summary.profitable_count}/{summary.holdings_count}")
        display.console.print(f"  Success Rate: {summary.success_rate:.1f}%")

        display.subheader("Top Performers:")
        for index, h in enumerate(summary.top_performers, start=1):
            display.console.print(f"  {index}. {h.coin_symbol}: {display.format_percentage(h.profit_loss_percent)}")
    return portfolio


async def filter_action(
    symbol: Optional[str] = None,
    profitable: bool = False,
    losing: bool = False,
    sort: SortField = SortField.VALUE,
) -> List[Holding]:
    if profitable and losing:
        raise ValidationError("Use either --profitable or --losing, not both")

    display.header("Portfolio Filter")
    portfolio = await fetch_portfolio()
    holdings = filter_holdings(portfolio.holdings, symbol, profitable, losing, sort)

    if not holdings:
        display.info("No holdings match the specified filters")
        return holdings

    display.console.print(holdings_table(holdings, currency()))
    display.info(f"Showing {len(holdings)} holdings")
    return holdings


async def export_action(fmt: ExportFormat = ExportFormat.JSON, filename: Optional[str] = None):
    display.header("Portfolio Export")
    portfolio = await fetch_portfolio()
    path = export_portfolio(portfolio, fmt, filename)
    display.success(f"Portfolio exported to {path}")
    return path


@app.command("view")
def view():
    """
    View your holdings
    """
    run_action(view_action, "Failed to fetch portfolio data")


@app.command("summary")
def summary():
    """
    Show portfolio totals and performance
    """
    run_action(summary_action, "Failed to fetch portfolio summary")


@app.command("filter")
def filter_cmd(
    symbol: Optional[str] = typer.Option(None, "--symbol", "-s", help="Filter by coin symbol"),
    profitable: bool = typer.Option(False, "--profitable", help="Only profitable holdings"),
    losing: bool = typer.Option(False, "--losing", help="Only losing holdings"),
    sort: SortField = typer.Option(SortField.VALUE, "--sort", help="Sort by value, profit or quantity"),
):
    """
    Filter and sort holdings
    """
    run_action(lambda: filter_action(symbol, profitable, losing, sort), "Failed to filter portfolio")


@app.command("export")
def export(
    fmt: ExportFormat = typer.Option(ExportFormat.JSON, "--format", "-f", help="Export format"),
    filename: Optional[str] = typer.Option(None, "--filename", "-o", help="File name without extension"),
):
    """
    Export the portfolio to JSON or CSV
    """
    run_action(lambda: export_action(fmt, filename), "Failed to export portfolio")
