"""
CLI commands for market data (public endpoints, no login needed)
"""
from typing import List, Union

import typer
from rich.table import Table
from rich import box

from coins_cli.cli import display
from coins_cli.cli.context import currency, open_api, run_action
from coins_cli.core.enums import TimeRange
from coins_cli.core.exceptions import ValidationError
from coins_cli.models.schemas import Coin

app = typer.Typer()


def coin_rows(table: Table, coins: List[Coin], cur: str) -> Table:
    for coin in coins:
        table.add_row(
            str(coin.coin_id),
            coin.name,
            coin.symbol,
            display.format_currency(coin.current_price, cur),
            display.format_currency(coin.market_cap, cur),
            display.format_percentage(coin.price_change_24h),
        )
    return table


def search_coins(coins: List[Coin], query: str) -> List[Coin]:
    """Case-insensitive match on name or symbol."""
    term = query.lower()
    return [c for c in coins if term in c.name.lower() or term in c.symbol.lower()]


async def list_action() -> List[Coin]:
    display.header("Market - All Coins")
    async with open_api() as api:
        with display.spinner("Fetching market data..."):
            coins = await api.get_coins()
    display.console.print(coin_rows(display.coin_table(), coins, currency()))
    display.info(f"Showing {len(coins)} coins")
    return coins


async def details_action(coin_id: Union[int, str]) -> Coin:
    display.header(f"Market - Coin Details ({coin_id})")
    async with open_api() as api:
        with display.spinner("Fetching coin details..."):
            coin = await api.get_coin(coin_id)

    cur = currency()
    display.subheader("Coin Information:")
    display.console.print(f"  ID: {coin.coin_id}")
    display.console.print(f"  Name: {coin.name}")
    display.console.print(f"  Symbol: {coin.symbol}")
    display.console.print(f"  Current Price: {display.format_currency(coin.current_price, cur)}")
    display.console.print(f"  Market Cap: {display.format_currency(coin.market_cap, cur)}")
    display.console.print(f"  24h Change: {display.format_percentage(coin.price_change_24h)}")
    display.console.print(f"  Founder: {coin.founder or 'Unknown'}")
    display.console.print(f"  Description: {coin.description or 'No description available'}")
    return coin


async def history_action(
    coin_id: Union[int, str], page: int = 1, limit: int = 10, time_range: TimeRange = TimeRange.THIRTY_MINUTES
):
    if page < 1 or limit < 1:
        raise ValidationError("Page and limit must be positive")

    display.header(f"Market - Price History ({coin_id})")
    async with open_api() as api:
        with display.spinner("Fetching price history..."):
            history = await api.get_coin_history(coin_id, page, limit, time_range)

    if not history:
        display.info("No price history available for this coin")
        return history

    cur = currency()
    table = Table(box=box.ROUNDED)
    table.add_column("Date", style="dim")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    for point in history:
        table.add_row(
            display.format_timestamp(point.timestamp),
            display.format_currency(point.price, cur),
            display.format_percentage(point.price_change),
        )
    display.console.print(table)
    display.info(f"Showing page {page} of price history ({len(history)} entries)")
    return history


async def overview_action(time_range: TimeRange = TimeRange.THIRTY_MINUTES):
    display.header("Market Overview")
    async with open_api() as api:
        with display.spinner("Fetching market overview..."):
            overview = await api.get_market_history(time_range)

    cur = currency()
    display.subheader("Market Trends:")
    display.console.print(f"  Time Range: {TimeRange(time_range).value}")
    display.console.print(f"  Total Market Value: {display.format_currency(overview.total_value, cur)}")
    display.console.print(f"  Total Volume: {display.format_currency(overview.total_volume, cur)}")
    if overview.trends:
        display.subheader("Recent Trends:")
        for trend in overview.trends:
            display.console.print(
                f"  {display.format_timestamp(trend.timestamp)}: {display.format_currency(trend.value, cur)}"
            )
    return overview


async def stats_action():
    display.header("Market Statistics")
    async with open_api() as api:
        with display.spinner("Fetching market statistics..."):
            stats = await api.get_market_stats()

    cur = currency()
    display.subheader("Market Performance:")
    display.console.print(f"  Total Coins: {stats.total_coins}")
    display.console.print(f"  Total Market Cap: {display.format_currency(stats.total_market_cap, cur)}")
    display.console.print(f"  Total Volume (24h): {display.format_currency(stats.total_volume_24h, cur)}")
    display.console.print(f"  Market Change (24h): {display.format_percentage(stats.market_change_24h)}")

    if stats.top_gainers:
        display.subheader("Top Gainers (24h):")
        for coin in stats.top_gainers:
            display.console.print(f"  {coin.symbol}: {display.format_percentage(coin.price_change_24h)}")
    if stats.top_losers:
        display.subheader("Top Losers (24h):")
        for coin in stats.top_losers:
            display.console.print(f"  {coin.symbol}: {display.format_percentage(coin.price_change_24h)}")
    return stats


async def search_action(query: str) -> List[Coin]:
    if not query.strip():
        raise ValidationError("Search query is required")

    display.header(f'Market Search - "{query}"')
    async with open_api() as api:
        with display.spinner("Searching coins..."):
            coins = await api.get_coins()

    matches = search_coins(coins, query.strip())
    if not matches:
        display.info(f'No coins found matching "{query}"')
        return matches
    display.console.print(coin_rows(display.coin_table(), matches, currency()))
    display.info(f'Found {len(matches)} coins matching "{query}"')
    return matches


@app.command("list")
def list_coins():
    """
    List all coins
    """
    run_action(list_action, "Failed to fetch market data")


@app.command("details")
def details(coin_id: str = typer.Argument(..., help="Coin ID")):
    """
    Show coin details
    """
    run_action(lambda: details_action(coin_id), f"Failed to fetch details for coin {coin_id}", {404: "Coin not found"})


@app.command("history")
def history(
    coin_id: str = typer.Argument(..., help="Coin ID"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    limit: int = typer.Option(10, "--limit", "-l", help="Entries per page"),
    time_range: TimeRange = typer.Option(TimeRange.THIRTY_MINUTES, "--time-range", "-t", help="Time range"),
):
    """
    Show coin price history
    """
    run_action(
        lambda: history_action(coin_id, page, limit, time_range),
        f"Failed to fetch price history for coin {coin_id}",
        {404: "Coin not found"},
    )


@app.command("overview")
def overview(
    time_range: TimeRange = typer.Option(TimeRange.THIRTY_MINUTES, "--time-range", "-t", help="Time range"),
):
    """
    Show market overview
    """
    run_action(lambda: overview_action(time_range), "Failed to fetch market overview")


@app.command("stats")
def stats():
    """
    Show market statistics
    """
    run_action(stats_action, "Failed to fetch market statistics")


@app.command("search")
def search(query: str = typer.Argument(..., help="Name or symbol to search for")):
    """
    Search coins by name or symbol
    """
    run_action(lambda: search_action(query), "Failed to search coins")
