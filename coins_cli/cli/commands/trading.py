"""
CLI commands for buying and selling coins
"""
import math
from typing import Callable, Optional, Union

import typer
from rich.prompt import Confirm

from coins_cli.cli import display
from coins_cli.cli.context import currency, open_api, run_action
from coins_cli.cli.errors import TRADE_MESSAGES
from coins_cli.core.enums import TransactionType
from coins_cli.core.exceptions import ValidationError
from coins_cli.logger import logger
from coins_cli.models.schemas import TradeReceipt
from coins_cli.services.auth_middleware import get_auth_middleware


def parse_amount(raw: Union[str, float, int, None]) -> float:
    """Parse a trade amount; must be a finite number greater than zero."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("Coin ID and amount are required")
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be a positive number")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Amount must be a positive number")
    return amount


def _ask_confirm() -> bool:
    return Confirm.ask("Do you want to proceed with this transaction?", default=False)


async def trade_action(
    side: TransactionType,
    coin_id: str,
    raw_amount: Union[str, float],
    confirm: Optional[Callable[[], bool]] = _ask_confirm,
) -> Optional[TradeReceipt]:
    """
    Quote, confirm and submit one trade.

    Args:
        side: BUY or SELL
        coin_id: Coin to trade
        raw_amount: Quantity as typed by the user
        confirm: Asked before submitting; ``None`` skips the question

    Returns:
        The receipt, or ``None`` when the user cancels
    """
    auth = get_auth_middleware()
    session = auth.require_auth()
    if not str(coin_id).strip():
        raise ValidationError("Coin ID and amount are required")
    amount = parse_amount(raw_amount)
    side = TransactionType(side)
    verb = "Buy" if side == TransactionType.BUY else "Sell"
    total_label = "Total Cost" if side == TransactionType.BUY else "Total Value"
    cur = currency()

    display.header(f"{verb} {coin_id}")
    async with open_api() as api:
        coin = await api.get_coin(coin_id)
        display.subheader("Transaction Details:")
        display.console.print(f"  Coin: {coin.name} ({coin.symbol})")
        display.console.print(f"  Current Price: {display.format_currency(coin.current_price, cur)}")
        display.console.print(f"  Amount: {display.format_quantity(amount)}")
        display.console.print(f"  {total_label}: {display.format_currency(amount * coin.current_price, cur)}")

        if confirm is not None and not confirm():
            display.info("Transaction cancelled")
            return None

        submit = api.buy if side == TransactionType.BUY else api.sell
        with display.spinner("Processing transaction..."):
            receipt = await submit(session.user_id, coin_id, amount)

    auth.update_funds(receipt.funds)
    logger.info(f"{verb} completed: {amount} {coin.symbol} tx={receipt.transaction_id}")
    display.success(f"Successfully {'bought' if side == TransactionType.BUY else 'sold'} "
                    f"{display.format_quantity(amount)} {coin.symbol}")
    display.info(f"Transaction ID: {receipt.transaction_id}")
    display.info(f"{total_label}: {display.format_currency(receipt.total_amount, cur)}")
    return receipt


def buy(
    coin_id: str = typer.Argument(..., help="Coin ID (see: coins-cli market list)"),
    amount: str = typer.Argument(..., help="Quantity to buy"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Buy a coin
    """
    run_action(
        lambda: trade_action(TransactionType.BUY, coin_id, amount, None if yes else _ask_confirm),
        "Transaction failed",
        TRADE_MESSAGES,
    )


def sell(
    coin_id: str = typer.Argument(..., help="Coin ID (see: coins-cli portfolio view)"),
    amount: str = typer.Argument(..., help="Quantity to sell"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Sell a coin
    """
    run_action(
        lambda: trade_action(TransactionType.SELL, coin_id, amount, None if yes else _ask_confirm),
        "Transaction failed",
        TRADE_MESSAGES,
    )
