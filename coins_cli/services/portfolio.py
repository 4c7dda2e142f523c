"""
Portfolio analytics computed from a fetched ``Portfolio``.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from coins_cli.core.enums import SortField
from coins_cli.models.schemas import Holding, Portfolio


@dataclass
class PortfolioSummary:
    total_value: float
    total_invested: float
    total_profit_loss: float
    total_profit_loss_percent: float
    available_funds: float
    holdings_count: int
    profitable_count: int
    success_rate: float
    top_performers: List[Holding] = field(default_factory=list)


def filter_holdings(
    holdings: List[Holding],
    symbol: Optional[str] = None,
    profitable: bool = False,
    losing: bool = False,
    sort: Optional[SortField] = None,
) -> List[Holding]:
    """
    Filter and sort holdings.

    Args:
        holdings: Holdings to filter (not modified)
        symbol: Case-insensitive substring of the coin symbol
        profitable: Keep only positions with a gain
        losing: Keep only positions with a loss
        sort: Sort key, highest first

    Returns:
        New list of matching holdings
    """
    result = list(holdings)

    if symbol:
        needle = symbol.lower()
        result = [h for h in result if needle in h.coin_symbol.lower()]
    if profitable:
        result = [h for h in result if h.profit_loss > 0]
    if losing:
        result = [h for h in result if h.profit_loss < 0]

    if sort is not None:
        sort = SortField(sort)
        if sort == SortField.VALUE:
            result.sort(key=lambda h: h.current_value, reverse=True)
        elif sort == SortField.PROFIT:
            result.sort(key=lambda h: h.profit_loss, reverse=True)
        elif sort == SortField.QUANTITY:
            result.sort(key=lambda h: h.quantity, reverse=True)

    return result


def summarize(portfolio: Portfolio, top: int = 3) -> PortfolioSummary:
    """Totals, success rate and the best ``top`` positions by P&L %."""
    holdings = portfolio.holdings
    profitable_count = sum(1 for h in holdings if h.profit_loss > 0)
    success_rate = profitable_count / len(holdings) * 100 if holdings else 0.0
    ranked = sorted(holdings, key=lambda h: h.profit_loss_percent, reverse=True)

    return PortfolioSummary(
        total_value=portfolio.total_value,
        total_invested=portfolio.total_invested,
        total_profit_loss=portfolio.total_profit_loss,
        total_profit_loss_percent=portfolio.total_profit_loss_percent,
        available_funds=portfolio.available_funds,
        holdings_count=len(holdings),
        profitable_count=profitable_count,
        success_rate=success_rate,
        top_performers=ranked[:top],
    )
