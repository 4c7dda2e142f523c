"""
API data models
"""
from coins_cli.models.schemas import (
    AuthResult,
    Coin,
    Holding,
    MarketOverview,
    MarketStats,
    Portfolio,
    PricePoint,
    TradeReceipt,
    Transaction,
    UserInfo,
)

__all__ = [
    "AuthResult",
    "Coin",
    "Holding",
    "MarketOverview",
    "MarketStats",
    "Portfolio",
    "PricePoint",
    "TradeReceipt",
    "Transaction",
    "UserInfo",
]
