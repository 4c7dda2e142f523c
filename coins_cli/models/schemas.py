"""
Response models for the Coins API.

The API is not consistent about field names (``coin_name`` vs ``name``,
``quantity`` vs ``total_amount``) or numeric types (numbers vs numeric
strings); the models accept every spelling seen in practice so the command
layer only deals with one shape.
"""
from typing import Annotated, Any, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)


def _coerce_number(value: Any) -> Any:
    """None and empty strings count as zero, numeric strings are parsed."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        return float(value.strip())
    return value


Number = Annotated[float, BeforeValidator(_coerce_number)]
Identifier = Union[int, str]


class ApiModel(BaseModel):
    """Base for every response model."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserInfo(ApiModel):
    """User record returned by login/register"""
    user_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("user_id", "userId", "id"))
    username: Optional[str] = None
    email: Optional[str] = None
    funds: Optional[float] = None
    created_at: Optional[str] = None


class AuthResult(ApiModel):
    """Normalised login/register response"""
    user: UserInfo
    token: Optional[str] = None


class Coin(ApiModel):
    """Coin listing / details"""
    coin_id: Identifier = Field(validation_alias=AliasChoices("coin_id", "id"))
    name: str = ""
    symbol: str = ""
    current_price: Number = 0.0
    market_cap: Number = 0.0
    price_change_24h: Number = Field(default=0.0, validation_alias=AliasChoices("price_change_24h", "price_change"))
    founder: Optional[str] = None
    description: Optional[str] = None


class PricePoint(ApiModel):
    """Single entry of a coin's price history"""
    timestamp: Optional[str] = Field(default=None, validation_alias=AliasChoices("timestamp", "created_at"))
    price: Number = 0.0
    price_change: Number = 0.0


class TrendPoint(ApiModel):
    timestamp: Optional[str] = None
    value: Number = 0.0


class MarketOverview(ApiModel):
    """Aggregate market value over a time range"""
    total_value: Number = 0.0
    total_volume: Number = 0.0
    trends: List[TrendPoint] = Field(default_factory=list)


class CoinChange(ApiModel):
    """Entry of the top gainers / losers lists"""
    symbol: str = ""
    name: Optional[str] = None
    price_change_24h: Number = Field(default=0.0, validation_alias=AliasChoices("price_change_24h", "price_change"))


class MarketStats(ApiModel):
    """Market-wide statistics"""
    total_coins: int = 0
    total_market_cap: Number = 0.0
    total_volume_24h: Number = 0.0
    market_change_24h: Number = 0.0
    top_gainers: List[CoinChange] = Field(default_factory=list)
    top_losers: List[CoinChange] = Field(default_factory=list)


class Holding(ApiModel):
    """One position in the user's portfolio"""
    coin_id: Optional[Identifier] = None
    coin_name: str = Field(default="", validation_alias=AliasChoices("coin_name", "name"))
    coin_symbol: str = Field(default="", validation_alias=AliasChoices("coin_symbol", "symbol"))
    quantity: Number = Field(default=0.0, validation_alias=AliasChoices("quantity", "total_amount"))
    current_price: Number = 0.0
    current_value: Optional[Number] = None
    total_invested: Number = 0.0

    @model_validator(mode="after")
    def _fill_current_value(self) -> "Holding":
        if self.current_value is None:
            self.current_value = self.quantity * self.current_price
        return self

    @computed_field
    @property
    def profit_loss(self) -> float:
        return self.current_value - self.total_invested

    @computed_field
    @property
    def profit_loss_percent(self) -> float:
        if not self.total_invested:
            return 0.0
        return self.profit_loss / self.total_invested * 100


class Portfolio(ApiModel):
    """Holdings plus the cash the user has left"""
    holdings: List[Holding] = Field(default_factory=list, validation_alias=AliasChoices("holdings", "portfolio"))
    available_funds: Number = Field(default=0.0, validation_alias=AliasChoices("available_funds", "user_funds", "funds"))

    @property
    def total_value(self) -> float:
        return sum(h.current_value for h in self.holdings)

    @property
    def total_invested(self) -> float:
        return sum(h.total_invested for h in self.holdings)

    @property
    def total_profit_loss(self) -> float:
        return self.total_value - self.total_invested

    @property
    def total_profit_loss_percent(self) -> float:
        invested = self.total_invested
        return self.total_profit_loss / invested * 100 if invested > 0 else 0.0


class Transaction(ApiModel):
    """Buy or sell record"""
    transaction_id: Identifier = Field(validation_alias=AliasChoices("transaction_id", "id"))
    type: str = ""
    user_id: Optional[Identifier] = None
    coin_id: Optional[Identifier] = None
    coin_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("coin_name", "name"))
    symbol: Optional[str] = Field(default=None, validation_alias=AliasChoices("symbol", "coin_symbol"))
    quantity: Number = Field(default=0.0, validation_alias=AliasChoices("quantity", "amount"))
    price: Number = Field(default=0.0, validation_alias=AliasChoices("price", "price_per_coin"))
    total_amount: Number = 0.0
    created_at: Optional[str] = None
    status: Optional[str] = None


class TradeReceipt(ApiModel):
    """Result of a buy/sell call"""
    transaction_id: Optional[Identifier] = Field(default=None, validation_alias=AliasChoices("transaction_id", "id"))
    total_amount: Number = 0.0
    funds: Optional[float] = Field(default=None, validation_alias=AliasChoices("user_funds", "funds", "remaining_funds"))
