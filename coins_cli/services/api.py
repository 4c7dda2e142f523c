"""Coins API service

One coroutine per remote endpoint, returning pydantic models. The server
wraps some payloads (``{"coins": [...]}``, ``{"data": {...}}``) and not
others; unwrapping happens here so commands only see models.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Type, TypeVar, Union

import httpx
import pydantic

from coins_cli.config.settings import settings
from coins_cli.config.store import API_BASE_URL, API_TIMEOUT, ConfigStore, get_config_store
from coins_cli.core.enums import TimeRange
from coins_cli.core.exceptions import ResponseFormatError
from coins_cli.logger import logger
from coins_cli.models.schemas import (
    AuthResult,
    Coin,
    MarketOverview,
    MarketStats,
    Portfolio,
    PricePoint,
    TradeReceipt,
    Transaction,
)
from coins_cli.services.auth_middleware import AuthMiddleware, get_auth_middleware
from coins_cli.services.http_client import HttpClient


Model = TypeVar("Model", bound=pydantic.BaseModel)


def _validate(model: Type[Model], data: Any) -> Model:
    """Build ``model`` from a 2xx body; a body the model rejects is a format error."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        logger.error(f"Malformed {model.__name__} in response: {exc.error_count()} error(s)")
        raise ResponseFormatError(f"Malformed {model.__name__} in response: {exc}") from exc


def _unwrap_list(payload: Any, keys: Iterable[str]) -> Optional[List[Dict[str, Any]]]:
    """Return the list itself or the first list found under one of ``keys``."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
            # {"data": {"coins": [...]}}
            if isinstance(value, dict):
                nested = _unwrap_list(value, keys)
                if nested is not None:
                    return nested
    return None


def _expect_list(payload: Any, keys: Iterable[str], what: str) -> List[Dict[str, Any]]:
    items = _unwrap_list(payload, tuple(keys))
    if items is None:
        raise ResponseFormatError(f"Unexpected {what} response shape")
    return items


def _unwrap_object(payload: Any, keys: Iterable[str], required: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the object itself or the object found under one of ``keys``.

    When ``required`` is given the bare payload is only accepted if it
    carries that field, otherwise a wrapping key must match.
    """
    if not isinstance(payload, dict):
        raise ResponseFormatError("Expected a JSON object")
    for key in keys:
        value = payload.get(key)
        if isinstance(value, dict):
            return value
    if required is None or required in payload:
        return payload
    raise ResponseFormatError(f"Response has no '{required}' field")


class CoinsApi:
    """
    Client for the Coins trading API.

    Market reads go through the public client, everything tied to a user
    goes through the authenticated one.
    """

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 10000,
        auth: Optional[AuthMiddleware] = None,
        store: Optional[ConfigStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store or get_config_store()
        self.auth = auth or get_auth_middleware()
        self.public = HttpClient(base_url, timeout_ms, name="public", transport=transport)
        self.authed = self.auth.setup_interceptors(
            HttpClient(base_url, timeout_ms, name="auth", transport=transport)
        )

    async def aclose(self) -> None:
        await self.public.aclose()
        await self.authed.aclose()

    def set_base_url(self, url: str) -> None:
        """Point both clients at ``url`` and persist it."""
        self.public.set_base_url(url)
        self.authed.set_base_url(url)
        self.store.set(API_BASE_URL, url)
        logger.info(f"API base URL set to {url}")

    # ==================== Authentication ====================
    # A 401 here means bad credentials, not a rejected session

    async def register(self, username: str, email: str, password: str) -> AuthResult:
        payload = await self.authed.post(
            "/api/users/register",
            json={"username": username, "email": email, "password": password},
            refresh_on_401=False,
        )
        return self._auth_result(payload)

    async def login(self, email: str, password: str) -> AuthResult:
        payload = await self.authed.post(
            "/api/users/login",
            json={"email": email, "password": password},
            refresh_on_401=False,
        )
        return self._auth_result(payload)

    @staticmethod
    def _auth_result(payload: Any) -> AuthResult:
        body = _unwrap_object(payload, ("data",), required="user")
        if not isinstance(body.get("user"), dict):
            raise ResponseFormatError("Authentication response has no user")
        return _validate(AuthResult, body)

    # ==================== Coins ====================

    async def get_coins(self) -> List[Coin]:
        payload = await self.public.get("/api/coins")
        return [_validate(Coin, c) for c in _expect_list(payload, ("coins", "data"), "coins")]

    async def get_coin(self, coin_id: Union[int, str]) -> Coin:
        payload = await self.public.get(f"/api/coins/{coin_id}")
        return _validate(Coin, _unwrap_object(payload, ("coin", "data")))

    async def get_coin_history(
        self,
        coin_id: Union[int, str],
        page: int = 1,
        limit: int = 10,
        time_range: Optional[TimeRange] = None,
    ) -> List[PricePoint]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if time_range is not None:
            params["timeRange"] = TimeRange(time_range).value
        payload = await self.public.get(f"/api/coins/{coin_id}/price-history", params=params)
        items = _expect_list(payload, ("history", "priceHistory", "data"), "price history")
        return [_validate(PricePoint, p) for p in items]

    # ==================== Market ====================

    async def get_market_history(self, time_range: TimeRange = TimeRange.THIRTY_MINUTES) -> MarketOverview:
        payload = await self.public.get(
            "/api/market/price-history", params={"timeRange": TimeRange(time_range).value}
        )
        return _validate(MarketOverview, _unwrap_object(payload, ("data",)))

    async def get_market_stats(self) -> MarketStats:
        payload = await self.public.get("/api/market/stats")
        return _validate(MarketStats, _unwrap_object(payload, ("stats", "data")))

    # ==================== Transactions ====================

    async def buy(self, user_id: int, coin_id: Union[int, str], amount: float) -> TradeReceipt:
        return await self._trade("buy", user_id, coin_id, amount)

    async def sell(self, user_id: int, coin_id: Union[int, str], amount: float) -> TradeReceipt:
        return await self._trade("sell", user_id, coin_id, amount)

    async def _trade(self, side: str, user_id: int, coin_id: Union[int, str], amount: float) -> TradeReceipt:
        logger.info(f"Submitting {side} of {amount} coin={coin_id} user={user_id}")
        payload = await self.authed.post(
            f"/api/transactions/{side}",
            json={"user_id": int(user_id), "coin_id": coin_id, "amount": amount},
        )
        return _validate(TradeReceipt, _unwrap_object(payload, ("data", "transaction")))

    async def get_user_transactions(self, user_id: int, limit: int = 10) -> List[Transaction]:
        payload = await self.authed.get(f"/api/transactions/user/{user_id}", params={"limit": limit})
        items = _expect_list(payload, ("transactions", "data"), "transactions")
        return [_validate(Transaction, t) for t in items]

    async def get_transaction(self, transaction_id: Union[int, str]) -> Transaction:
        payload = await self.authed.get(f"/api/transactions/{transaction_id}")
        return _validate(Transaction, _unwrap_object(payload, ("transaction", "data")))

    async def get_portfolio(self, user_id: int) -> Portfolio:
        payload = await self.authed.get(f"/api/transactions/portfolio/{user_id}")
        if isinstance(payload, list):
            payload = {"holdings": payload}
        body = _unwrap_object(payload, ("data",))
        return _validate(Portfolio, body)


@asynccontextmanager
async def create_api(
    store: Optional[ConfigStore] = None,
    auth: Optional[AuthMiddleware] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[CoinsApi]:
    """Build a ``CoinsApi`` from the stored base URL and timeout, closing it on exit."""
    store = store or get_config_store()
    auth = auth or get_auth_middleware()
    api = CoinsApi(
        base_url=store.get(API_BASE_URL, settings.DEFAULT_API_BASE_URL),
        timeout_ms=int(store.get(API_TIMEOUT, settings.DEFAULT_API_TIMEOUT_MS)),
        auth=auth,
        store=store,
        transport=transport,
    )
    try:
        yield api
    finally:
        await api.aclose()
