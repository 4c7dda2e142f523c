"""
Async HTTP client wrapper with an explicit middleware chain.

Request hooks transform a ``RequestContext`` before it is sent; response
hooks see every response (success or not) and may replace it, which is how
the auth middleware retries a request after a 401. Anything still non-2xx
after the hooks is logged and raised as ``ApiError``.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from coins_cli.config.settings import settings
from coins_cli.core.exceptions import ApiError, NetworkError, ResponseFormatError
from coins_cli.logger import logger


@dataclass
class RequestContext:
    """Everything needed to (re)issue one API call."""
    method: str
    path: str
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    # Set once a request has been replayed after a 401
    retried: bool = False
    # False for credential exchanges, where a 401 means bad credentials
    refresh_on_401: bool = True


RequestHook = Callable[[RequestContext], RequestContext]
ResponseHook = Callable[[httpx.Response, RequestContext, "HttpClient"], Awaitable[httpx.Response]]


class HttpClient:
    """
    Thin wrapper around ``httpx.AsyncClient`` bound to one base URL.

    Args:
        base_url: API root, e.g. ``https://api.example.com``
        timeout_ms: Request timeout in milliseconds
        name: Label used in log lines ("public", "auth")
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 10000,
        name: str = "public",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_ms / 1000.0
        self.request_hooks: List[RequestHook] = []
        self.response_hooks: List[ResponseHook] = []
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "Content-Type": "application/json",
                "User-Agent": settings.USER_AGENT,
            },
            transport=transport,
        )

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_base_url(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")
        self._client.base_url = self.base_url

    async def send(self, ctx: RequestContext) -> httpx.Response:
        """Run the middleware chain around one request."""
        for hook in self.request_hooks:
            ctx = hook(ctx)

        url = f"{self.base_url}{ctx.path}"
        logger.debug(f"[{self.name}] {ctx.method} {url} params={ctx.params or {}}")

        try:
            response = await self._client.request(
                ctx.method,
                ctx.path,
                params=ctx.params,
                json=ctx.json,
                headers=ctx.headers,
            )
        except httpx.TimeoutException as exc:
            logger.error(f"Network Error: {ctx.method} {url} timed out after {self.timeout}s")
            raise NetworkError(
                f"Request timed out after {self.timeout:g}s", method=ctx.method, url=url
            ) from exc
        except httpx.RequestError as exc:
            logger.error(f"Network Error: No response received from server ({ctx.method} {url}): {exc}")
            raise NetworkError(
                "No response received from server", method=ctx.method, url=url
            ) from exc

        for hook in self.response_hooks:
            response = await hook(response, ctx, self)

        if response.is_error:
            raise self._api_error(response, ctx)

        return response

    def _api_error(self, response: httpx.Response, ctx: RequestContext) -> ApiError:
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text[:500]

        logger.error(f"API Error: {response.status_code} - {response.reason_phrase} ({ctx.method} {ctx.path})")
        return ApiError(
            response.status_code,
            body=body,
            method=ctx.method,
            url=str(response.request.url),
            reason=response.reason_phrase,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        refresh_on_401: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` when empty)."""
        ctx = RequestContext(
            method=method.upper(), path=path, params=params, json=json, refresh_on_401=refresh_on_401
        )
        response = await self.send(ctx)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseFormatError(f"{method.upper()} {path} returned a non-JSON body") from exc

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, refresh_on_401: bool = True) -> Any:
        return await self.request("POST", path, json=json, refresh_on_401=refresh_on_401)
