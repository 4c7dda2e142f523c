"""
Session handling for the authenticated API client.

Owns the session fields in the config store, the local expiry check on the
bearer token, the ``require_auth`` gate used by commands, and the 401
handling installed on the authenticated ``HttpClient``.

401 handling is single-flight: the first request that sees a 401 starts a
refresh, every other request that sees a 401 meanwhile parks a future on
``failed_queue``. When the refresh settles the queue is drained once, every
waiter getting the same token or the same error.
"""
import asyncio
import base64
import json
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from coins_cli.cli import display
from coins_cli.config.store import (
    SESSION_KEYS,
    USER_FUNDS,
    USER_ID,
    USER_NAME,
    USER_TOKEN,
    ConfigStore,
    get_config_store,
)
from coins_cli.core.exceptions import AuthenticationError, SessionExpiredError
from coins_cli.logger import logger
from coins_cli.services.http_client import HttpClient, RequestContext


@dataclass
class Session:
    """Snapshot of the stored session; missing fields are ``None``."""
    user_id: Optional[int]
    username: Optional[str]
    token: Optional[str]
    funds: Optional[float]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "token": self.token,
            "funds": self.funds,
        }


class AuthMiddleware:
    """
    Session gate plus 401 interceptor.

    Args:
        store: Where the session fields live
        exit_func: Called with the exit code when the process must stop
            (``sys.exit`` in the CLI, a recorder in tests)
        clock: Returns the current time in seconds since epoch
    """

    def __init__(
        self,
        store: ConfigStore,
        exit_func: Callable[[int], Any] = sys.exit,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.exit_func = exit_func
        self.clock = clock
        self.is_refreshing = False
        self.failed_queue: List[asyncio.Future] = []

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def is_authenticated(self) -> bool:
        """True when both a token and a user id are stored. Expiry is not checked."""
        return bool(self.store.get(USER_TOKEN)) and self.store.get(USER_ID) is not None

    @staticmethod
    def decode_claims(token: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Decode the claim payload of a JWT-shaped token.

        The signature is never verified. Returns ``None`` for anything that
        is not three dot-separated segments with a JSON object in the middle.
        """
        if not isinstance(token, str):
            return None
        parts = token.split(".")
        if len(parts) != 3 or not parts[1]:
            return None

        segment = parts[1]
        segment += "=" * (-len(segment) % 4)
        try:
            payload = base64.urlsafe_b64decode(segment.encode("ascii"))
            claims = json.loads(payload.decode("utf-8"))
        except ValueError:
            return None

        return claims if isinstance(claims, dict) else None

    def validate_token(self, token: Optional[str]) -> bool:
        """True iff the token decodes and its ``exp`` lies strictly in the future."""
        claims = self.decode_claims(token)
        if claims is None:
            return False
        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return False
        return exp > self.clock()

    def get_current_user(self) -> Session:
        return Session(
            user_id=self.store.get(USER_ID),
            username=self.store.get(USER_NAME),
            token=self.store.get(USER_TOKEN),
            funds=self.store.get(USER_FUNDS),
        )

    def require_auth(self) -> Session:
        """
        Return the current session or stop the process.

        An expired token clears the stored session before exiting. Never
        returns when authentication fails: ``exit_func(1)`` is called and, if
        it returns (tests), an ``AuthenticationError`` is raised.
        """
        if not self.is_authenticated():
            logger.info("Command requires authentication, no session stored")
            display.error("Authentication required")
            display.info("Please run: coins-cli login")
            self.exit_func(1)
            raise AuthenticationError("Authentication required")

        token = self.store.get(USER_TOKEN)
        if not self.validate_token(token):
            logger.info("Stored token is expired or malformed, clearing session")
            self.clear_auth()
            display.warning("Your session has expired")
            display.info("Please run: coins-cli login")
            self.exit_func(1)
            raise SessionExpiredError("Session expired")

        return self.get_current_user()

    def save_session(self, token: str, user_id: int, username: Optional[str], funds: Optional[float]) -> None:
        self.store.set(USER_TOKEN, token)
        self.store.set(USER_ID, user_id)
        self.store.set(USER_NAME, username)
        self.store.set(USER_FUNDS, funds)
        logger.info(f"Session stored for user {username} (id={user_id})")

    def update_funds(self, funds: Optional[float]) -> None:
        if funds is None:
            return
        self.store.set(USER_FUNDS, funds)

    def clear_auth(self) -> None:
        for key in SESSION_KEYS:
            self.store.delete(key)
        logger.info("Session cleared")

    # ------------------------------------------------------------------
    # Refresh coordination
    # ------------------------------------------------------------------

    def process_queue(self, error: Optional[BaseException], token: Optional[str] = None) -> None:
        """Settle every parked request with ``error`` or ``token``, then empty the queue."""
        queue, self.failed_queue = self.failed_queue, []
        if queue:
            logger.debug(f"Draining {len(queue)} queued request(s) ({'failed' if error else 'resolved'})")
        for future in queue:
            if future.done():
                continue
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(token)

    async def refresh_token(self) -> str:
        """
        There is no refresh endpoint: a rejected session forces a logout.

        Fails every queued request, clears the session and stops the process.
        """
        error = SessionExpiredError("Session expired. Please login again.")
        self.process_queue(error)
        self.clear_auth()
        logger.warning("Server rejected the session token, logging out")
        display.warning("Session expired. Please login again.")
        self.exit_func(1)
        raise error

    def setup_interceptors(self, client: HttpClient) -> HttpClient:
        client.request_hooks.append(self._attach_token)
        client.response_hooks.append(self._handle_unauthorized)
        return client

    def _attach_token(self, ctx: RequestContext) -> RequestContext:
        token = self.store.get(USER_TOKEN)
        if token:
            ctx.headers.setdefault("Authorization", f"Bearer {token}")
        return ctx

    async def _handle_unauthorized(
        self, response: httpx.Response, ctx: RequestContext, client: HttpClient
    ) -> httpx.Response:
        if response.status_code != 401 or ctx.retried or not ctx.refresh_on_401:
            return response

        if self.is_refreshing:
            future = asyncio.get_running_loop().create_future()
            self.failed_queue.append(future)
            logger.debug(f"Refresh in progress, queueing {ctx.method} {ctx.path}")
            token = await future
            ctx.retried = True
            ctx.headers["Authorization"] = f"Bearer {token}"
            return await client.send(ctx)

        ctx.retried = True
        self.is_refreshing = True
        try:
            token = await self.refresh_token()
        except Exception as exc:
            self.process_queue(exc)
            raise
        finally:
            self.is_refreshing = False

        self.process_queue(None, token)
        ctx.headers["Authorization"] = f"Bearer {token}"
        return await client.send(ctx)


_auth: Optional[AuthMiddleware] = None


def get_auth_middleware() -> AuthMiddleware:
    """Process-wide middleware bound to the process-wide config store."""
    global _auth
    if _auth is None or _auth.store is not get_config_store():
        _auth = AuthMiddleware(get_config_store())
    return _auth


def reset_auth_middleware() -> None:
    global _auth
    _auth = None
