"""API Fixtures

In-memory config store, JWT-shaped token factory and a recording
``httpx.MockTransport`` so no test touches the network or the real config.
"""
import base64
import json
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from coins_cli.cli.context import state
from coins_cli.config.settings import settings
from coins_cli.config.store import (
    API_BASE_URL,
    USER_FUNDS,
    USER_ID,
    USER_NAME,
    USER_TOKEN,
    MemoryConfigStore,
    reset_config_store,
    set_config_store,
)
from coins_cli.logger import logger_manager
from coins_cli.services.auth_middleware import AuthMiddleware, reset_auth_middleware


BASE_URL = "https://api.example.com"

Route = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


def _b64(data: Dict[str, Any]) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def build_token(exp: Optional[float] = None, **claims) -> str:
    """Unsigned JWT-shaped token; ``exp`` omitted when None."""
    payload = dict(claims)
    if exp is not None:
        payload["exp"] = exp
    return f"{_b64({'alg': 'HS256', 'typ': 'JWT'})}.{_b64(payload)}.signature"


class RecordingTransport:
    """Route table served through ``httpx.MockTransport``; keeps every request."""

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Route]] = None):
        self.routes: Dict[Tuple[str, str], Route] = dict(routes or {})
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def add(self, method: str, path: str, route: Route) -> None:
        self.routes[(method.upper(), path)] = route

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)


class ExitRecorder:
    """Stands in for ``sys.exit``: records the code and returns."""

    def __init__(self):
        self.codes: List[int] = []

    def __call__(self, code: int = 0) -> None:
        self.codes.append(code)


@pytest.fixture(autouse=True)
def memory_store():
    """Fresh in-memory store installed as the process-wide store."""
    store = MemoryConfigStore({API_BASE_URL: BASE_URL})
    set_config_store(store)
    reset_auth_middleware()
    state.debug = False
    state.verbose = False
    state.transport = None
    yield store
    state.transport = None
    # --debug/--verbose lower the console level for the rest of the process
    if logger_manager.get_level() != settings.LOGGER.console_level.upper():
        logger_manager.set_level(settings.LOGGER.console_level)
    reset_auth_middleware()
    reset_config_store()


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory: ``make_token(exp)`` or ``make_token(ttl=60)``."""
    def _make(exp: Optional[float] = None, ttl: Optional[float] = None, **claims) -> str:
        if exp is None and ttl is not None:
            exp = int(time.time() + ttl)
        return build_token(exp, **claims)
    return _make


@pytest.fixture
def logged_in(memory_store, make_token):
    """Store with a valid session for user 1 (alice)."""
    token = make_token(ttl=3600, sub="1")
    memory_store.set(USER_TOKEN, token)
    memory_store.set(USER_ID, 1)
    memory_store.set(USER_NAME, "alice")
    memory_store.set(USER_FUNDS, 500)
    return memory_store


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()


@pytest.fixture
def auth(memory_store, exit_recorder) -> AuthMiddleware:
    """Middleware over the memory store that does not exit the process."""
    return AuthMiddleware(memory_store, exit_func=exit_recorder)


@pytest.fixture
def mock_api() -> RecordingTransport:
    """Recording transport, also installed for CLI commands."""
    recorder = RecordingTransport()
    state.transport = recorder.transport
    return recorder
