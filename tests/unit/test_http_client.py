"""Unit Tests for the HTTP client wrapper and the two API clients"""
import httpx
import pytest

from coins_cli.config.store import USER_TOKEN
from coins_cli.core.exceptions import ApiError, NetworkError, ResponseFormatError
from coins_cli.services.api import CoinsApi, create_api
from coins_cli.services.http_client import HttpClient, RequestContext
from tests.fixtures.api_fixtures import BASE_URL, RecordingTransport


class TestHttpClient:
    """Test HttpClient.send and helpers."""

    @pytest.mark.asyncio
    async def test_get_returns_json(self):
        recorder = RecordingTransport({("GET", "/api/coins"): (200, [{"coin_id": 1}])})

        async with HttpClient(BASE_URL, transport=recorder.transport) as client:
            assert await client.get("/api/coins") == [{"coin_id": 1}]

    @pytest.mark.asyncio
    async def test_default_headers(self):
        recorder = RecordingTransport({("POST", "/api/users/login"): (200, {})})

        async with HttpClient(BASE_URL, transport=recorder.transport) as client:
            await client.post("/api/users/login", json={"email": "a@b.c"})

        request = recorder.requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"].startswith("coins-cli/")

    @pytest.mark.asyncio
    async def test_error_status_raises_api_error(self):
        recorder = RecordingTransport({("GET", "/api/coins/9"): (404, {"msg": "Coin not found"})})

        async with HttpClient(BASE_URL, transport=recorder.transport) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/api/coins/9")

        error = exc_info.value
        assert error.status_code == 404
        assert error.server_message == "Coin not found"
        assert error.url == f"{BASE_URL}/api/coins/9"
        assert error.method == "GET"

    @pytest.mark.asyncio
    async def test_transport_error_raises_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with HttpClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.get("/api/coins")

        assert exc_info.value.url == f"{BASE_URL}/api/coins"

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with HttpClient(BASE_URL, timeout_ms=500, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(NetworkError, match="timed out"):
                await client.get("/api/coins")

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        recorder = RecordingTransport({("GET", "/api/coins"): lambda r: httpx.Response(200, text="<html>")})

        async with HttpClient(BASE_URL, transport=recorder.transport) as client:
            with pytest.raises(ResponseFormatError):
                await client.get("/api/coins")

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self):
        recorder = RecordingTransport({("POST", "/api/x"): lambda r: httpx.Response(204)})

        async with HttpClient(BASE_URL, transport=recorder.transport) as client:
            assert await client.post("/api/x") is None

    @pytest.mark.asyncio
    async def test_request_hooks_run_in_order(self):
        recorder = RecordingTransport({("GET", "/api/coins"): (200, [])})
        client = HttpClient(BASE_URL, transport=recorder.transport)

        def first(ctx: RequestContext) -> RequestContext:
            ctx.headers["X-Trace"] = "1"
            return ctx

        def second(ctx: RequestContext) -> RequestContext:
            ctx.headers["X-Trace"] += "2"
            return ctx

        client.request_hooks.extend([first, second])
        async with client:
            await client.get("/api/coins")

        assert recorder.requests[0].headers["X-Trace"] == "12"


class TestApiClients:
    """Public vs authenticated client behaviour."""

    @pytest.mark.asyncio
    async def test_public_request_has_no_authorization(self, memory_store):
        memory_store.set(USER_TOKEN, "xyz")
        recorder = RecordingTransport({("GET", "/api/coins"): (200, [])})

        async with create_api(transport=recorder.transport) as api:
            await api.get_coins()

        request = recorder.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api.example.com/api/coins"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_authenticated_request_has_bearer(self, memory_store):
        memory_store.set(USER_TOKEN, "xyz")
        recorder = RecordingTransport({("GET", "/api/coins"): (200, [])})

        async with create_api(transport=recorder.transport) as api:
            await api.authed.get("/api/coins")

        request = recorder.requests[0]
        assert str(request.url) == "https://api.example.com/api/coins"
        assert request.headers["Authorization"] == "Bearer xyz"

    @pytest.mark.asyncio
    async def test_set_base_url_persists(self, memory_store):
        recorder = RecordingTransport({("GET", "/api/coins"): (200, [])})
        api = CoinsApi(BASE_URL, transport=recorder.transport, store=memory_store)

        api.set_base_url("https://other.example.com")
        await api.get_coins()
        await api.aclose()

        assert memory_store.get("api.baseUrl") == "https://other.example.com"
        assert str(recorder.requests[0].url) == "https://other.example.com/api/coins"
