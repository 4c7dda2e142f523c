"""Integration Tests for the interactive shell

Menus are driven through stdin; option numbers follow the menu order
(main menu: 1 market ... 7 exit).
"""
import httpx
from typer.testing import CliRunner

from coins_cli.cli import interactive
from coins_cli.cli.interactive import InteractiveShell
from coins_cli.cli.main import app
from coins_cli.config.store import USER_ID, USER_TOKEN


runner = CliRunner()

COINS = [{"coin_id": 1, "name": "Bitcoin", "symbol": "BTC", "current_price": 50}]


class TestShellLoop:

    def test_exit_from_main_menu(self, logged_in):
        result = runner.invoke(app, ["interactive"], input="7\n")

        assert result.exit_code == 0, result.output
        assert "Main Menu" in result.output
        assert "Session ended" in result.output

    def test_end_of_input_ends_session(self, logged_in):
        result = runner.invoke(app, ["interactive"], input="")

        assert result.exit_code == 0
        assert "Session ended" in result.output

    def test_declining_login_says_goodbye(self, mock_api):
        result = runner.invoke(app, ["i"], input="n\nn\n")

        assert result.exit_code == 0
        assert "You are not logged in" in result.output
        assert "Goodbye!" in result.output
        assert mock_api.requests == []

    def test_market_list_then_exit(self, mock_api, logged_in):
        mock_api.add("GET", "/api/coins", (200, COINS))

        result = runner.invoke(app, ["interactive"], input="1\n1\n7\n")

        assert result.exit_code == 0, result.output
        assert "Bitcoin" in result.output
        assert "Session ended" in result.output

    def test_failed_action_returns_to_menu(self, mock_api, logged_in):
        mock_api.add("GET", "/api/market/stats", (500, {"message": "down"}))

        result = runner.invoke(app, ["interactive"], input="1\n5\n7\n")

        assert result.exit_code == 0, result.output
        assert "Server error occurred" in result.output
        assert result.output.index("Server error occurred") < result.output.rindex("Main Menu")
        assert "Session ended" in result.output

    def test_malformed_payload_does_not_end_session(self, mock_api, logged_in):
        mock_api.add("GET", "/api/coins", (200, [{"name": "NoId", "current_price": "N/A"}]))
        mock_api.add("GET", "/api/market/stats", (200, {"total_coins": 3}))

        result = runner.invoke(app, ["interactive"], input="1\n1\n1\n5\n7\n")

        assert result.exit_code == 0, result.output
        assert "unexpected response from server" in result.output
        assert result.output.index("unexpected response from server") < result.output.index("Total Coins")
        assert "Session ended" in result.output

    def test_unexpected_error_does_not_end_session(self, mock_api, logged_in, monkeypatch):
        async def explode():
            raise RuntimeError("kaboom")

        monkeypatch.setattr(interactive.market_commands, "stats_action", explode)
        mock_api.add("GET", "/api/coins", (200, COINS))

        result = runner.invoke(app, ["interactive"], input="1\n5\n1\n1\n7\n")

        assert result.exit_code == 0, result.output
        assert "Failed to fetch market statistics: kaboom" in result.output
        assert "Bitcoin" in result.output
        assert "Session ended" in result.output

    def test_q_cancels_prompt(self, mock_api, logged_in):
        result = runner.invoke(app, ["interactive"], input="1\n2\nq\n7\n")

        assert result.exit_code == 0, result.output
        assert "Cancelled" in result.output
        assert mock_api.requests == []

    def test_logout_ends_loop(self, logged_in):
        result = runner.invoke(app, ["interactive"], input="6\ny\n")

        assert result.exit_code == 0, result.output
        assert "Logged out successfully" in result.output
        assert logged_in.get(USER_TOKEN) is None


class TestShellLogin:

    def test_valid_session_skips_login(self, logged_in, mock_api):
        assert InteractiveShell().login() is True
        assert mock_api.requests == []

    def test_expired_session_is_cleared(self, memory_store, make_token, monkeypatch):
        memory_store.set(USER_TOKEN, make_token(ttl=-60))
        memory_store.set(USER_ID, 1)
        monkeypatch.setattr(interactive.Confirm, "ask", lambda *args, **kwargs: False)

        assert InteractiveShell().login() is False
        assert memory_store.get(USER_TOKEN) is None

    def test_login_retries_then_succeeds(self, mock_api, memory_store, make_token, monkeypatch):
        token = make_token(ttl=3600)
        attempts = []

        def login_route(request):
            attempts.append(request)
            if len(attempts) == 1:
                return httpx.Response(401, json={"message": "bad password"})
            return httpx.Response(200, json={"user": {"user_id": 3, "username": "bob", "funds": 10}, "token": token})

        mock_api.add("POST", "/api/users/login", login_route)
        monkeypatch.setattr(interactive.Confirm, "ask", lambda *args, **kwargs: True)
        monkeypatch.setattr(interactive.Prompt, "ask", lambda *args, **kwargs: "bob@example.com")

        assert InteractiveShell().login() is True
        assert len(attempts) == 2
        assert memory_store.get(USER_TOKEN) == token

    def test_three_failed_attempts(self, mock_api, monkeypatch):
        mock_api.add("POST", "/api/users/login", (401, {"message": "bad password"}))
        monkeypatch.setattr(interactive.Confirm, "ask", lambda *args, **kwargs: True)
        monkeypatch.setattr(interactive.Prompt, "ask", lambda *args, **kwargs: "bob@example.com")

        assert InteractiveShell().login() is False
        assert len(mock_api.requests) == 3
