"""Unit Tests for portfolio analytics"""
import pytest

from coins_cli.core.enums import SortField
from coins_cli.models.schemas import Holding, Portfolio
from coins_cli.services.portfolio import filter_holdings, summarize


def _holding(symbol, value, invested, quantity=1.0):
    return Holding.model_validate({
        "coin_name": symbol.title(),
        "coin_symbol": symbol,
        "quantity": quantity,
        "current_value": value,
        "total_invested": invested,
    })


@pytest.fixture
def holdings():
    return [
        _holding("BTC", 150, 100, quantity=0.5),
        _holding("ETH", 80, 100, quantity=3),
        _holding("DOGE", 30, 10, quantity=1000),
        _holding("BTCX", 10, 10, quantity=2),
    ]


class TestFilterHoldings:

    def test_symbol_is_case_insensitive_substring(self, holdings):
        result = filter_holdings(holdings, symbol="btc")

        assert [h.coin_symbol for h in result] == ["BTC", "BTCX"]

    def test_profitable_only(self, holdings):
        assert [h.coin_symbol for h in filter_holdings(holdings, profitable=True)] == ["BTC", "DOGE"]

    def test_losing_only(self, holdings):
        assert [h.coin_symbol for h in filter_holdings(holdings, losing=True)] == ["ETH"]

    @pytest.mark.parametrize(
        "sort,expected",
        [
            (SortField.VALUE, ["BTC", "ETH", "DOGE", "BTCX"]),
            (SortField.PROFIT, ["BTC", "DOGE", "BTCX", "ETH"]),
            ("quantity", ["DOGE", "ETH", "BTCX", "BTC"]),
        ],
    )
    def test_sorting_is_descending(self, holdings, sort, expected):
        assert [h.coin_symbol for h in filter_holdings(holdings, sort=sort)] == expected

    def test_input_is_not_modified(self, holdings):
        before = [h.coin_symbol for h in holdings]
        filter_holdings(holdings, sort=SortField.QUANTITY)

        assert [h.coin_symbol for h in holdings] == before


class TestSummarize:

    def test_summary(self, holdings):
        summary = summarize(Portfolio(holdings=holdings, available_funds=25))

        assert summary.total_value == 270
        assert summary.total_invested == 220
        assert summary.total_profit_loss == 50
        assert summary.holdings_count == 4
        assert summary.profitable_count == 2
        assert summary.success_rate == pytest.approx(50.0)
        assert [h.coin_symbol for h in summary.top_performers] == ["DOGE", "BTC", "BTCX"]
        assert summary.available_funds == 25

    def test_empty_portfolio_has_no_division_by_zero(self):
        summary = summarize(Portfolio())

        assert summary.success_rate == 0.0
        assert summary.total_profit_loss_percent == 0.0
        assert summary.top_performers == []
