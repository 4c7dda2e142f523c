"""Unit Tests for display formatting helpers"""
import pytest

from coins_cli.cli import display


class TestFormatCurrency:

    @pytest.mark.parametrize(
        "amount,currency,expected",
        [
            (1234.56, "GBP", "£1,234.56"),
            (0, "GBP", "£0.00"),
            (None, "GBP", "£0.00"),
            (-5, "GBP", "-£5.00"),
            (1000000, "USD", "$1,000,000.00"),
            (9.999, "EUR", "€10.00"),
            (10, "chf", "CHF 10.00"),
        ],
    )
    def test_format_currency(self, amount, currency, expected):
        assert display.format_currency(amount, currency) == expected

    def test_defaults_to_gbp(self):
        assert display.format_currency(1) == "£1.00"


class TestFormatPercentage:

    def test_positive_is_green_with_sign(self):
        assert display.format_percentage(1.234) == "[green]+1.23%[/green]"

    def test_zero_is_positive(self):
        assert display.format_percentage(0) == "[green]+0.00%[/green]"

    def test_negative_is_red(self):
        assert display.format_percentage(-1.5) == "[red]-1.50%[/red]"


class TestProfitLoss:

    def test_gain(self):
        assert display.format_profit_loss(12.5) == "[green]+£12.50[/green]"

    def test_loss_uses_absolute_value(self):
        assert display.format_profit_loss(-3) == "[red]-£3.00[/red]"


class TestMisc:

    def test_format_quantity(self):
        assert display.format_quantity(2.0) == "2"
        assert display.format_quantity(0.125) == "0.125"

    def test_format_timestamp(self):
        assert display.format_timestamp(None) == "-"
        assert display.format_timestamp("not a date") == "not a date"
        assert display.format_timestamp("2024-01-02T03:04:05") == "2024-01-02 03:04:05"

    def test_tables_have_expected_columns(self):
        assert len(display.coin_table().columns) == 6
        assert len(display.portfolio_table().columns) == 6
        assert len(display.portfolio_table(with_ids=True).columns) == 7
        assert len(display.transaction_table().columns) == 7
