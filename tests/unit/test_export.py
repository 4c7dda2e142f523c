"""Unit Tests for portfolio and transaction export"""
import csv
import json
from datetime import date

import pytest

from coins_cli.core.enums import ExportFormat
from coins_cli.core.exceptions import ExportError
from coins_cli.models.schemas import Portfolio, Transaction
from coins_cli.services.export import (
    PORTFOLIO_HEADERS,
    TRANSACTION_HEADERS,
    default_filename,
    export_portfolio,
    export_transactions,
)


PORTFOLIO = Portfolio.model_validate({
    "holdings": [
        {"coin_name": "Bitcoin", "coin_symbol": "BTC", "quantity": 2, "current_price": 75,
         "total_invested": 100},
    ],
    "available_funds": 50,
})

TRANSACTIONS = [
    Transaction.model_validate({
        "transaction_id": 7, "type": "BUY", "coin_name": "Bitcoin", "symbol": "BTC",
        "quantity": 2, "price": 50, "total_amount": 100, "created_at": "2024-03-01T12:00:00Z",
    }),
]


class TestDefaultFilename:

    def test_date_suffix(self):
        assert default_filename("portfolio", date(2024, 5, 6)) == "portfolio-2024-05-06"


class TestExportPortfolio:

    def test_json(self, tmp_path):
        path = export_portfolio(PORTFOLIO, ExportFormat.JSON, str(tmp_path / "pf"))

        assert path.name == "pf.json"
        data = json.loads(path.read_text())
        assert data["available_funds"] == 50
        assert data["holdings"][0]["coin_symbol"] == "BTC"
        assert data["holdings"][0]["profit_loss"] == 50

    def test_csv(self, tmp_path):
        path = export_portfolio(PORTFOLIO, "csv", str(tmp_path / "pf"))

        rows = list(csv.reader(path.read_text().splitlines()))
        assert rows[0] == PORTFOLIO_HEADERS
        assert rows[1][0:2] == ["Bitcoin", "BTC"]
        assert rows[1][-1] == "50.00%"

    def test_default_filename_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = export_portfolio(PORTFOLIO)

        assert path.name.startswith("portfolio-") and path.suffix == ".json"
        assert (tmp_path / path).exists()


class TestExportTransactions:

    def test_csv(self, tmp_path):
        path = export_transactions(TRANSACTIONS, ExportFormat.CSV, str(tmp_path / "tx"))

        rows = list(csv.reader(path.read_text().splitlines()))
        assert rows[0] == TRANSACTION_HEADERS
        assert rows[1][0] == "7"
        assert rows[1][-1] == "2024-03-01T12:00:00+00:00"

    def test_json(self, tmp_path):
        path = export_transactions(TRANSACTIONS, ExportFormat.JSON, str(tmp_path / "tx"))

        data = json.loads(path.read_text())
        assert data[0]["transaction_id"] == 7


class TestExportErrors:

    def test_target_is_a_directory(self, tmp_path):
        (tmp_path / "pf.json").mkdir()

        with pytest.raises(ExportError, match="Cannot write") as exc_info:
            export_portfolio(PORTFOLIO, ExportFormat.JSON, str(tmp_path / "pf"))

        assert exc_info.value.path == str(tmp_path / "pf.json")

    def test_parent_is_a_file(self, tmp_path):
        (tmp_path / "blocker").write_text("")

        with pytest.raises(ExportError):
            export_transactions(TRANSACTIONS, ExportFormat.CSV, str(tmp_path / "blocker" / "tx"))
