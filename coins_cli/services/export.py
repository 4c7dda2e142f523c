"""
Write portfolios and transaction histories to JSON or CSV files.
"""
import csv
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Optional, Union

from coins_cli.core.enums import ExportFormat
from coins_cli.core.exceptions import ExportError
from coins_cli.logger import logger
from coins_cli.models.schemas import Portfolio, Transaction


PORTFOLIO_HEADERS = [
    "Coin Name",
    "Coin Symbol",
    "Quantity",
    "Current Price",
    "Current Value",
    "Total Invested",
    "P&L",
    "P&L %",
]

TRANSACTION_HEADERS = [
    "Transaction ID",
    "Type",
    "Coin Name",
    "Coin Symbol",
    "Quantity",
    "Price per Coin",
    "Total Amount",
    "Timestamp",
]


def default_filename(prefix: str, today: Optional[date] = None) -> str:
    """``<prefix>-YYYY-MM-DD``"""
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}"


def _target(filename: Union[str, Path], fmt: ExportFormat) -> Path:
    path = Path(f"{filename}.{fmt.value}")
    if path.parent != Path("."):
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _export_error(path, e) from e
    return path


def _export_error(path: Path, error: OSError) -> ExportError:
    logger.error(f"Export to {path} failed: {error}")
    return ExportError(f"Cannot write {path}: {error.strerror or error}", path=str(path))


def _iso(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
    except ValueError:
        return value


def _write(path: Path, fmt: ExportFormat, payload: Any, headers: Optional[List[str]] = None) -> None:
    """CSV ``payload`` is a list of rows under ``headers``; JSON is dumped as is."""
    try:
        if fmt == ExportFormat.CSV:
            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(headers or [])
                writer.writerows(payload)
        else:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
    except OSError as e:
        raise _export_error(path, e) from e


def export_portfolio(
    portfolio: Portfolio,
    fmt: ExportFormat = ExportFormat.JSON,
    filename: Optional[str] = None,
) -> Path:
    """Write ``portfolio`` and return the path written."""
    fmt = ExportFormat(fmt)
    path = _target(filename or default_filename("portfolio"), fmt)

    if fmt == ExportFormat.CSV:
        rows = [
            [
                h.coin_name,
                h.coin_symbol,
                h.quantity,
                h.current_price,
                h.current_value,
                h.total_invested,
                round(h.profit_loss, 2),
                f"{h.profit_loss_percent:.2f}%",
            ]
            for h in portfolio.holdings
        ]
        _write(path, fmt, rows, PORTFOLIO_HEADERS)
    else:
        data = {
            "holdings": [h.model_dump() for h in portfolio.holdings],
            "available_funds": portfolio.available_funds,
        }
        _write(path, fmt, data)

    logger.info(f"Exported {len(portfolio.holdings)} holdings to {path}")
    return path


def export_transactions(
    transactions: List[Transaction],
    fmt: ExportFormat = ExportFormat.JSON,
    filename: Optional[str] = None,
) -> Path:
    """Write ``transactions`` and return the path written."""
    fmt = ExportFormat(fmt)
    path = _target(filename or default_filename("transactions"), fmt)

    if fmt == ExportFormat.CSV:
        rows = [
            [
                t.transaction_id,
                t.type,
                t.coin_name or "",
                t.symbol or "",
                t.quantity,
                t.price,
                t.total_amount,
                _iso(t.created_at),
            ]
            for t in transactions
        ]
        _write(path, fmt, rows, TRANSACTION_HEADERS)
    else:
        _write(path, fmt, [t.model_dump() for t in transactions])

    logger.info(f"Exported {len(transactions)} transactions to {path}")
    return path
