"""
Enumerations shared by the API layer and the CLI.
"""
from enum import Enum


class TimeRange(str, Enum):
    """Price history windows understood by the API."""
    TEN_MINUTES = "10M"
    THIRTY_MINUTES = "30M"
    ONE_HOUR = "1H"
    TWO_HOURS = "2H"
    TWELVE_HOURS = "12H"
    ONE_DAY = "24H"
    ALL = "ALL"


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class SortField(str, Enum):
    """Portfolio sort keys, all descending."""
    VALUE = "value"
    PROFIT = "profit"
    QUANTITY = "quantity"
