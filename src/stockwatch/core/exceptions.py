"""Domain exceptions raised by the portfolio core and its persistence layer."""

from typing import Dict, Optional


class StockwatchError(Exception):
    """Base exception for Stock Watch domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(StockwatchError):
    """User-supplied data failed validation; the triggering action is blocked."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.field_errors = field_errors or {}


class PositionLimitError(StockwatchError):
    """Admitting a position would push its weight over the portfolio limit."""

    def __init__(self, symbol: str, weight: float, limit: float):
        super().__init__(
            f"Position {symbol} would be {weight:.1f}% of the portfolio, "
            f"which exceeds the {limit:.0f}% limit"
        )
        self.symbol = symbol
        self.weight = weight
        self.limit = limit


class PositionNotFoundError(StockwatchError):
    """No position with the given identifier exists in the set."""

    def __init__(self, position_id: str):
        super().__init__(f"Position with identifier '{position_id}' not found")
        self.position_id = position_id


class StorageError(StockwatchError):
    """A value could not be serialized or encrypted for persistence."""


class AccountingError(StockwatchError):
    """An accounting precondition was violated (e.g. a zero purchase price)."""
