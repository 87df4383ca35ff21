"""Portfolio accounting, risk rules and weekly reporting."""

from .exceptions import (
    AccountingError,
    InvalidInputError,
    PositionLimitError,
    PositionNotFoundError,
    StockwatchError,
    StorageError,
)
from .models import (
    Alert,
    AlertKind,
    AlertPriority,
    InformationalAlert,
    OverWeightAlert,
    PortfolioSnapshot,
    Position,
    PositionMetrics,
    RiskEvaluation,
    StopLossBreachAlert,
    TrailingStopAlert,
    WeeklyReport,
)

__all__ = [
    # Errors
    "AccountingError",
    "InvalidInputError",
    "PositionLimitError",
    "PositionNotFoundError",
    "StockwatchError",
    "StorageError",
    # Models
    "Alert",
    "AlertKind",
    "AlertPriority",
    "InformationalAlert",
    "OverWeightAlert",
    "PortfolioSnapshot",
    "Position",
    "PositionMetrics",
    "RiskEvaluation",
    "StopLossBreachAlert",
    "TrailingStopAlert",
    "WeeklyReport",
]
