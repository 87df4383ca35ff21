"""Data models for the portfolio accounting and risk engine."""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

DEFAULT_SECTOR = "Other"


def _positive(data: Dict[str, Any], key: str) -> float:
    value = float(data[key])
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"Position record has a non-positive {key}: {data[key]!r}")
    return value


@dataclass(frozen=True)
class Position:
    """One held equity/ETF lot.

    ``weight`` is derived from the rest of the portfolio and is never taken as
    authoritative input; see ``accounting.apply_weights``.
    """

    id: str
    symbol: str
    name: str
    shares: float
    buy_price: float
    current_price: float
    stop_loss: Optional[float] = None
    sector: str = DEFAULT_SECTOR
    weight: float = 0.0
    notes: Optional[str] = None
    date_added: Optional[str] = None

    def with_weight(self, weight: float) -> "Position":
        return replace(self, weight=weight)

    def with_price(self, current_price: float) -> "Position":
        return replace(self, current_price=current_price)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys of the persisted position list."""
        data = {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "shares": self.shares,
            "buyPrice": self.buy_price,
            "currentPrice": self.current_price,
            "sector": self.sector,
            "weight": self.weight,
        }
        if self.stop_loss is not None:
            data["stopLoss"] = self.stop_loss
        if self.notes:
            data["notes"] = self.notes
        if self.date_added:
            data["dateAdded"] = self.date_added
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        """Build a position from its persisted form.

        Share counts and prices must be finite and positive; a record that
        breaks this is treated as corrupt rather than loaded.

        Raises:
            KeyError, TypeError, ValueError: when the record is malformed
        """
        symbol = str(data["symbol"]).strip().upper()
        if not symbol:
            raise ValueError("Position record has an empty symbol")

        stop_loss = data.get("stopLoss")
        return cls(
            id=str(data["id"]),
            symbol=symbol,
            name=str(data.get("name") or symbol),
            shares=_positive(data, "shares"),
            buy_price=_positive(data, "buyPrice"),
            current_price=_positive(data, "currentPrice"),
            stop_loss=_positive(data, "stopLoss") if stop_loss is not None else None,
            sector=str(data.get("sector") or DEFAULT_SECTOR),
            weight=float(data.get("weight") or 0.0),
            notes=data.get("notes"),
            date_added=data.get("dateAdded"),
        )


@dataclass(frozen=True)
class PositionMetrics:
    """Valuation of a single position."""

    position_id: str
    symbol: str
    market_value: float
    cost_basis: float
    gain_loss: float
    percent_gain: float


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Derived totals for a position set; recomputed on every read."""

    total_market_value: float
    total_cost_basis: float
    total_gain_loss: float
    positions: Tuple[PositionMetrics, ...] = ()

    @property
    def position_count(self) -> int:
        return len(self.positions)


class AlertKind(Enum):
    """Kinds of risk alerts."""

    STOP_LOSS_BREACH = "stop-loss-breach"
    OVER_WEIGHT = "over-weight"
    TRAILING_STOP_CANDIDATE = "trailing-stop-candidate"
    INFORMATIONAL = "informational"


class AlertPriority(Enum):
    """Alert priority levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Alert:
    """Base alert record. Concrete kinds carry their own payload fields."""

    kind: ClassVar[AlertKind]
    priority: ClassVar[AlertPriority]

    id: str
    message: str
    timestamp: datetime

    def payload(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "priority": self.priority.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            **self.payload(),
        }


@dataclass(frozen=True)
class StopLossBreachAlert(Alert):
    kind: ClassVar[AlertKind] = AlertKind.STOP_LOSS_BREACH
    priority: ClassVar[AlertPriority] = AlertPriority.HIGH

    position_id: str
    symbol: str
    current_price: float
    stop_loss: float

    def payload(self) -> Dict[str, Any]:
        return {
            "positionId": self.position_id,
            "symbol": self.symbol,
            "currentPrice": self.current_price,
            "stopLoss": self.stop_loss,
        }


@dataclass(frozen=True)
class OverWeightAlert(Alert):
    kind: ClassVar[AlertKind] = AlertKind.OVER_WEIGHT
    priority: ClassVar[AlertPriority] = AlertPriority.HIGH

    position_id: str
    symbol: str
    weight: float
    limit: float

    def payload(self) -> Dict[str, Any]:
        return {
            "positionId": self.position_id,
            "symbol": self.symbol,
            "weight": self.weight,
            "limit": self.limit,
        }


@dataclass(frozen=True)
class TrailingStopAlert(Alert):
    kind: ClassVar[AlertKind] = AlertKind.TRAILING_STOP_CANDIDATE
    priority: ClassVar[AlertPriority] = AlertPriority.MEDIUM

    position_id: str
    symbol: str
    percent_gain: float
    threshold: float

    def payload(self) -> Dict[str, Any]:
        return {
            "positionId": self.position_id,
            "symbol": self.symbol,
            "percentGain": self.percent_gain,
            "threshold": self.threshold,
        }


@dataclass(frozen=True)
class InformationalAlert(Alert):
    kind: ClassVar[AlertKind] = AlertKind.INFORMATIONAL
    priority: ClassVar[AlertPriority] = AlertPriority.LOW

    topic: str

    def payload(self) -> Dict[str, Any]:
        return {"topic": self.topic}


@dataclass(frozen=True)
class RiskEvaluation:
    """Outcome of one risk-rule pass."""

    alerts: Tuple[Alert, ...]
    evaluated_count: int
    skipped_count: int
    evaluated_at: datetime

    def of_kind(self, kind: AlertKind) -> List[Alert]:
        return [alert for alert in self.alerts if alert.kind is kind]


@dataclass(frozen=True)
class Performer:
    """A position singled out by its percent gain."""

    symbol: str
    percent_gain: float


@dataclass(frozen=True)
class Recommendation:
    """One entry of the weekly recommendation list."""

    type: str
    priority: AlertPriority
    title: str
    description: str
    source_alert_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "sourceAlertId": self.source_alert_id,
        }


@dataclass(frozen=True)
class WeeklyReport:
    """Weekly portfolio review, built on demand and exported as text."""

    period: str
    portfolio_return: float
    benchmark_return: float
    alpha: float
    best_performer: Optional[Performer]
    worst_performer: Optional[Performer]
    drawdown_proxy: float
    recommendations: Tuple[Recommendation, ...]
    stop_loss_alerts: int
    rebalance_needed: bool
    generated_at: datetime
    skipped_count: int = 0
    position_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        def performer(p: Optional[Performer]) -> Optional[Dict[str, Any]]:
            if p is None:
                return None
            return {"symbol": p.symbol, "return": p.percent_gain}

        return {
            "period": self.period,
            "portfolioReturn": self.portfolio_return,
            "benchmarkReturn": self.benchmark_return,
            "alpha": self.alpha,
            "bestPerformer": performer(self.best_performer),
            "worstPerformer": performer(self.worst_performer),
            "maxDrawdown": self.drawdown_proxy,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "stopLossAlerts": self.stop_loss_alerts,
            "rebalanceNeeded": self.rebalance_needed,
            "generatedAt": self.generated_at.isoformat(),
            "skippedCount": self.skipped_count,
            "positionCount": self.position_count,
        }
