"""Risk rule engine producing alerts from the current position set."""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..config.logging import get_logger
from .accounting import percent_gain
from .exceptions import AccountingError
from .models import (
    Alert,
    InformationalAlert,
    OverWeightAlert,
    Position,
    RiskEvaluation,
    StopLossBreachAlert,
    TrailingStopAlert,
)

logger = get_logger(__name__)

MAX_POSITION_WEIGHT = 25.0
TRAILING_STOP_GAIN_THRESHOLD = 10.0

WEEKLY_REPORT_ALERT_ID = "weekly-report"


def check_position(position: Position) -> None:
    """Reject records the rules cannot be evaluated against."""
    if not isinstance(position.symbol, str) or not position.symbol.strip():
        raise ValueError("missing symbol")
    if not position.id:
        raise ValueError("missing identifier")
    if position.shares is None or position.shares <= 0:
        raise ValueError("shares must be positive")
    if position.current_price is None or position.current_price <= 0:
        raise ValueError("current price must be positive")


def _position_alerts(position: Position, now: datetime) -> List[Alert]:
    alerts: List[Alert] = []
    gain = percent_gain(position)

    if position.stop_loss is not None and position.current_price <= position.stop_loss:
        alerts.append(
            StopLossBreachAlert(
                id=f"stop-loss-{position.id}",
                message=(
                    f"{position.symbol} reached its stop-loss level "
                    f"({position.current_price:.2f} <= {position.stop_loss:.2f})"
                ),
                timestamp=now,
                position_id=position.id,
                symbol=position.symbol,
                current_price=position.current_price,
                stop_loss=position.stop_loss,
            )
        )

    if position.weight > MAX_POSITION_WEIGHT:
        alerts.append(
            OverWeightAlert(
                id=f"over-weight-{position.id}",
                message=(
                    f"{position.symbol} is {position.weight:.1f}% of the portfolio, "
                    f"above the {MAX_POSITION_WEIGHT:.0f}% position limit"
                ),
                timestamp=now,
                position_id=position.id,
                symbol=position.symbol,
                weight=position.weight,
                limit=MAX_POSITION_WEIGHT,
            )
        )

    if gain > TRAILING_STOP_GAIN_THRESHOLD:
        alerts.append(
            TrailingStopAlert(
                id=f"trailing-stop-{position.id}",
                message=(
                    f"{position.symbol} is up {gain:.1f}% (over "
                    f"{TRAILING_STOP_GAIN_THRESHOLD:.0f}%), consider a trailing stop"
                ),
                timestamp=now,
                position_id=position.id,
                symbol=position.symbol,
                percent_gain=gain,
                threshold=TRAILING_STOP_GAIN_THRESHOLD,
            )
        )

    return alerts


def evaluate(
    positions: Iterable[Position], now: Optional[datetime] = None
) -> RiskEvaluation:
    """
    Run every rule against every position.

    A position that cannot be evaluated is skipped and counted; it never stops
    the pass. The weekly-report notice is emitted once per pass.

    Args:
        positions: Current position set
        now: Timestamp stamped on generated alerts (defaults to current UTC time)

    Returns:
        RiskEvaluation with alerts in rule order per position
    """
    now = now or datetime.now(timezone.utc)
    alerts: List[Alert] = []
    evaluated = 0
    skipped = 0

    for position in positions:
        try:
            check_position(position)
            alerts.extend(_position_alerts(position, now))
            evaluated += 1
        except (AccountingError, AttributeError, TypeError, ValueError) as e:
            skipped += 1
            logger.warning(
                "Skipping position in risk evaluation",
                position_id=getattr(position, "id", None),
                reason=str(e),
            )

    alerts.append(
        InformationalAlert(
            id=WEEKLY_REPORT_ALERT_ID,
            message="Weekly portfolio review is available",
            timestamp=now,
            topic="weekly-report",
        )
    )

    logger.info(
        "Risk evaluation completed",
        evaluated=evaluated,
        skipped=skipped,
        alert_count=len(alerts),
    )

    return RiskEvaluation(
        alerts=tuple(alerts),
        evaluated_count=evaluated,
        skipped_count=skipped,
        evaluated_at=now,
    )
