"""Weekly report builder and plain-text export.

The drawdown figure here is a proxy: the worst single-position percent gain,
floored at -15%. It is not a historical peak-to-trough drawdown.
"""

from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..config.logging import get_logger
from . import risk
from .accounting import percent_gain, totals
from .models import (
    Alert,
    AlertPriority,
    InformationalAlert,
    OverWeightAlert,
    Performer,
    Position,
    Recommendation,
    RiskEvaluation,
    StopLossBreachAlert,
    TrailingStopAlert,
    WeeklyReport,
)

logger = get_logger(__name__)

DRAWDOWN_FLOOR = -15.0
REPORT_FILENAME_PREFIX = "raport-tygodniowy"

SCHEDULED_LEARNING = Recommendation(
    type="learn",
    priority=AlertPriority.LOW,
    title="CAN SLIM lesson: Outstanding earnings",
    description=(
        "Scheduled for Saturday: review the latest quarterly results of one "
        "holding alongside the O'Neil methodology lesson"
    ),
)


def week_period(as_of: date) -> str:
    """Label for the Monday-Sunday week containing as_of."""
    start = as_of - timedelta(days=as_of.weekday())
    end = start + timedelta(days=6)
    return f"{start.isoformat()} to {end.isoformat()}"


def recommendation_for(alert: Alert) -> Recommendation:
    """Turn an alert into a recommendation entry."""
    if isinstance(alert, StopLossBreachAlert):
        return Recommendation(
            type="action",
            priority=alert.priority,
            title=f"Review {alert.symbol} stop-loss",
            description=alert.message,
            source_alert_id=alert.id,
        )
    if isinstance(alert, OverWeightAlert):
        return Recommendation(
            type="rebalance",
            priority=alert.priority,
            title=f"Trim {alert.symbol} below {alert.limit:.0f}%",
            description=alert.message,
            source_alert_id=alert.id,
        )
    if isinstance(alert, TrailingStopAlert):
        return Recommendation(
            type="action",
            priority=alert.priority,
            title=f"Set a trailing stop on {alert.symbol}",
            description=alert.message,
            source_alert_id=alert.id,
        )
    if isinstance(alert, InformationalAlert):
        return Recommendation(
            type="info",
            priority=alert.priority,
            title="Weekly review",
            description=alert.message,
            source_alert_id=alert.id,
        )
    raise TypeError(f"Unhandled alert type: {type(alert).__name__}")


def _performers(
    positions: Sequence[Position],
) -> Tuple[Optional[Performer], Optional[Performer], List[float]]:
    best: Optional[Performer] = None
    worst: Optional[Performer] = None
    gains: List[float] = []

    for position in positions:
        gain = percent_gain(position)
        gains.append(gain)
        # Strict comparisons keep the first occurrence on ties
        if best is None or gain > best.percent_gain:
            best = Performer(symbol=position.symbol, percent_gain=gain)
        if worst is None or gain < worst.percent_gain:
            worst = Performer(symbol=position.symbol, percent_gain=gain)

    return best, worst, gains


def build_weekly_report(
    positions: Sequence[Position],
    benchmark_return: float,
    period: Optional[str] = None,
    as_of: Optional[datetime] = None,
    evaluation: Optional[RiskEvaluation] = None,
) -> WeeklyReport:
    """
    Aggregate accounting and risk output into a weekly report.

    Args:
        positions: Current position set (weights already derived)
        benchmark_return: Benchmark return percent for the period, supplied externally
        period: Period label; defaults to the week containing as_of
        as_of: Report time (defaults to current UTC time)
        evaluation: Precomputed risk evaluation for these positions

    Returns:
        WeeklyReport ready for rendering
    """
    as_of = as_of or datetime.now(timezone.utc)
    evaluation = evaluation or risk.evaluate(positions, now=as_of)

    # Only positions the risk pass could evaluate feed the figures
    valued = [p for p in positions if _is_valued(p)]

    summary = totals(valued)
    cost = summary["total_cost_basis"]
    portfolio_return = (
        (summary["total_market_value"] - cost) / cost * 100 if cost != 0 else 0.0
    )

    best, worst, gains = _performers(valued)
    drawdown = max(DRAWDOWN_FLOOR, min(gains)) if gains else 0.0

    recommendations = tuple(recommendation_for(a) for a in evaluation.alerts) + (
        SCHEDULED_LEARNING,
    )

    report = WeeklyReport(
        period=period or week_period(as_of.date()),
        portfolio_return=portfolio_return,
        benchmark_return=benchmark_return,
        alpha=portfolio_return - benchmark_return,
        best_performer=best,
        worst_performer=worst,
        drawdown_proxy=drawdown,
        recommendations=recommendations,
        stop_loss_alerts=len(
            [a for a in evaluation.alerts if isinstance(a, StopLossBreachAlert)]
        ),
        rebalance_needed=any(p.weight > risk.MAX_POSITION_WEIGHT for p in valued),
        generated_at=as_of,
        skipped_count=evaluation.skipped_count,
        position_count=len(valued),
    )

    logger.info(
        "Weekly report built",
        period=report.period,
        portfolio_return=round(portfolio_return, 2),
        recommendations=len(recommendations),
        rebalance_needed=report.rebalance_needed,
    )
    return report


def _is_valued(position: Position) -> bool:
    try:
        risk.check_position(position)
        return position.buy_price > 0 and isinstance(position.weight, (int, float))
    except (AttributeError, TypeError, ValueError):
        return False


def _signed(value: float) -> str:
    return f"{value:+.2f}%"


def render_report_text(report: WeeklyReport) -> str:
    """Render a report as the flat text block offered for download."""
    lines = [
        "WEEKLY PORTFOLIO REPORT",
        "=======================",
        "",
        f"Period: {report.period}",
        f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M')}",
        "",
        "RETURNS",
        f"Portfolio return: {_signed(report.portfolio_return)}",
        f"Benchmark return: {_signed(report.benchmark_return)}",
        f"Alpha: {_signed(report.alpha)}",
        f"Drawdown (proxy): {report.drawdown_proxy:.2f}%",
        "",
        "BEST AND WORST",
    ]

    if report.best_performer is not None:
        lines.append(
            f"Best performer: {report.best_performer.symbol} "
            f"({_signed(report.best_performer.percent_gain)})"
        )
    else:
        lines.append("Best performer: n/a")
    if report.worst_performer is not None:
        lines.append(
            f"Worst performer: {report.worst_performer.symbol} "
            f"({_signed(report.worst_performer.percent_gain)})"
        )
    else:
        lines.append("Worst performer: n/a")

    lines.extend(["", "RECOMMENDATIONS"])
    for index, rec in enumerate(report.recommendations, start=1):
        lines.append(f"{index}. [{rec.priority.value.upper()}] {rec.title}")
        lines.append(f"   {rec.description}")

    lines.extend(
        [
            "",
            "ALERTS",
            f"Stop-loss alerts: {report.stop_loss_alerts}",
            f"Rebalance needed: {'YES' if report.rebalance_needed else 'NO'}",
        ]
    )
    if report.skipped_count:
        lines.append(f"Skipped records: {report.skipped_count}")

    return "\n".join(lines) + "\n"


def report_filename(day: date) -> str:
    return f"{REPORT_FILENAME_PREFIX}-{day.isoformat()}.txt"


def export_report(report: WeeklyReport, directory: Union[str, Path]) -> Path:
    """
    Write the rendered report to a text file.

    Args:
        report: Report to export
        directory: Target directory, created when missing

    Returns:
        Path of the written file
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / report_filename(report.generated_at.date())
    path.write_text(render_report_text(report), encoding="utf-8")

    logger.info("Weekly report exported", path=str(path))
    return path
