"""Position accounting: valuation, gain/loss and portfolio weights.

All functions are pure; identical inputs give identical outputs.
"""

from typing import Dict, Iterable, List, Sequence

from .exceptions import AccountingError
from .models import PortfolioSnapshot, Position, PositionMetrics


def market_value(position: Position) -> float:
    return position.shares * position.current_price


def cost_basis(position: Position) -> float:
    return position.shares * position.buy_price


def gain_loss(position: Position) -> float:
    return market_value(position) - cost_basis(position)


def percent_gain(position: Position) -> float:
    """
    Percent change from purchase price to current price.

    Raises:
        AccountingError: If the purchase price is not positive
    """
    if position.buy_price <= 0:
        raise AccountingError(
            f"Cannot compute percent gain for {position.symbol or position.id}: "
            f"purchase price must be positive, got {position.buy_price}"
        )
    return (position.current_price - position.buy_price) / position.buy_price * 100


def portfolio_weight(candidate_market_value: float, existing_total_market_value: float) -> float:
    """
    Weight a candidate position would have once admitted to the portfolio.

    Args:
        candidate_market_value: Market value of the position being added
        existing_total_market_value: Market value of everything already held

    Returns:
        Percent of the combined portfolio, 0 when both values are zero
    """
    combined = existing_total_market_value + candidate_market_value
    if combined == 0:
        return 0.0
    return candidate_market_value / combined * 100


def totals(positions: Iterable[Position]) -> Dict[str, float]:
    positions = list(positions)
    total_market_value = sum(market_value(p) for p in positions)
    total_cost_basis = sum(cost_basis(p) for p in positions)
    return {
        "total_market_value": total_market_value,
        "total_cost_basis": total_cost_basis,
        "total_gain_loss": total_market_value - total_cost_basis,
    }


def position_metrics(position: Position) -> PositionMetrics:
    return PositionMetrics(
        position_id=position.id,
        symbol=position.symbol,
        market_value=market_value(position),
        cost_basis=cost_basis(position),
        gain_loss=gain_loss(position),
        percent_gain=percent_gain(position),
    )


def snapshot(positions: Sequence[Position]) -> PortfolioSnapshot:
    """Build the derived view of a position set."""
    summary = totals(positions)
    return PortfolioSnapshot(
        total_market_value=summary["total_market_value"],
        total_cost_basis=summary["total_cost_basis"],
        total_gain_loss=summary["total_gain_loss"],
        positions=tuple(position_metrics(p) for p in positions),
    )


def apply_weights(positions: Sequence[Position]) -> List[Position]:
    """Return copies of positions with weight set to their share of market value."""
    total = totals(positions)["total_market_value"]
    if total == 0:
        return [p.with_weight(0.0) for p in positions]
    return [p.with_weight(market_value(p) / total * 100) for p in positions]
