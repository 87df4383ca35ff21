"""Portfolio service: the single owner of the persisted position set."""

import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..config.logging import get_logger, log_audit_event
from ..core import accounting, report, risk, validators
from ..core.exceptions import (
    InvalidInputError,
    PositionLimitError,
    PositionNotFoundError,
)
from ..core.models import (
    DEFAULT_SECTOR,
    PortfolioSnapshot,
    Position,
    RiskEvaluation,
    WeeklyReport,
)
from ..storage import POSITIONS_KEY, SecureStorage

logger = get_logger(__name__)


@dataclass(frozen=True)
class PositionPreview:
    """Prospective size of a position before it is admitted."""

    total_value: float
    weight: float
    exceeds_limit: bool


class PortfolioService:
    """
    Holds the authoritative in-memory copy of the position set.

    Every mutation reads the full set, changes it, re-derives weights and
    writes the full set back under one lock. Callers only ever get immutable
    positions and derived views.
    """

    def __init__(self, storage: SecureStorage, symbol_allow_digits: bool = True):
        self.storage = storage
        self.symbol_allow_digits = symbol_allow_digits
        self._positions: Tuple[Position, ...] = ()
        self._lock = threading.RLock()
        self._loaded = False
        self.last_alerts: Optional[RiskEvaluation] = None
        self.logger = logger.bind(service="portfolio_service")

    # Reading

    def load(self) -> Tuple[Position, ...]:
        """
        Read the position set from storage, skipping malformed records.

        Returns:
            Loaded positions with derived weights
        """
        with self._lock:
            raw = self.storage.get(POSITIONS_KEY)
            if not isinstance(raw, list):
                if raw is not None:
                    self.logger.warning(
                        "Stored positions are not a list, ignoring",
                        value_type=type(raw).__name__,
                    )
                raw = []

            positions: List[Position] = []
            skipped = 0
            for record in raw:
                try:
                    positions.append(Position.from_dict(record))
                except (KeyError, TypeError, ValueError) as e:
                    skipped += 1
                    self.logger.warning("Skipping malformed position", error=str(e))

            self._positions = tuple(accounting.apply_weights(positions))
            self._loaded = True

            self.logger.info(
                "Portfolio loaded", position_count=len(self._positions), skipped=skipped
            )
            return self._positions

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @property
    def positions(self) -> Tuple[Position, ...]:
        with self._lock:
            self._ensure_loaded()
            return self._positions

    def get_position(self, position_id: str) -> Position:
        for position in self.positions:
            if position.id == position_id:
                return position
        raise PositionNotFoundError(position_id)

    def snapshot(self) -> PortfolioSnapshot:
        return accounting.snapshot(self.positions)

    def total_market_value(self) -> float:
        return accounting.totals(self.positions)["total_market_value"]

    # Mutations

    def _commit(self, positions: List[Position]) -> Tuple[Position, ...]:
        weighted = tuple(accounting.apply_weights(positions))
        self.storage.put(POSITIONS_KEY, [p.to_dict() for p in weighted])
        self._positions = weighted
        return weighted

    def preview_position(self, shares: float, current_price: float) -> PositionPreview:
        """Weight a position would have if it were added now."""
        total_value = shares * current_price
        weight = accounting.portfolio_weight(total_value, self.total_market_value())
        return PositionPreview(
            total_value=total_value,
            weight=weight,
            exceeds_limit=weight > risk.MAX_POSITION_WEIGHT,
        )

    def _validate_fields(
        self,
        symbol: Any,
        shares: Any,
        buy_price: Any,
        current_price: Any,
        stop_loss: Any,
    ) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not validators.validate_symbol(symbol, allow_digits=self.symbol_allow_digits):
            errors["symbol"] = "Symbol must be 1-10 uppercase letters" + (
                " or digits" if self.symbol_allow_digits else ""
            )
        if not validators.validate_shares(shares):
            errors["shares"] = "Shares must be between 0.0001 and 1,000,000"
        if not validators.validate_price(buy_price):
            errors["buy_price"] = "Purchase price must be between 0.01 and 100,000"
        if not validators.validate_price(current_price):
            errors["current_price"] = "Current price must be between 0.01 and 100,000"
        if stop_loss is not None and not validators.validate_price(stop_loss):
            errors["stop_loss"] = "Stop loss must be between 0.01 and 100,000"
        return errors

    def add_position(
        self,
        symbol: str,
        shares: Union[float, str],
        buy_price: Union[float, str],
        current_price: Union[float, str],
        name: Optional[str] = None,
        sector: Optional[str] = None,
        stop_loss: Optional[Union[float, str]] = None,
        notes: Optional[str] = None,
        enforce_weight_limit: bool = True,
    ) -> Position:
        """
        Validate and admit a new position.

        The weight limit is checked against the existing holdings before the
        position is admitted. The first position of an empty portfolio is
        exempt, as is any position added with enforce_weight_limit=False.

        Raises:
            InvalidInputError: If any field fails validation
            PositionLimitError: If the position would exceed the weight limit
        """
        symbol = symbol.strip().upper() if isinstance(symbol, str) else symbol
        if stop_loss == "":
            stop_loss = None

        errors = self._validate_fields(symbol, shares, buy_price, current_price, stop_loss)
        if errors:
            self.logger.warning("Position rejected by validation", field_errors=errors)
            raise InvalidInputError("Invalid position data", field_errors=errors)

        shares_value = validators.parse_number(shares)
        current_value = validators.parse_number(current_price)

        with self._lock:
            self._ensure_loaded()
            preview = self.preview_position(shares_value, current_value)
            if enforce_weight_limit and self._positions and preview.exceeds_limit:
                self.logger.warning(
                    "Position rejected by weight limit",
                    symbol=symbol,
                    weight=round(preview.weight, 1),
                )
                raise PositionLimitError(symbol, preview.weight, risk.MAX_POSITION_WEIGHT)

            clean_name = validators.sanitize_string(name)
            clean_sector = validators.sanitize_string(sector)
            clean_notes = validators.sanitize_string(notes)
            position = Position(
                id=uuid.uuid4().hex,
                symbol=symbol,
                name=clean_name or symbol,
                shares=shares_value,
                buy_price=validators.parse_number(buy_price),
                current_price=current_value,
                stop_loss=validators.parse_number(stop_loss) if stop_loss is not None else None,
                sector=clean_sector or DEFAULT_SECTOR,
                notes=clean_notes or None,
                date_added=datetime.now(timezone.utc).isoformat(),
            )

            committed = self._commit(list(self._positions) + [position])
            added = committed[-1]

        log_audit_event(
            "position_added",
            position_id=added.id,
            symbol=added.symbol,
            weight=round(added.weight, 1),
        )
        return added

    def replace_position(self, position: Position) -> Position:
        """
        Replace a position wholesale, keeping its identifier.

        Raises:
            InvalidInputError: If the replacement fails validation
            PositionNotFoundError: If no position has that identifier
        """
        errors = self._validate_fields(
            position.symbol,
            position.shares,
            position.buy_price,
            position.current_price,
            position.stop_loss,
        )
        if errors:
            raise InvalidInputError("Invalid position data", field_errors=errors)

        position = replace(
            position,
            name=validators.sanitize_string(position.name) or position.symbol,
            sector=validators.sanitize_string(position.sector) or DEFAULT_SECTOR,
            notes=validators.sanitize_string(position.notes) or None,
        )

        with self._lock:
            self._ensure_loaded()
            ids = [p.id for p in self._positions]
            if position.id not in ids:
                raise PositionNotFoundError(position.id)

            updated = list(self._positions)
            updated[ids.index(position.id)] = position
            committed = self._commit(updated)

        log_audit_event("position_replaced", position_id=position.id)
        return next(p for p in committed if p.id == position.id)

    def remove_position(self, position_id: str) -> bool:
        """Remove a position; returns False when no such position exists."""
        with self._lock:
            self._ensure_loaded()
            remaining = [p for p in self._positions if p.id != position_id]
            if len(remaining) == len(self._positions):
                self.logger.info("Position not found for removal", position_id=position_id)
                return False
            self._commit(remaining)

        log_audit_event("position_removed", position_id=position_id)
        return True

    def update_prices(self, quotes: Mapping[str, Union[float, str]]) -> int:
        """
        Apply current prices supplied by an external price source.

        Args:
            quotes: Mapping of symbol to current price; invalid prices are ignored

        Returns:
            Number of positions whose price changed
        """
        with self._lock:
            self._ensure_loaded()
            changed = 0
            updated = []
            for position in self._positions:
                quote = quotes.get(position.symbol)
                if quote is not None and validators.validate_price(quote):
                    price = validators.parse_number(quote)
                    if price != position.current_price:
                        position = position.with_price(price)
                        changed += 1
                updated.append(position)

            if changed:
                self._commit(updated)

        self.logger.info("Prices updated", changed=changed, quotes=len(quotes))
        return changed

    # Derived outputs

    def evaluate_alerts(self, now: Optional[datetime] = None) -> RiskEvaluation:
        """Run the risk rules; the result is cached for display only."""
        evaluation = risk.evaluate(self.positions, now=now)
        self.last_alerts = evaluation
        return evaluation

    def weekly_report(
        self,
        benchmark_return: float,
        period: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> WeeklyReport:
        positions = self.positions
        evaluation = self.evaluate_alerts(now=as_of)
        return report.build_weekly_report(
            positions,
            benchmark_return,
            period=period,
            as_of=evaluation.evaluated_at,
            evaluation=evaluation,
        )

    def export_weekly_report(
        self,
        directory: Union[str, Path],
        benchmark_return: float,
        period: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> Path:
        weekly = self.weekly_report(benchmark_return, period=period, as_of=as_of)
        return report.export_report(weekly, directory)
