"""Repository for portfolio positions, stocks and transactions."""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from ...core import accounting
from ...core.models import Position
from ..models import PortfolioPosition, Stock, StockPrice, Transaction
from .base import BaseRepository

DEFAULT_USER_ID = 1


class PortfolioRepository(BaseRepository):
    """Repository for the relational portfolio store."""

    def _latest_price(self, stock_id: int) -> Optional[StockPrice]:
        return self.session.scalars(
            select(StockPrice)
            .where(StockPrice.stock_id == stock_id)
            .order_by(StockPrice.price_date.desc())
            .limit(1)
        ).first()

    def _position_row(self, position: PortfolioPosition) -> Dict[str, Any]:
        latest = self._latest_price(position.stock_id)
        return {
            "id": position.id,
            "symbol": position.stock.symbol,
            "company_name": position.stock.company_name,
            "sector_name": position.stock.sector,
            "shares": position.shares,
            "avg_purchase_price": position.avg_purchase_price,
            "total_invested": position.total_invested,
            "stop_loss_price": position.stop_loss_price,
            "position_weight": position.position_weight,
            "notes": position.notes,
            "current_price": latest.close_price if latest else None,
            "price_updated_at": latest.price_date.isoformat() if latest else None,
        }

    def _held_positions(self, user_id: int) -> List[PortfolioPosition]:
        return list(
            self.session.scalars(
                select(PortfolioPosition).where(
                    PortfolioPosition.user_id == user_id,
                    PortfolioPosition.shares > 0,
                )
            )
        )

    def get_all_positions(self, user_id: int = DEFAULT_USER_ID) -> List[Dict[str, Any]]:
        """Held positions joined with their stock and latest price, largest first."""
        rows = [self._position_row(p) for p in self._held_positions(user_id)]
        rows.sort(key=lambda row: row["total_invested"], reverse=True)
        return rows

    def get_portfolio_positions(self, user_id: int = DEFAULT_USER_ID) -> List[Position]:
        """
        Held positions as accounting-engine positions with derived weights.

        Positions without a recorded price are valued at their average
        purchase price.
        """
        positions = []
        for row in self.get_all_positions(user_id):
            current = row["current_price"] or row["avg_purchase_price"]
            positions.append(
                Position(
                    id=str(row["id"]),
                    symbol=row["symbol"],
                    name=row["company_name"] or row["symbol"],
                    shares=row["shares"],
                    buy_price=row["avg_purchase_price"],
                    current_price=current,
                    stop_loss=row["stop_loss_price"],
                    sector=row["sector_name"] or "Other",
                    notes=row["notes"],
                )
            )
        return accounting.apply_weights(positions)

    def get_portfolio_summary(self, user_id: int = DEFAULT_USER_ID) -> Dict[str, Any]:
        """Position count, invested capital, current value and gain/loss."""
        summary = accounting.totals(self.get_portfolio_positions(user_id))
        return {
            "total_positions": len(self._held_positions(user_id)),
            "total_invested": summary["total_cost_basis"],
            "current_value": summary["total_market_value"],
            "total_gain_loss": summary["total_gain_loss"],
        }

    def _find_or_create_stock(self, data: Dict[str, Any]) -> Stock:
        symbol = data["symbol"].upper()
        stock = self.session.scalars(select(Stock).where(Stock.symbol == symbol)).first()
        if stock is None:
            stock = Stock(
                symbol=symbol,
                company_name=data.get("company_name") or symbol,
                sector=data.get("sector"),
            )
            self.session.add(stock)
            self.session.flush()
        return stock

    def _upsert_position(
        self, user_id: int, stock: Stock, data: Dict[str, Any]
    ) -> PortfolioPosition:
        position = self.session.scalars(
            select(PortfolioPosition)
            .where(
                PortfolioPosition.user_id == user_id,
                PortfolioPosition.stock_id == stock.id,
            )
            .with_for_update()
        ).first()

        shares = data["shares"]
        price = data["purchase_price"]

        if position is None:
            position = PortfolioPosition(
                user_id=user_id,
                stock=stock,
                shares=shares,
                avg_purchase_price=price,
                stop_loss_price=data.get("stop_loss"),
                position_weight=data.get("position_weight"),
                notes=data.get("notes"),
            )
            self.session.add(position)
        else:
            # Weighted-average purchase price across both lots
            total_shares = position.shares + shares
            position.avg_purchase_price = (
                position.shares * position.avg_purchase_price + shares * price
            ) / total_shares
            position.shares = total_shares

        self.session.flush()
        return position

    def _record_transaction(
        self, user_id: int, stock: Stock, data: Dict[str, Any]
    ) -> Transaction:
        transaction = Transaction(
            user_id=user_id,
            stock=stock,
            transaction_type="BUY",
            shares=data["shares"],
            price_per_share=data["purchase_price"],
            notes=data.get("notes"),
        )
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def add_position(self, data: Dict[str, Any], user_id: int = DEFAULT_USER_ID) -> Dict[str, Any]:
        """
        Add shares of a stock as one atomic sequence.

        Finds or creates the stock, upserts the position with a weighted-average
        purchase price and records a BUY transaction. Any failure rolls back all
        three steps.

        Args:
            data: Validated fields: symbol, shares, purchase_price and optional
                stop_loss, position_weight, notes, company_name, sector
            user_id: Owner of the position

        Returns:
            The stored position row
        """
        with self.atomic("add_position"):
            stock = self._find_or_create_stock(data)
            position = self._upsert_position(user_id, stock, data)
            self._record_transaction(user_id, stock, data)

        return self._position_row(position)

    def remove_position(
        self, position_id: int, user_id: int = DEFAULT_USER_ID
    ) -> Optional[Dict[str, Any]]:
        """Delete a position; returns the removed row or None when absent."""
        position = self.session.scalars(
            select(PortfolioPosition).where(
                PortfolioPosition.id == position_id,
                PortfolioPosition.user_id == user_id,
            )
        ).first()
        if position is None:
            return None

        row = self._position_row(position)
        with self.atomic("remove_position"):
            self.session.delete(position)
        return row

    def record_price(self, symbol: str, close_price: float, price_date) -> StockPrice:
        """Store a closing price for a known stock, replacing one for the same day."""
        with self.atomic("record_price"):
            stock = self._find_or_create_stock({"symbol": symbol})
            price = self.session.scalars(
                select(StockPrice).where(
                    StockPrice.stock_id == stock.id,
                    StockPrice.price_date == price_date,
                )
            ).first()
            if price is None:
                price = StockPrice(
                    stock_id=stock.id, close_price=close_price, price_date=price_date
                )
                self.session.add(price)
            else:
                price.close_price = close_price
        return price

    def count_transactions(self, user_id: int = DEFAULT_USER_ID) -> int:
        return self.session.scalar(
            select(func.count(Transaction.id)).where(Transaction.user_id == user_id)
        )
