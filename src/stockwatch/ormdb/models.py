"""SQLAlchemy ORM models for the portfolio backend."""

import datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class Stock(Base):
    """A listed symbol positions and prices refer to."""

    __tablename__ = "stocks"

    id = Column(Integer, primary_key=True, index=True)
    symbol = Column(String(10), unique=True, nullable=False, index=True)
    company_name = Column(String, nullable=True)
    sector = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    positions = relationship("PortfolioPosition", back_populates="stock")
    prices = relationship(
        "StockPrice", back_populates="stock", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Stock(symbol='{self.symbol}')>"


class StockPrice(Base):
    """Closing price of a stock on a given day."""

    __tablename__ = "stock_prices"
    __table_args__ = (UniqueConstraint("stock_id", "price_date"),)

    id = Column(Integer, primary_key=True, index=True)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False, index=True)
    close_price = Column(Float, nullable=False)
    price_date = Column(Date, nullable=False, index=True)

    stock = relationship("Stock", back_populates="prices")

    def __repr__(self):
        return f"<StockPrice(stock_id={self.stock_id}, date='{self.price_date}')>"


class PortfolioPosition(Base):
    """Aggregated holding of one stock for one user."""

    __tablename__ = "portfolio_positions"
    __table_args__ = (UniqueConstraint("user_id", "stock_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True, default=1)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False, index=True)
    shares = Column(Float, nullable=False)
    avg_purchase_price = Column(Float, nullable=False)
    stop_loss_price = Column(Float, nullable=True)
    position_weight = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    stock = relationship("Stock", back_populates="positions")

    @property
    def total_invested(self) -> float:
        return self.shares * self.avg_purchase_price

    def __repr__(self):
        return f"<PortfolioPosition(id={self.id}, stock_id={self.stock_id}, shares={self.shares})>"


class Transaction(Base):
    """Ledger entry for a buy or sell."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True, default=1)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False, index=True)
    transaction_type = Column(String, nullable=False)  # 'BUY' or 'SELL'
    shares = Column(Float, nullable=False)
    price_per_share = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    stock = relationship("Stock")

    def __repr__(self):
        return f"<Transaction(type='{self.transaction_type}', stock_id={self.stock_id})>"
