"""Relational storage for the portfolio backend."""

from .database import (
    Base,
    check_database_health,
    create_tables,
    dispose_engine,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    get_session_sync,
)
from .models import PortfolioPosition, Stock, StockPrice, Transaction
from .repositories import BaseRepository, PortfolioRepository

__all__ = [
    # Database components
    "Base",
    "check_database_health",
    "create_tables",
    "dispose_engine",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "get_session_sync",
    # Models
    "PortfolioPosition",
    "Stock",
    "StockPrice",
    "Transaction",
    # Repositories
    "BaseRepository",
    "PortfolioRepository",
]
