"""Repository classes for database operations using SQLAlchemy ORM."""

from .base import BaseRepository
from .portfolio import PortfolioRepository

__all__ = [
    "BaseRepository",
    "PortfolioRepository",
]
