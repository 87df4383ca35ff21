"""Service layer for Stock Watch."""

from typing import Optional

from ..config.settings import Settings, get_settings
from ..storage import SecureStorage, create_storage
from .notification_settings import NotificationSettingsService, WeeklyEmailSchedule
from .portfolio_service import PortfolioService, PositionPreview


def create_portfolio_service(
    settings: Optional[Settings] = None, storage: Optional[SecureStorage] = None
) -> PortfolioService:
    """Build a portfolio service over the configured encrypted store."""
    settings = settings or get_settings()
    return PortfolioService(
        storage or create_storage(settings),
        symbol_allow_digits=settings.symbol_allow_digits,
    )


__all__ = [
    "NotificationSettingsService",
    "PortfolioService",
    "PositionPreview",
    "WeeklyEmailSchedule",
    "create_portfolio_service",
]
