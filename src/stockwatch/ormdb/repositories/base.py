"""Base repository with session ownership and transaction scoping."""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ..database import get_session_sync

logger = get_logger(__name__)


class BaseRepository:
    """Repositories borrow a caller's session or open and close their own."""

    def __init__(self, session: Optional[Session] = None):
        self.session = session or get_session_sync()
        self._external_session = session is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._external_session:
            self.session.close()

    @contextmanager
    def atomic(self, operation: str) -> Iterator[Session]:
        """
        Run a multi-statement operation as one transaction.

        Commits when the block finishes and rolls every statement back when it
        raises; the exception is re-raised to the caller.
        """
        try:
            yield self.session
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(
                "Transaction rolled back",
                operation=operation,
                error_type=type(e).__name__,
            )
            raise
