"""Portfolio CRUD, alert and report endpoints backed by the relational store."""

from datetime import UTC, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.logging import get_logger, log_audit_event
from ...config.settings import get_settings
from ...core import report, risk
from ...ormdb.database import get_session
from ...ormdb.repositories import PortfolioRepository
from ..exceptions import DatabaseError, NotFoundError
from ..models.requests import AddPositionRequest
from ..models.responses import MessageResponse, StatusResponse

logger = get_logger(__name__)

router = APIRouter()


def get_portfolio_repository(
    session: Session = Depends(get_session),
) -> PortfolioRepository:
    """Dependency to get a repository bound to the request's session."""
    return PortfolioRepository(session)


@router.get(
    "",
    response_model=StatusResponse,
    summary="Get Portfolio",
    description="All held positions with the portfolio summary",
)
def get_portfolio(
    request: Request,
    repository: PortfolioRepository = Depends(get_portfolio_repository),
):
    request_id = getattr(request.state, "request_id", None)
    logger.info("Portfolio requested", request_id=request_id)

    try:
        positions = repository.get_all_positions()
        summary = repository.get_portfolio_summary()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch portfolio", error_type=type(e).__name__)
        raise DatabaseError("fetch portfolio data") from e

    return StatusResponse.create(
        data={
            "positions": positions,
            "summary": summary,
            "lastUpdated": datetime.now(UTC).isoformat(),
        },
        request_id=request_id,
    )


@router.post(
    "",
    response_model=StatusResponse,
    status_code=201,
    summary="Add Position",
    description="Buy shares of a stock, merging into an existing position",
)
def add_position(
    request: Request,
    body: AddPositionRequest,
    repository: PortfolioRepository = Depends(get_portfolio_repository),
):
    """
    Add a position.

    An existing position in the same stock is merged with a weighted-average
    purchase price. Every add is recorded as a BUY transaction.
    """
    request_id = getattr(request.state, "request_id", None)

    try:
        position = repository.add_position(body.model_dump())
    except SQLAlchemyError as e:
        raise DatabaseError("add position") from e

    log_audit_event(
        "position_added",
        symbol=body.symbol,
        shares=body.shares,
        request_id=request_id,
    )
    return StatusResponse.create(
        data=position, message="Position added successfully", request_id=request_id
    )


@router.delete(
    "/{position_id}",
    response_model=MessageResponse,
    summary="Remove Position",
)
def remove_position(
    request: Request,
    position_id: int,
    repository: PortfolioRepository = Depends(get_portfolio_repository),
):
    request_id = getattr(request.state, "request_id", None)

    try:
        removed = repository.remove_position(position_id)
    except SQLAlchemyError as e:
        raise DatabaseError("remove position") from e

    if removed is None:
        raise NotFoundError("Position", position_id)

    log_audit_event(
        "position_removed", symbol=removed["symbol"], request_id=request_id
    )
    return MessageResponse.create(
        message="Position removed successfully", request_id=request_id
    )


@router.get(
    "/alerts",
    response_model=StatusResponse,
    summary="Evaluate Risk Alerts",
    description="Run the risk rules over the stored positions",
)
def get_alerts(
    request: Request,
    repository: PortfolioRepository = Depends(get_portfolio_repository),
):
    request_id = getattr(request.state, "request_id", None)

    try:
        positions = repository.get_portfolio_positions()
    except SQLAlchemyError as e:
        raise DatabaseError("evaluate alerts") from e

    evaluation = risk.evaluate(positions)
    return StatusResponse.create(
        data={
            "alerts": [alert.to_dict() for alert in evaluation.alerts],
            "evaluatedCount": evaluation.evaluated_count,
            "skippedCount": evaluation.skipped_count,
            "evaluatedAt": evaluation.evaluated_at.isoformat(),
        },
        request_id=request_id,
    )


@router.get(
    "/report",
    response_class=PlainTextResponse,
    summary="Download Weekly Report",
    description="Weekly report over the stored positions as a text attachment",
)
def download_report(
    request: Request,
    benchmark: Optional[float] = Query(
        None, description="Benchmark return percent for the period"
    ),
    repository: PortfolioRepository = Depends(get_portfolio_repository),
):
    request_id = getattr(request.state, "request_id", None)
    benchmark_return = (
        benchmark if benchmark is not None else get_settings().default_benchmark_return
    )

    try:
        positions = repository.get_portfolio_positions()
    except SQLAlchemyError as e:
        raise DatabaseError("build weekly report") from e

    weekly = report.build_weekly_report(positions, benchmark_return)
    filename = report.report_filename(weekly.generated_at.date())

    logger.info("Weekly report downloaded", filename=filename, request_id=request_id)
    return PlainTextResponse(
        report.render_report_text(weekly),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
