"""FastAPI application exposing the relational portfolio store."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.logging import get_logger
from ..config.settings import get_settings
from ..ormdb.database import create_tables
from .exceptions import setup_exception_handlers
from .health import router as health_router
from .routers import portfolio_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema on startup."""
    logger.info("Starting Stock Portfolio API")
    create_tables()

    yield

    logger.info("Stock Portfolio API shutdown completed")


async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        query_params=str(request.query_params),
    )

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        method=request.method,
        path=request.url.path,
    )
    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Stock Portfolio API",
        description="Record equity positions, review risk alerts and download "
        "the weekly portfolio report.",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.middleware("http")(add_request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router, prefix=settings.api_prefix, tags=["Status"])
    app.include_router(
        portfolio_router,
        prefix=f"{settings.api_prefix}/portfolio",
        tags=["Portfolio"],
    )

    return app


app = create_app()
