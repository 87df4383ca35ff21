"""
Stock Watch - main application entry point.

Serves the portfolio API and runs the weekly report scheduler. Command line
flags run one-off tasks against the locally stored portfolio instead:

    stockwatch -report [benchmark]   export the weekly report and exit
    stockwatch -alerts               print the current risk alerts and exit
"""

import sys
from pathlib import Path
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv

from .config.logging import get_logger, setup_logging
from .config.settings import get_settings
from .scheduler import (
    apply_weekly_schedule,
    run_weekly_report_export,
    shutdown_scheduler,
    start_scheduler,
)
from .services import create_portfolio_service


def initialize_application() -> None:
    """Initialize configuration, logging and the data directory."""
    settings = get_settings()

    setup_logging(settings)
    Path(settings.data_directory).mkdir(parents=True, exist_ok=True)

    get_logger(__name__).info(
        "Application initialized successfully",
        environment=settings.environment,
        debug=settings.debug,
        data_dir=settings.data_directory,
    )


def export_report(argv: List[str]) -> int:
    """Handle -report [benchmark]."""
    index = argv.index("-report")
    benchmark: Optional[float] = None
    if index + 1 < len(argv):
        try:
            benchmark = float(argv[index + 1])
        except ValueError:
            print(f"Error: benchmark must be a number, got {argv[index + 1]!r}")
            return 1

    path = run_weekly_report_export(benchmark)
    print(f"Weekly report written to {path}")
    return 0


def print_alerts() -> int:
    """Handle -alerts."""
    service = create_portfolio_service()
    service.load()
    evaluation = service.evaluate_alerts()

    for alert in evaluation.alerts:
        print(f"[{alert.priority.value.upper()}] {alert.message}")
    if evaluation.skipped_count:
        print(f"Skipped {evaluation.skipped_count} position(s) that could not be evaluated")
    return 0


def serve() -> None:
    """Run the API server with the weekly report scheduler alongside."""
    logger = get_logger(__name__)
    settings = get_settings()

    logger.info(
        "Starting production mode",
        host=settings.api_host,
        port=settings.api_port,
    )

    start_scheduler()
    apply_weekly_schedule()

    try:
        uvicorn.run(
            "stockwatch.webapi.app:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.api_reload,
            log_level=settings.api_log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        logger.info("Shutting down scheduler")
        shutdown_scheduler()


def main(argv: Optional[List[str]] = None) -> None:
    """Main application entry point."""
    load_dotenv()
    argv = sys.argv[1:] if argv is None else argv

    initialize_application()

    if "-report" in argv:
        sys.exit(export_report(argv))
    if "-alerts" in argv:
        sys.exit(print_alerts())

    serve()


if __name__ == "__main__":
    main()
