"""FastAPI application factory for the JSON API."""

from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__, audit
from ..config import Config, load_config
from ..errors import (
    CatalogConfigError,
    EsgError,
    InvalidTransition,
    SubmissionNotFound,
    UserNotFound,
    ValidationError,
)
from ..logging import configure_logging, get_logger
from ..users import InMemoryUserRepository

logger = get_logger(__name__)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(config_path: Path | None = None, config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config_path: Path to the configuration file.
        config: Already-loaded configuration; takes precedence over config_path.

    Returns:
        Configured FastAPI application.
    """
    if config is None:
        config = load_config(config_path)

    configure_logging(config)
    audit.configure(enabled=config.logging.enabled)

    app = FastAPI(
        title="esgdash",
        description="ESG data collection and approval",
        version=__version__,
    )
    app.state.config = config
    # Seeded users live in memory; without a seed list the users table is used
    app.state.user_repository = InMemoryUserRepository(config.users) if config.users else None

    from .routes import (
        catalog,
        dashboard,
        emission_factors,
        reports,
        sites,
        submissions,
        users,
    )

    app.include_router(sites.router)
    app.include_router(catalog.router)
    app.include_router(submissions.router)
    app.include_router(dashboard.router)
    app.include_router(reports.router)
    app.include_router(emission_factors.router)
    app.include_router(users.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(422, exc)

    @app.exception_handler(CatalogConfigError)
    async def catalog_error_handler(request: Request, exc: CatalogConfigError):
        return _error(422, exc)

    @app.exception_handler(SubmissionNotFound)
    async def submission_not_found_handler(request: Request, exc: SubmissionNotFound):
        return _error(404, exc)

    @app.exception_handler(UserNotFound)
    async def user_not_found_handler(request: Request, exc: UserNotFound):
        return _error(404, exc)

    @app.exception_handler(InvalidTransition)
    async def invalid_transition_handler(request: Request, exc: InvalidTransition):
        return _error(409, exc)

    @app.exception_handler(EsgError)
    async def esg_error_handler(request: Request, exc: EsgError):
        logger.error("Request failed", path=request.url.path, error=str(exc))
        return _error(500, exc)

    return app
