"""FastAPI dependency injection for the JSON API."""

from collections.abc import Generator

from fastapi import Depends, Request

from ..catalog import ParameterCatalog
from ..config import Config
from ..db import Database
from ..lifecycle import SubmissionLifecycle
from ..users import DatabaseUserRepository, UserService


def get_config(request: Request) -> Config:
    """Get the application configuration from app state."""
    return request.app.state.config


def get_db(config: Config = Depends(get_config)) -> Generator[Database, None, None]:
    """Get a database connection.

    Yields a Database instance that is automatically closed after the request.
    """
    db = Database(config.database.path)
    db.initialize()
    try:
        yield db
    finally:
        db.close()


def get_catalog(
    db: Database = Depends(get_db),
    config: Config = Depends(get_config),
) -> ParameterCatalog:
    return ParameterCatalog(db, strict_columns=config.catalog.strict_columns)


def get_lifecycle(
    db: Database = Depends(get_db),
    config: Config = Depends(get_config),
) -> SubmissionLifecycle:
    return SubmissionLifecycle(db, config.review)


def get_user_service(request: Request, db: Database = Depends(get_db)) -> UserService:
    repository = request.app.state.user_repository or DatabaseUserRepository(db)
    return UserService(repository)


def get_current_user(config: Config = Depends(get_config)) -> str:
    """Name recorded as actor on writes. There is no login."""
    return config.review.reviewer_name
