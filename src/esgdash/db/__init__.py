"""Database layer with SQLAlchemy Core abstraction.

Supports SQLite (default) and PostgreSQL for production.
"""

from .engine import create_db_engine, get_dialect, initialize_schema
from .repository import (
    ApprovedData,
    Category,
    Database,
    EmissionFactor,
    Parameter,
    Site,
    Submission,
    SubmissionDetails,
    UserRecord,
)
from .tables import DETAIL_COLUMNS, ESG_TYPES, SCHEMA_VERSION, metadata

__all__ = [
    "ApprovedData",
    "Category",
    "DETAIL_COLUMNS",
    "Database",
    "ESG_TYPES",
    "EmissionFactor",
    "Parameter",
    "SCHEMA_VERSION",
    "Site",
    "Submission",
    "SubmissionDetails",
    "UserRecord",
    "create_db_engine",
    "get_dialect",
    "initialize_schema",
    "metadata",
]
