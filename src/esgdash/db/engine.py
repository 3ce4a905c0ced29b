"""Engine factory for the ESG store.

``database.path`` may be a bare SQLite file path or a URL. PostgreSQL URLs
without a driver are pinned to psycopg 3, which is what the ``postgres``
extra installs.
"""

from pathlib import Path

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import Engine, make_url

from .tables import SCHEMA_VERSION, metadata, schema_version

POSTGRES_DRIVER = "postgresql+psycopg"

# The CLI and the web app may hold the same SQLite file open at once
SQLITE_PRAGMAS = {
    "foreign_keys": "ON",
    "busy_timeout": 5000,
}


def normalize_url(location: str | Path) -> str:
    """Turn a configured database location into a SQLAlchemy URL.

    >>> normalize_url("./instance/esg.db")
    'sqlite:///./instance/esg.db'
    >>> normalize_url("postgres://esg@db/esg")
    'postgresql+psycopg://esg@db/esg'
    """
    location = str(location)
    if "://" not in location:
        return f"sqlite:///{location}"

    scheme, rest = location.split("://", 1)
    if scheme in ("postgres", "postgresql"):
        return f"{POSTGRES_DRIVER}://{rest}"
    return location


def _sqlite_engine(url: str) -> Engine:
    engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def apply_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        for name, value in SQLITE_PRAGMAS.items():
            cursor.execute(f"PRAGMA {name}={value}")
        cursor.close()

    return engine


def create_db_engine(location: str | Path) -> Engine:
    """Create an engine for a SQLite file or a PostgreSQL server.

    Raises:
        ValueError: For any other backend.
    """
    url = normalize_url(location)
    backend = make_url(url).get_backend_name()

    if backend == "sqlite":
        return _sqlite_engine(url)
    if backend == "postgresql":
        return create_engine(url, pool_size=5, max_overflow=10, pool_pre_ping=True)
    raise ValueError(f"Unsupported database backend: {backend}")


def current_schema_version(engine: Engine) -> int | None:
    """Highest recorded schema version, or None for an empty store."""
    with engine.connect() as conn:
        return conn.execute(select(func.max(schema_version.c.version))).scalar()


def initialize_schema(engine: Engine) -> None:
    """Create missing tables and record SCHEMA_VERSION if it is newer."""
    metadata.create_all(engine)

    recorded = current_schema_version(engine)
    if recorded is None or recorded < SCHEMA_VERSION:
        with engine.begin() as conn:
            conn.execute(schema_version.insert().values(version=SCHEMA_VERSION))


def get_dialect(engine: Engine) -> str:
    return engine.dialect.name
