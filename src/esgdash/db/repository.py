"""Data access layer using SQLAlchemy Core."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreError, SubmissionNotFound
from ..logging import get_logger
from .engine import create_db_engine, get_dialect, initialize_schema
from .tables import (
    DETAIL_TABLES,
    categories,
    emission_factors,
    esg_submissions,
    parameters,
    sites,
    users,
)

logger = get_logger(__name__)

UNKNOWN_SITE = "Unknown Site"


@dataclass
class Site:
    """Reporting site record."""

    id: int
    name: str
    location: str | None
    type: str | None
    created_at: str | None = None


@dataclass
class Category:
    """Parameter category record."""

    id: int
    name: str
    type: str  # environmental, social, governance
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Parameter:
    """Parameter (metric) definition."""

    id: int
    name: str
    unit: str | None
    category_id: int
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Submission:
    """Submission header record."""

    id: int
    site_id: int | None
    period_start: str
    period_end: str
    status: str  # draft, pending, approved, rejected
    submitted_by: str
    reviewer: str | None = None
    review_comment: str | None = None
    submitted_at: str | None = None
    reviewed_at: str | None = None
    updated_at: str | None = None
    # Joined fields
    site_name: str | None = None


@dataclass
class SubmissionDetails:
    """A submission with its three detail rows ({} when a row is missing)."""

    submission: Submission
    environmental_data: dict = field(default_factory=dict)
    social_data: dict = field(default_factory=dict)
    governance_data: dict = field(default_factory=dict)


@dataclass
class ApprovedData:
    """Approved submissions and their detail rows, for dashboards and reports."""

    submissions: list[Submission] = field(default_factory=list)
    environmental_data: list[dict] = field(default_factory=list)
    social_data: list[dict] = field(default_factory=list)
    governance_data: list[dict] = field(default_factory=list)


@dataclass
class EmissionFactor:
    """Emission factor record with one value per reporting year."""

    id: int
    category: str
    item: str
    unit_of_measure: str
    factor_2023: float
    factor_2024: float
    factor_2025: float
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class UserRecord:
    """User directory entry."""

    id: int
    username: str
    email: str
    role: str  # admin, approver, user
    status: str  # active, inactive
    created_at: str | None = None
    last_login: str | None = None


def _row_to_dict(row: Any) -> dict:
    """Convert SQLAlchemy row to dict."""
    return dict(row._mapping)


def _format_datetime(dt: datetime | str | None) -> str | None:
    """Format datetime to ISO string."""
    if dt is None:
        return None
    if isinstance(dt, str):
        return dt
    return dt.isoformat()


def _format_row(row: Any, *datetime_fields: str) -> dict:
    row_dict = _row_to_dict(row)
    for name in datetime_fields:
        if name in row_dict:
            row_dict[name] = _format_datetime(row_dict[name])
    return row_dict


def _detail_from_row(row: Any) -> dict:
    return _format_row(row, "created_at", "updated_at")


@contextmanager
def _store_errors(message: str, **context: Any) -> Iterator[None]:
    """Log a store failure and re-raise it as StoreError with a generic message."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(message, error=str(exc), **context)
        raise StoreError(message) from exc


class Database:
    """Database connection and operations using SQLAlchemy Core."""

    def __init__(self, db_path: Path | str):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or full connection string.
        """
        self._engine: Engine | None = None
        self._db_path = db_path

    @property
    def engine(self) -> Engine:
        """Get or create database engine."""
        if self._engine is None:
            self._engine = create_db_engine(self._db_path)
        return self._engine

    @property
    def dialect(self) -> str:
        """Get database dialect (sqlite, postgresql)."""
        return get_dialect(self.engine)

    def close(self) -> None:
        """Close database connection."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

    def initialize(self) -> None:
        """Initialize database schema."""
        initialize_schema(self.engine)

    # Site operations

    def create_site(
        self,
        name: str,
        location: str | None = None,
        type: str | None = None,
    ) -> Site:
        """Create a reporting site."""
        now = datetime.now()
        with _store_errors("Failed to create site", name=name):
            with self.engine.begin() as conn:
                result = conn.execute(
                    sites.insert().values(
                        name=name, location=location, type=type, created_at=now
                    )
                )
        return Site(
            id=result.inserted_primary_key[0],
            name=name,
            location=location,
            type=type,
            created_at=now.isoformat(),
        )

    def list_sites(self) -> list[Site]:
        """List all sites ordered by name."""
        with _store_errors("Failed to fetch sites"):
            with self.engine.connect() as conn:
                rows = conn.execute(select(sites).order_by(sites.c.name)).fetchall()
        return [Site(**_format_row(row, "created_at")) for row in rows]

    def get_site(self, site_id: int) -> Site | None:
        """Get a site by ID."""
        with _store_errors("Failed to fetch site", site_id=site_id):
            with self.engine.connect() as conn:
                row = conn.execute(select(sites).where(sites.c.id == site_id)).fetchone()
        if row:
            return Site(**_format_row(row, "created_at"))
        return None

    def delete_site(self, site_id: int) -> bool:
        """Delete a site. Its submissions are kept with no site.

        Returns:
            True if a site was deleted.
        """
        with _store_errors("Failed to delete site", site_id=site_id):
            with self.engine.begin() as conn:
                # Explicit so the behaviour does not depend on FK enforcement
                conn.execute(
                    update(esg_submissions)
                    .where(esg_submissions.c.site_id == site_id)
                    .values(site_id=None)
                )
                result = conn.execute(delete(sites).where(sites.c.id == site_id))
        return result.rowcount > 0

    # Category operations

    def list_categories(self, type: str | None = None) -> list[Category]:
        """List categories ordered by name, optionally filtered by ESG type."""
        stmt = select(categories).order_by(categories.c.name, categories.c.id)
        if type:
            stmt = stmt.where(categories.c.type == type)
        with _store_errors("Failed to fetch categories"):
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        return [Category(**_format_row(row, "created_at", "updated_at")) for row in rows]

    def get_category(self, category_id: int) -> Category | None:
        """Get a category by ID."""
        with _store_errors("Failed to fetch category", category_id=category_id):
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(categories).where(categories.c.id == category_id)
                ).fetchone()
        if row:
            return Category(**_format_row(row, "created_at", "updated_at"))
        return None

    def create_category(self, name: str, type: str) -> Category:
        """Create a category."""
        now = datetime.now()
        with _store_errors("Failed to create category", name=name):
            with self.engine.begin() as conn:
                result = conn.execute(
                    categories.insert().values(
                        name=name, type=type, created_at=now, updated_at=now
                    )
                )
        return Category(
            id=result.inserted_primary_key[0],
            name=name,
            type=type,
            created_at=now.isoformat(),
            updated_at=now.isoformat(),
        )

    def update_category(self, category_id: int, name: str, type: str) -> Category | None:
        """Rename or retype a category. Returns None if it does not exist."""
        with _store_errors("Failed to update category", category_id=category_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(categories)
                    .where(categories.c.id == category_id)
                    .values(name=name, type=type, updated_at=datetime.now())
                )
        if result.rowcount == 0:
            return None
        return self.get_category(category_id)

    def delete_category(self, category_id: int) -> bool:
        """Delete a category and its parameters."""
        with _store_errors("Failed to delete category", category_id=category_id):
            with self.engine.begin() as conn:
                conn.execute(delete(parameters).where(parameters.c.category_id == category_id))
                result = conn.execute(delete(categories).where(categories.c.id == category_id))
        return result.rowcount > 0

    # Parameter operations

    def list_parameters(self, category_id: int | None = None) -> list[Parameter]:
        """List parameters ordered by name, optionally for one category."""
        stmt = select(parameters).order_by(parameters.c.name, parameters.c.id)
        if category_id is not None:
            stmt = stmt.where(parameters.c.category_id == category_id)
        with _store_errors("Failed to fetch parameters"):
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        return [Parameter(**_format_row(row, "created_at", "updated_at")) for row in rows]

    def get_parameter(self, parameter_id: int) -> Parameter | None:
        """Get a parameter by ID."""
        with _store_errors("Failed to fetch parameter", parameter_id=parameter_id):
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(parameters).where(parameters.c.id == parameter_id)
                ).fetchone()
        if row:
            return Parameter(**_format_row(row, "created_at", "updated_at"))
        return None

    def create_parameter(self, name: str, unit: str | None, category_id: int) -> Parameter:
        """Create a parameter under a category."""
        now = datetime.now()
        with _store_errors("Failed to create parameter", name=name):
            with self.engine.begin() as conn:
                result = conn.execute(
                    parameters.insert().values(
                        name=name,
                        unit=unit,
                        category_id=category_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
        return Parameter(
            id=result.inserted_primary_key[0],
            name=name,
            unit=unit,
            category_id=category_id,
            created_at=now.isoformat(),
            updated_at=now.isoformat(),
        )

    def update_parameter(
        self,
        parameter_id: int,
        name: str,
        unit: str | None,
        category_id: int,
    ) -> Parameter | None:
        """Update a parameter. Returns None if it does not exist."""
        with _store_errors("Failed to update parameter", parameter_id=parameter_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(parameters)
                    .where(parameters.c.id == parameter_id)
                    .values(
                        name=name,
                        unit=unit,
                        category_id=category_id,
                        updated_at=datetime.now(),
                    )
                )
        if result.rowcount == 0:
            return None
        return self.get_parameter(parameter_id)

    def delete_parameter(self, parameter_id: int) -> bool:
        """Delete a parameter."""
        with _store_errors("Failed to delete parameter", parameter_id=parameter_id):
            with self.engine.begin() as conn:
                result = conn.execute(delete(parameters).where(parameters.c.id == parameter_id))
        return result.rowcount > 0

    # Submission operations

    def create_submission(
        self,
        site_id: int,
        period_start: str,
        period_end: str,
        submitted_by: str,
        environmental_fields: dict[str, Any],
        social_fields: dict[str, Any],
        governance_fields: dict[str, Any],
        initial_status: str = "pending",
    ) -> int:
        """Insert a submission header and its three detail rows.

        All four inserts run in one transaction, so a failing detail insert
        leaves nothing behind.

        Returns:
            The new submission ID.

        Raises:
            StoreError: Naming the insert that failed.
        """
        now = datetime.now()
        details = [
            ("environmental", environmental_fields),
            ("social", social_fields),
            ("governance", governance_fields),
        ]

        with (
            _store_errors("Failed to create submission", site_id=site_id),
            self.engine.begin() as conn,
        ):
            result = conn.execute(
                esg_submissions.insert().values(
                    site_id=site_id,
                    period_start=period_start,
                    period_end=period_end,
                    status=initial_status,
                    submitted_by=submitted_by,
                    submitted_at=now,
                    updated_at=now,
                )
            )
            submission_id = result.inserted_primary_key[0]
            if not submission_id:
                raise StoreError("No submission ID returned")

            for esg_type, fields in details:
                with _store_errors(
                    f"Failed to add {esg_type} data", submission_id=submission_id
                ):
                    conn.execute(
                        DETAIL_TABLES[esg_type].insert().values(
                            submission_id=submission_id,
                            created_at=now,
                            updated_at=now,
                            **fields,
                        )
                    )

        return submission_id

    def _submission_query(self):
        return select(
            esg_submissions,
            sites.c.name.label("site_name"),
        ).select_from(
            esg_submissions.outerjoin(sites, esg_submissions.c.site_id == sites.c.id)
        )

    def _submission_from_row(self, row: Any) -> Submission:
        row_dict = _format_row(row, "submitted_at", "reviewed_at", "updated_at")
        if row_dict.get("site_name") is None:
            row_dict["site_name"] = UNKNOWN_SITE
        return Submission(**row_dict)

    def get_submission(self, submission_id: int) -> Submission | None:
        """Get a submission header (with site name) by ID."""
        with _store_errors("Failed to fetch submission", submission_id=submission_id):
            with self.engine.connect() as conn:
                row = conn.execute(
                    self._submission_query().where(esg_submissions.c.id == submission_id)
                ).fetchone()
        if row:
            return self._submission_from_row(row)
        return None

    def fetch_submissions(self, status: str | None = None) -> list[Submission]:
        """List submissions with site names, most recently updated first."""
        stmt = self._submission_query().order_by(
            esg_submissions.c.updated_at.desc(),
            esg_submissions.c.id.desc(),
        )
        if status:
            stmt = stmt.where(esg_submissions.c.status == status)
        with _store_errors("Failed to fetch submissions"):
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        return [self._submission_from_row(row) for row in rows]

    def fetch_submission_details(self, submission_id: int) -> SubmissionDetails:
        """Get a submission with its three detail rows.

        A missing detail row comes back as an empty dict.

        Raises:
            SubmissionNotFound: If the submission does not exist.
            StoreError: On any other store failure.
        """
        submission = self.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFound(submission_id)

        rows: dict[str, dict] = {}
        with self.engine.connect() as conn:
            for esg_type, table in DETAIL_TABLES.items():
                with _store_errors(
                    f"Failed to fetch {esg_type} data", submission_id=submission_id
                ):
                    row = conn.execute(
                        select(table).where(table.c.submission_id == submission_id)
                    ).fetchone()
                rows[esg_type] = _detail_from_row(row) if row else {}

        return SubmissionDetails(
            submission=submission,
            environmental_data=rows["environmental"],
            social_data=rows["social"],
            governance_data=rows["governance"],
        )

    def update_status(
        self,
        submission_id: int,
        status: str,
        reviewer: str,
        comment: str | None = None,
        expected_status: str | None = None,
    ) -> Submission | None:
        """Set status, reviewer and comment; stamps reviewed_at on every call.

        Args:
            expected_status: When given, the row is only updated if its
                status still matches at write time.

        Returns:
            The updated submission, or None if no row matched.
        """
        now = datetime.now()
        stmt = update(esg_submissions).where(esg_submissions.c.id == submission_id)
        if expected_status is not None:
            stmt = stmt.where(esg_submissions.c.status == expected_status)

        with _store_errors("Failed to update submission status", submission_id=submission_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    stmt.values(
                        status=status,
                        reviewer=reviewer,
                        review_comment=comment or None,
                        reviewed_at=now,
                        updated_at=now,
                    )
                )
        if result.rowcount == 0:
            return None
        return self.get_submission(submission_id)

    def fetch_approved_submissions_data(self) -> ApprovedData:
        """Get approved submissions and all of their detail rows."""
        submissions = self.fetch_submissions(status="approved")
        if not submissions:
            return ApprovedData()

        ids = [s.id for s in submissions]
        rows: dict[str, list[dict]] = {}
        with self.engine.connect() as conn:
            for esg_type, table in DETAIL_TABLES.items():
                with _store_errors(f"Failed to fetch {esg_type} data"):
                    result = conn.execute(
                        select(table)
                        .where(table.c.submission_id.in_(ids))
                        .order_by(table.c.submission_id)
                    ).fetchall()
                rows[esg_type] = [_detail_from_row(row) for row in result]

        return ApprovedData(
            submissions=submissions,
            environmental_data=rows["environmental"],
            social_data=rows["social"],
            governance_data=rows["governance"],
        )

    # Emission factor operations

    def list_emission_factors(self) -> list[EmissionFactor]:
        """List emission factors ordered by category then item."""
        with _store_errors("Failed to fetch emission factors"):
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(emission_factors).order_by(
                        emission_factors.c.category, emission_factors.c.item
                    )
                ).fetchall()
        return [
            EmissionFactor(**_format_row(row, "created_at", "updated_at")) for row in rows
        ]

    def get_emission_factor(self, factor_id: int) -> EmissionFactor | None:
        """Get an emission factor by ID."""
        with _store_errors("Failed to fetch emission factor", factor_id=factor_id):
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(emission_factors).where(emission_factors.c.id == factor_id)
                ).fetchone()
        if row:
            return EmissionFactor(**_format_row(row, "created_at", "updated_at"))
        return None

    def create_emission_factor(
        self,
        category: str,
        item: str,
        unit_of_measure: str,
        factor_2023: float = 0.0,
        factor_2024: float = 0.0,
        factor_2025: float = 0.0,
    ) -> EmissionFactor:
        """Create an emission factor."""
        now = datetime.now()
        values = {
            "category": category,
            "item": item,
            "unit_of_measure": unit_of_measure,
            "factor_2023": factor_2023,
            "factor_2024": factor_2024,
            "factor_2025": factor_2025,
        }
        with _store_errors("Failed to create emission factor", item=item):
            with self.engine.begin() as conn:
                result = conn.execute(
                    emission_factors.insert().values(created_at=now, updated_at=now, **values)
                )
        return EmissionFactor(
            id=result.inserted_primary_key[0],
            created_at=now.isoformat(),
            updated_at=now.isoformat(),
            **values,
        )

    def update_emission_factor(self, factor_id: int, **updates: Any) -> EmissionFactor | None:
        """Update selected fields of an emission factor."""
        allowed = {
            "category",
            "item",
            "unit_of_measure",
            "factor_2023",
            "factor_2024",
            "factor_2025",
        }
        unknown = set(updates) - allowed
        if unknown:
            raise ValueError(f"Unknown emission factor fields: {', '.join(sorted(unknown))}")

        with _store_errors("Failed to update emission factor", factor_id=factor_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(emission_factors)
                    .where(emission_factors.c.id == factor_id)
                    .values(updated_at=datetime.now(), **updates)
                )
        if result.rowcount == 0:
            return None
        return self.get_emission_factor(factor_id)

    def delete_emission_factor(self, factor_id: int) -> bool:
        """Delete an emission factor."""
        with _store_errors("Failed to delete emission factor", factor_id=factor_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(emission_factors).where(emission_factors.c.id == factor_id)
                )
        return result.rowcount > 0

    # User operations

    def _user_from_row(self, row: Any) -> UserRecord:
        return UserRecord(**_format_row(row, "created_at", "last_login"))

    def list_users(self) -> list[UserRecord]:
        """List all users ordered by username."""
        with _store_errors("Failed to fetch users"):
            with self.engine.connect() as conn:
                rows = conn.execute(select(users).order_by(users.c.username)).fetchall()
        return [self._user_from_row(row) for row in rows]

    def get_user(self, user_id: int) -> UserRecord | None:
        """Get a user by ID."""
        with _store_errors("Failed to fetch user", user_id=user_id):
            with self.engine.connect() as conn:
                row = conn.execute(select(users).where(users.c.id == user_id)).fetchone()
        if row:
            return self._user_from_row(row)
        return None

    def create_user(
        self,
        username: str,
        email: str,
        role: str = "user",
        status: str = "active",
    ) -> UserRecord:
        """Create a user."""
        now = datetime.now()
        with _store_errors("Failed to create user", username=username):
            with self.engine.begin() as conn:
                result = conn.execute(
                    users.insert().values(
                        username=username,
                        email=email,
                        role=role,
                        status=status,
                        created_at=now,
                    )
                )
        return UserRecord(
            id=result.inserted_primary_key[0],
            username=username,
            email=email,
            role=role,
            status=status,
            created_at=now.isoformat(),
        )

    def update_user(self, user_id: int, **values: Any) -> UserRecord | None:
        """Update user fields (role, status, email)."""
        with _store_errors("Failed to update user", user_id=user_id):
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(users).where(users.c.id == user_id).values(**values)
                )
        if result.rowcount == 0:
            return None
        return self.get_user(user_id)

    def delete_user(self, user_id: int) -> bool:
        """Delete a user."""
        with _store_errors("Failed to delete user", user_id=user_id):
            with self.engine.begin() as conn:
                result = conn.execute(delete(users).where(users.c.id == user_id))
        return result.rowcount > 0
