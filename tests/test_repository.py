"""Tests for database repository operations."""

import pytest
from sqlalchemy import func, inspect, select

from esgdash.db.repository import Database, UNKNOWN_SITE
from esgdash.db.tables import esg_submissions, environmental_data
from esgdash.errors import StoreError, SubmissionNotFound


def _submit(db, site_id, payload, start="2024-01-01", end="2024-01-31", status="pending"):
    return db.create_submission(
        site_id=site_id,
        period_start=start,
        period_end=end,
        submitted_by="Admin User",
        environmental_fields=payload.environmental,
        social_fields=payload.social,
        governance_fields=payload.governance,
        initial_status=status,
    )


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_initialize_creates_tables(self, temp_db):
        """Initialize creates schema tables."""
        db = Database(temp_db)
        db.initialize()

        tables = set(inspect(db.engine).get_table_names())

        assert {
            "schema_version",
            "sites",
            "categories",
            "parameters",
            "esg_submissions",
            "environmental_data",
            "social_data",
            "governance_data",
            "emission_factors",
            "users",
        } <= tables
        db.close()

    def test_initialize_idempotent(self, temp_db):
        """Initialize can be called multiple times."""
        db = Database(temp_db)
        db.initialize()
        db.initialize()
        db.close()

    def test_engine_lazy(self, temp_db):
        """Engine is created lazily and disposed on close."""
        db = Database(temp_db)
        assert db._engine is None

        _ = db.engine
        assert db._engine is not None

        db.close()
        assert db._engine is None

    def test_dialect(self, db):
        assert db.dialect == "sqlite"


class TestSiteOperations:
    """Tests for site operations."""

    def test_create_and_list(self, db):
        db.create_site("Plant B")
        db.create_site("Plant A", location="Pune")

        sites = db.list_sites()

        assert [s.name for s in sites] == ["Plant A", "Plant B"]
        assert sites[0].location == "Pune"
        assert sites[0].created_at is not None

    def test_get_missing_site(self, db):
        assert db.get_site(999) is None

    def test_delete_site_keeps_submissions(self, db, site, sample_payload):
        """Submissions of a deleted site remain and report Unknown Site."""
        submission_id = _submit(db, site.id, sample_payload)

        assert db.delete_site(site.id) is True

        submission = db.get_submission(submission_id)
        assert submission is not None
        assert submission.site_id is None
        assert submission.site_name == UNKNOWN_SITE

    def test_delete_missing_site(self, db):
        assert db.delete_site(999) is False


class TestCatalogOperations:
    """Tests for category and parameter storage."""

    def test_list_categories_by_type(self, db, seeded_catalog):
        names = [c.name for c in db.list_categories("environmental")]
        assert names == ["Air Emissions", "Energy", "Stack Monitoring"]

    def test_update_category(self, db):
        category = db.create_category("Energy", "environmental")

        updated = db.update_category(category.id, "Power", "environmental")

        assert updated.name == "Power"
        assert db.update_category(999, "x", "social") is None

    def test_invalid_category_type_rejected_by_store(self, db):
        with pytest.raises(StoreError):
            db.create_category("Energy", "financial")

    def test_delete_category_removes_parameters(self, db):
        category = db.create_category("Energy", "environmental")
        db.create_parameter("Total Electricity", "kWh", category.id)

        assert db.delete_category(category.id) is True
        assert db.list_parameters() == []

    def test_update_parameter(self, db):
        category = db.create_category("Energy", "environmental")
        parameter = db.create_parameter("Total Electricity", "kWh", category.id)

        updated = db.update_parameter(parameter.id, "Total Electricity", "MWh", category.id)

        assert updated.unit == "MWh"
        assert db.get_parameter(parameter.id).unit == "MWh"


class TestSubmissionOperations:
    """Tests for submission storage."""

    def test_create_submission_writes_all_rows(self, db, site, sample_payload):
        submission_id = _submit(db, site.id, sample_payload)

        details = db.fetch_submission_details(submission_id)

        assert details.submission.status == "pending"
        assert details.submission.site_name == "Plant A"
        assert details.environmental_data["total_electricity"] == pytest.approx(1000.0)
        assert details.environmental_data["sox"] == 0
        assert details.social_data["total_employees"] == pytest.approx(120.0)
        assert details.governance_data["board_members"] == pytest.approx(9.0)

    def test_failed_detail_insert_rolls_back(self, db, site, sample_payload):
        """An unknown column aborts the whole submission."""
        sample_payload.social["not_a_column"] = 1.0

        with pytest.raises(StoreError, match="Failed to add social data"):
            _submit(db, site.id, sample_payload)

        with db.engine.connect() as conn:
            assert conn.execute(select(func.count()).select_from(esg_submissions)).scalar() == 0
            assert (
                conn.execute(select(func.count()).select_from(environmental_data)).scalar() == 0
            )

    def test_fetch_submissions_newest_first(self, db, site, sample_payload):
        first = _submit(db, site.id, sample_payload)
        second = _submit(db, site.id, sample_payload, start="2024-02-01", end="2024-02-29")

        ids = [s.id for s in db.fetch_submissions()]

        assert ids == [second, first]

    def test_fetch_submissions_by_status(self, db, site, sample_payload):
        _submit(db, site.id, sample_payload, status="draft")
        pending = _submit(db, site.id, sample_payload)

        assert [s.id for s in db.fetch_submissions(status="pending")] == [pending]

    def test_details_missing_rows_are_empty(self, db, site, sample_payload):
        """A missing detail row comes back as an empty dict."""
        from esgdash.db.tables import governance_data

        submission_id = _submit(db, site.id, sample_payload)
        with db.engine.begin() as conn:
            conn.execute(
                governance_data.delete().where(governance_data.c.submission_id == submission_id)
            )

        details = db.fetch_submission_details(submission_id)

        assert details.governance_data == {}
        assert details.social_data != {}

    def test_details_missing_submission(self, db):
        with pytest.raises(SubmissionNotFound):
            db.fetch_submission_details(42)

    def test_update_status_stamps_review(self, db, site, sample_payload):
        submission_id = _submit(db, site.id, sample_payload)

        updated = db.update_status(submission_id, "rejected", "Reviewer", "Fix NOx")

        assert updated.status == "rejected"
        assert updated.reviewer == "Reviewer"
        assert updated.review_comment == "Fix NOx"
        assert updated.reviewed_at is not None

    def test_update_status_empty_comment_stored_as_null(self, db, site, sample_payload):
        submission_id = _submit(db, site.id, sample_payload)

        updated = db.update_status(submission_id, "approved", "Reviewer", "")

        assert updated.review_comment is None

    def test_update_status_missing(self, db):
        assert db.update_status(999, "approved", "Reviewer") is None

    def test_update_status_expected_status_mismatch(self, db, site, sample_payload):
        """A guarded update leaves a row whose status has moved on untouched."""
        submission_id = _submit(db, site.id, sample_payload)
        db.update_status(submission_id, "approved", "First", expected_status="pending")

        result = db.update_status(
            submission_id, "rejected", "Second", "late", expected_status="pending"
        )

        assert result is None
        current = db.get_submission(submission_id)
        assert current.status == "approved"
        assert current.reviewer == "First"
        assert current.review_comment is None

    def test_approved_data_empty(self, db):
        data = db.fetch_approved_submissions_data()

        assert data.submissions == []
        assert data.environmental_data == []

    def test_approved_data_only_approved(self, db, site, sample_payload):
        approved = _submit(db, site.id, sample_payload)
        _submit(db, site.id, sample_payload)
        db.update_status(approved, "approved", "Reviewer")

        data = db.fetch_approved_submissions_data()

        assert [s.id for s in data.submissions] == [approved]
        assert [r["submission_id"] for r in data.environmental_data] == [approved]
        assert len(data.social_data) == 1
        assert len(data.governance_data) == 1


class TestEmissionFactorOperations:
    """Tests for emission factor operations."""

    def test_crud(self, db):
        factor = db.create_emission_factor("Fuel", "Coal", "tCO2e/t", factor_2024=2.42)
        db.create_emission_factor("Electricity", "Grid", "tCO2e/MWh", 0.71, 0.72, 0.73)

        assert [f.item for f in db.list_emission_factors()] == ["Grid", "Coal"]

        updated = db.update_emission_factor(factor.id, factor_2025=2.5)
        assert updated.factor_2025 == pytest.approx(2.5)
        assert updated.factor_2024 == pytest.approx(2.42)

        assert db.delete_emission_factor(factor.id) is True
        assert db.get_emission_factor(factor.id) is None

    def test_update_unknown_field(self, db):
        factor = db.create_emission_factor("Fuel", "Coal", "tCO2e/t")
        with pytest.raises(ValueError, match="Unknown emission factor fields"):
            db.update_emission_factor(factor.id, colour="red")

    def test_update_missing(self, db):
        assert db.update_emission_factor(999, item="x") is None


class TestUserOperations:
    """Tests for user storage."""

    def test_create_update_delete(self, db):
        user = db.create_user("approver1", "approver@example.com", role="approver")

        updated = db.update_user(user.id, status="inactive")
        assert updated.status == "inactive"
        assert updated.role == "approver"

        assert db.delete_user(user.id) is True
        assert db.list_users() == []

    def test_duplicate_username_rejected(self, db):
        db.create_user("admin", "admin@example.com")
        with pytest.raises(StoreError):
            db.create_user("admin", "other@example.com")
