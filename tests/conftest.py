"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path

import pytest

from esgdash import audit
from esgdash.catalog import ParameterCatalog
from esgdash.db.repository import Database
from esgdash.mapper import RecordPayload


@pytest.fixture
def temp_db():
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    os.unlink(f.name)


@pytest.fixture
def db(temp_db):
    """Create initialized database."""
    database = Database(temp_db)
    database.initialize()
    yield database
    database.close()


@pytest.fixture(autouse=True)
def audit_enabled():
    """Reset audit state between tests."""
    audit.configure(enabled=True)
    yield
    audit.configure(enabled=True)


@pytest.fixture
def site(db):
    """A single reporting site."""
    return db.create_site("Plant A", location="Pune", type="Manufacturing")


@pytest.fixture
def seeded_catalog(db) -> dict[str, int]:
    """Categories and parameters covering all three ESG types.

    Returns a mapping of short name to parameter ID. Two environmental
    categories both hold a parameter named ``NOx``.
    """
    ids = {}
    energy = db.create_category("Energy", "environmental")
    air = db.create_category("Air Emissions", "environmental")
    stacks = db.create_category("Stack Monitoring", "environmental")
    workforce = db.create_category("Workforce", "social")
    board = db.create_category("Board", "governance")

    ids["electricity"] = db.create_parameter("Total Electricity", "kWh", energy.id).id
    ids["ppa"] = db.create_parameter("Renewable PPA", "kWh", energy.id).id
    ids["nox_air"] = db.create_parameter("NOx", "t", air.id).id
    ids["nox_stack"] = db.create_parameter("NOx", "t", stacks.id).id
    ids["employees"] = db.create_parameter("Total Employees", None, workforce.id).id
    ids["board"] = db.create_parameter("Board Members", None, board.id).id
    return ids


@pytest.fixture
def structure(db, seeded_catalog):
    """Catalog structure built from the seeded catalog."""
    return ParameterCatalog(db).build_structure()


@pytest.fixture
def sample_payload() -> RecordPayload:
    """A small payload touching every detail table."""
    return RecordPayload(
        environmental={
            "total_electricity": 1000.0,
            "renewable_ppa": 200.0,
            "renewable_rooftop": 50.0,
            "total_emissions": 12.5,
            "water_withdrawal": 300.0,
            "nox": 1.5,
        },
        social={"total_employees": 120.0},
        governance={"board_members": 9.0},
    )
