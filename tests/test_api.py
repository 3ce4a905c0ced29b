"""Tests for the JSON API."""

import csv
import io

import pytest
from fastapi.testclient import TestClient

from esgdash.config import Config
from esgdash.web import create_app


@pytest.fixture
def config(temp_db):
    return Config(
        database={"path": str(temp_db)},
        review={"reviewer_name": "Jane Reviewer"},
    )


@pytest.fixture
def client(config):
    return TestClient(create_app(config=config))


@pytest.fixture
def catalog_ids(client):
    """Create a small catalog through the API."""
    energy = client.post(
        "/api/categories", json={"name": "Energy", "type": "environmental"}
    ).json()
    workforce = client.post(
        "/api/categories", json={"name": "Workforce", "type": "social"}
    ).json()
    electricity = client.post(
        "/api/parameters",
        json={"name": "Total Electricity", "unit": "kWh", "category_id": energy["id"]},
    ).json()
    employees = client.post(
        "/api/parameters", json={"name": "Total Employees", "category_id": workforce["id"]}
    ).json()
    return {"electricity": electricity["id"], "employees": employees["id"]}


@pytest.fixture
def site_id(client):
    return client.post("/api/sites", json={"name": "Plant A", "location": "Pune"}).json()["id"]


def _submit(client, site_id, catalog_ids, **overrides):
    body = {
        "site_id": site_id,
        "month": 1,
        "year": 2024,
        "values": {
            str(catalog_ids["electricity"]): "1500",
            str(catalog_ids["employees"]): 40,
        },
    }
    body.update(overrides)
    return client.post("/api/submissions", json=body)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestSitesApi:
    """Tests for /api/sites."""

    def test_create_list_delete(self, client):
        created = client.post("/api/sites", json={"name": "Plant A"})
        assert created.status_code == 201

        site_id = created.json()["id"]
        assert [s["name"] for s in client.get("/api/sites").json()] == ["Plant A"]
        assert client.get(f"/api/sites/{site_id}").json()["name"] == "Plant A"

        assert client.delete(f"/api/sites/{site_id}").status_code == 204
        assert client.delete(f"/api/sites/{site_id}").status_code == 404
        assert client.get(f"/api/sites/{site_id}").status_code == 404


class TestCatalogApi:
    """Tests for catalog routes."""

    def test_structure(self, client, catalog_ids):
        body = client.get("/api/catalog").json()

        energy = body["structure"]["environmental"]["Energy"]
        assert [p["id"] for p in energy["parameters"]] == [catalog_ids["electricity"]]
        assert body["structure"]["governance"] == {}
        assert body["unmapped"] == []
        assert body["duplicates"] == []

    def test_invalid_category_type(self, client):
        response = client.post("/api/categories", json={"name": "Money", "type": "financial"})
        assert response.status_code == 422

    def test_filter_parameters(self, client, catalog_ids):
        categories = client.get("/api/categories", params={"type": "social"}).json()
        assert [c["name"] for c in categories] == ["Workforce"]

        parameters = client.get(
            "/api/parameters", params={"category_id": categories[0]["id"]}
        ).json()
        assert [p["name"] for p in parameters] == ["Total Employees"]

    def test_update_missing_parameter(self, client, catalog_ids):
        categories = client.get("/api/categories").json()
        response = client.put(
            "/api/parameters/999",
            json={"name": "NOx", "category_id": categories[0]["id"]},
        )
        assert response.status_code == 404


class TestSubmissionsApi:
    """Tests for submission entry and review."""

    def test_create_and_show(self, client, site_id, catalog_ids):
        response = _submit(client, site_id, catalog_ids)
        assert response.status_code == 201
        submission_id = response.json()["id"]

        details = client.get(f"/api/submissions/{submission_id}").json()

        assert details["submission"]["period_start"] == "2024-01-01"
        assert details["submission"]["period_end"] == "2024-01-31"
        assert details["submission"]["status"] == "pending"
        assert details["environmental_data"]["total_electricity"] == 1500
        assert details["social_data"]["total_employees"] == 40

    def test_create_by_name(self, client, site_id, catalog_ids):
        response = _submit(
            client,
            site_id,
            catalog_ids,
            values={"total electricity": "900"},
            by_name=True,
            status="draft",
        )

        submission_id = response.json()["id"]
        details = client.get(f"/api/submissions/{submission_id}").json()
        assert details["submission"]["status"] == "draft"
        assert details["environmental_data"]["total_electricity"] == 900

    def test_missing_site(self, client, catalog_ids):
        response = _submit(client, None, catalog_ids)
        assert response.status_code == 422
        assert "Site is required" in response.json()["detail"]

    def test_month_without_year(self, client, site_id, catalog_ids):
        response = _submit(client, site_id, catalog_ids, year=None)
        assert response.status_code == 422

    @pytest.mark.parametrize("year", [0, -5, 10000])
    def test_year_out_of_range(self, client, site_id, catalog_ids, year):
        response = _submit(client, site_id, catalog_ids, year=year)
        assert response.status_code == 422

    def test_approve_and_conflict(self, client, site_id, catalog_ids):
        submission_id = _submit(client, site_id, catalog_ids).json()["id"]

        approved = client.post(f"/api/submissions/{submission_id}/approve")
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["reviewer"] == "Jane Reviewer"

        again = client.post(f"/api/submissions/{submission_id}/approve")
        assert again.status_code == 409

    def test_reject_requires_comment(self, client, site_id, catalog_ids):
        submission_id = _submit(client, site_id, catalog_ids).json()["id"]

        blank = client.post(f"/api/submissions/{submission_id}/reject", json={"comment": " "})
        assert blank.status_code == 422

        rejected = client.post(
            f"/api/submissions/{submission_id}/reject", json={"comment": "Check meter"}
        )
        assert rejected.json()["review_comment"] == "Check meter"
        assert rejected.json()["reviewer"] == "Jane Reviewer"

    def test_reject_with_explicit_reviewer(self, client, site_id, catalog_ids):
        submission_id = _submit(client, site_id, catalog_ids).json()["id"]

        rejected = client.post(
            f"/api/submissions/{submission_id}/reject",
            json={"comment": "Check meter", "reviewer": "Sam"},
        )

        assert rejected.status_code == 200
        assert rejected.json()["reviewer"] == "Sam"

    def test_unknown_submission(self, client):
        assert client.get("/api/submissions/999").status_code == 404
        assert client.post("/api/submissions/999/approve").status_code == 404

    def test_list_by_status(self, client, site_id, catalog_ids):
        first = _submit(client, site_id, catalog_ids).json()["id"]
        _submit(client, site_id, catalog_ids, month=2)
        client.post(f"/api/submissions/{first}/approve")

        approved = client.get("/api/submissions", params={"status": "approved"}).json()

        assert [item["id"] for item in approved] == [first]
        assert approved[0]["site_name"] == "Plant A"
        assert approved[0]["period"] == "2024-01-01 to 2024-01-31"


class TestDashboardAndReports:
    """Tests for dashboard and report routes."""

    @pytest.fixture
    def approved(self, client, site_id, catalog_ids):
        submission_id = _submit(client, site_id, catalog_ids).json()["id"]
        client.post(f"/api/submissions/{submission_id}/approve")
        return submission_id

    def test_dashboard(self, client, approved):
        body = client.get("/api/dashboard").json()

        assert body["summary"]["total_submissions"] == 1
        assert body["summary"]["site_stats"][0]["total_employees"] == 40
        assert body["charts"]["energy"][0]["Total"] == 1500
        assert body["charts"]["energy"][0]["display_date"] == "Jan'24"
        assert body["fugitive_tco2e"]["total"] == 0

    def test_dashboard_bad_timeframe(self, client):
        assert client.get("/api/dashboard", params={"timeframe": "decade"}).status_code == 422

    def test_report_json(self, client, approved):
        body = client.get("/api/reports/social").json()

        assert body["headers"][:2] == ["Site", "Period"]
        assert body["rows"][0][0] == "Plant A"

    def test_report_csv(self, client, approved):
        response = client.get("/api/reports/environmental", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[1][2] == "1500"

    def test_unknown_report(self, client):
        assert client.get("/api/reports/financial").status_code == 404


class TestEmissionFactorsApi:
    """Tests for /api/emission-factors."""

    def test_crud(self, client):
        created = client.post(
            "/api/emission-factors",
            json={"category": "Fuel", "item": "Coal", "unit_of_measure": "tCO2e/t",
                  "factor_2024": 2.4},
        )
        assert created.status_code == 201
        factor_id = created.json()["id"]

        updated = client.put(f"/api/emission-factors/{factor_id}", json={"factor_2025": 2.5})
        assert updated.json()["factor_2025"] == 2.5
        assert updated.json()["factor_2024"] == 2.4

        assert len(client.get("/api/emission-factors").json()) == 1
        assert client.delete(f"/api/emission-factors/{factor_id}").status_code == 204
        assert client.put("/api/emission-factors/999", json={"item": "x"}).status_code == 404


class TestUsersApi:
    """Tests for /api/users."""

    def test_database_backed(self, client):
        created = client.post(
            "/api/users", json={"username": "approver1", "email": "a@example.com"}
        ).json()

        updated = client.patch(
            f"/api/users/{created['id']}", json={"role": "approver", "status": "inactive"}
        ).json()

        assert updated["role"] == "approver"
        assert updated["status"] == "inactive"
        assert client.get("/api/users/999").status_code == 404

    def test_seeded_from_config(self, temp_db):
        config = Config(
            database={"path": str(temp_db)},
            users=[{"username": "admin", "email": "admin@example.com", "role": "admin"}],
        )
        client = TestClient(create_app(config=config))

        users = client.get("/api/users").json()

        assert [u["username"] for u in users] == ["admin"]

    def test_invalid_role(self, client):
        response = client.post(
            "/api/users", json={"username": "x", "email": "x@example.com", "role": "owner"}
        )
        assert response.status_code == 422
