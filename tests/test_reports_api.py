"""Tests for the report download and health endpoints"""

from io import BytesIO

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from openpyxl import load_workbook

from modelvault.api.dependencies import get_store
from modelvault.main import app


@pytest_asyncio.fixture
async def client(store):
    """HTTP client against the app, bound to the test store"""
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestAdminReportRoute:
    """Test POST /api/v1/reports/admin"""

    @pytest.mark.asyncio
    async def test_download_workbook(self, client, seeded):
        response = await client.post(
            "/api/v1/reports/admin",
            json={"creator_projects_summary": True, "active_clients_count": True},
            headers={"X-User-Id": str(seeded["admin"]["id"])},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert 'filename="admin_report.xlsx"' in response.headers["content-disposition"]

        workbook = load_workbook(BytesIO(response.content))
        assert workbook.sheetnames == ["metadata", "projects_per_creator", "active_clients"]

    @pytest.mark.asyncio
    async def test_missing_user_header(self, client, seeded):
        response = await client.post("/api/v1/reports/admin", json={})

        assert response.status_code == 401
        body = response.json()
        assert body["type"] == "/errors/unauthorized"
        assert body["instance"] == "/api/v1/reports/admin"

    @pytest.mark.asyncio
    async def test_unapproved_user_rejected(self, client, seeded):
        response = await client.post(
            "/api/v1/reports/admin", json={}, headers={"X-User-Id": str(seeded["pending"]["id"])}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, client, seeded):
        response = await client.post(
            "/api/v1/reports/admin", json={}, headers={"X-User-Id": str(seeded["creator"]["id"])}
        )

        assert response.status_code == 403
        assert response.json()["title"] == "Forbidden"


class TestErrorMapping:
    """Test problem-details responses for service errors"""

    @pytest.mark.asyncio
    async def test_store_failure_is_bad_gateway(self, client, seeded, monkeypatch):
        from modelvault.reports.admin_report_generator import AdminReportGenerator
        from modelvault.store.record_store import StoreError

        async def failing(self, options):
            raise StoreError("connection reset")

        monkeypatch.setattr(AdminReportGenerator, "generate_report", failing)

        response = await client.post(
            "/api/v1/reports/admin", json={}, headers={"X-User-Id": str(seeded["admin"]["id"])}
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "connection reset"


class TestHealth:
    """Test GET /health"""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] in ("healthy", "degraded")
        assert "database" in response.json()["services"]
