"""
Compliance Forecast API Tests
=============================

Tests for the compliance forecast HTTP endpoints.

Version: 0.1.0
"""

from typing import Any

import pytest
from httpx import AsyncClient


# =============================================================================
# Health Tests
# =============================================================================


class TestHealth:
    """Tests for health and root endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "compliance-forecast"

    @pytest.mark.asyncio
    async def test_root(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "RetailSafe Compliance Forecast Service"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.get(
            "/health",
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.get("/")

        assert response.headers["X-Request-ID"]


# =============================================================================
# Forecast Endpoint Tests
# =============================================================================


class TestForecastEndpoint:
    """Tests for POST /api/v1/forecast."""

    @pytest.mark.asyncio
    async def test_forecast_sample_estate(
        self,
        compliance_forecast_client: AsyncClient,
        sample_store_rows: list[dict[str, Any]],
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={"sites": sample_store_rows, "reference_date": "2025-03-15"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["reference_date"] == "2025-03-15"
        assert data["avg_risk_score"] == 53
        assert (data["high_risk_count"], data["medium_risk_count"], data["low_risk_count"]) == (1, 1, 1)
        assert [s["site_id"] for s in data["stores"]] == ["store-002", "store-003", "store-001"]

        top = data["stores"][0]
        assert top["risk_score"] == 87
        assert top["probability"] == 87
        assert top["risk_band"] == "high"
        assert top["fra_status"] == "overdue"
        assert top["latest_audit_score"] == 60
        assert top["drivers"] == [
            "Latest audit below pass threshold (60%)",
            "FRA is overdue",
        ]

    @pytest.mark.asyncio
    async def test_forecast_with_count_maps(
        self,
        compliance_forecast_client: AsyncClient,
        sample_store_rows: list[dict[str, Any]],
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={
                "sites": sample_store_rows,
                "open_incidents_by_site": {"store-002": 1},
                "overdue_actions_by_site": {"store-002": 2},
                "reference_date": "2025-03-15",
            },
        )

        assert response.status_code == 200
        data = response.json()
        top = data["stores"][0]
        assert top["risk_score"] == 99
        assert (top["open_incidents"], top["overdue_actions"]) == (1, 2)
        assert top["drivers"][2:] == ["2 overdue actions", "1 open incident"]
        assert data["avg_risk_score"] == 57

    @pytest.mark.asyncio
    async def test_forecast_counts_rows(
        self,
        compliance_forecast_client: AsyncClient,
        sample_store_rows: list[dict[str, Any]],
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={
                "sites": sample_store_rows,
                "open_incident_rows": [{"id": "i1", "store_id": "store-002"}],
                "overdue_action_rows": [
                    {"id": "a1", "incident": {"store_id": "store-002"}},
                    {"id": "a2", "incident": [{"store_id": "store-002"}]},
                ],
                "reference_date": "2025-03-15",
            },
        )

        assert response.status_code == 200
        top = response.json()["stores"][0]
        assert top["site_id"] == "store-002"
        assert (top["open_incidents"], top["overdue_actions"]) == (1, 2)

    @pytest.mark.asyncio
    async def test_empty_estate(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={"sites": [], "reference_date": "2025-03-15"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["stores"] == []
        assert data["avg_risk_score"] == 0

    @pytest.mark.asyncio
    async def test_invalid_reference_date(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={"sites": [], "reference_date": "not-a-date"},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Invalid reference_date: 'not-a-date'"

    @pytest.mark.asyncio
    async def test_malformed_body_uses_error_envelope(
        self,
        compliance_forecast_client: AsyncClient,
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={"sites": "store-001"},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["status_code"] == 422
        assert data["details"]
        assert data["details"][0]["loc"][:2] == ["body", "sites"]

    @pytest.mark.asyncio
    async def test_row_without_id(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={"sites": [{"store_name": "Nameless"}], "reference_date": "2025-03-15"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Store row 0: Store row is missing an id"

    @pytest.mark.asyncio
    async def test_malformed_site_dates_are_missing_data(
        self,
        compliance_forecast_client: AsyncClient,
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast",
            json={
                "sites": [
                    {
                        "id": "s1",
                        "compliance_audit_1_date": "garbage",
                        "compliance_audit_1_overall_pct": 90,
                        "fire_risk_assessment_date": "2024-99-99",
                    }
                ],
                "reference_date": "2025-03-15",
            },
        )

        assert response.status_code == 200
        store = response.json()["stores"][0]
        assert store["risk_score"] == 64
        assert store["fra_status"] == "required"


# =============================================================================
# Digest Endpoint Tests
# =============================================================================


class TestDigestEndpoint:
    """Tests for POST /api/v1/forecast/digest."""

    @pytest.mark.asyncio
    async def test_digest(
        self,
        compliance_forecast_client: AsyncClient,
        sample_store_rows: list[dict[str, Any]],
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast/digest",
            json={"sites": sample_store_rows, "reference_date": "2025-03-15", "top_n": 2},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["obligations"] == {"due_soon": 0, "overdue_or_required": 2}
        assert data["obligation_stats"] == {
            "sites_requiring": 2,
            "completed": 2,
            "due_or_overdue": 1,
        }
        assert [s["site_id"] for s in data["top_stores"]] == ["store-002", "store-003"]
        assert data["priority_lines"][0].startswith("1. Retail Park (RP02) - 87% risk")
        assert len(data["recommended_focus"]) == 3
        assert data["markdown"].startswith("# Compliance Forecast Digest (15 Mar 2025)")

    @pytest.mark.asyncio
    async def test_digest_default_top_n(
        self,
        compliance_forecast_client: AsyncClient,
        sample_store_rows: list[dict[str, Any]],
    ) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast/digest",
            json={"sites": sample_store_rows, "reference_date": "2025-03-15"},
        )

        assert response.status_code == 200
        assert len(response.json()["top_stores"]) == 3

    @pytest.mark.asyncio
    async def test_digest_rejects_zero_top_n(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.post(
            "/api/v1/forecast/digest",
            json={"sites": [], "top_n": 0},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Request validation failed"
        assert data["details"][0]["loc"] == ["body", "top_n"]


# =============================================================================
# Lifecycle Endpoint Tests
# =============================================================================


class TestLifecycleEndpoint:
    """Tests for GET /api/v1/lifecycle."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "last_completed, state, days",
        [
            ("2024-02-15", "overdue", -28),
            ("2024-04-14", "due", 30),
            ("2024-04-15", "up_to_date", 31),
        ],
    )
    async def test_states(
        self,
        compliance_forecast_client: AsyncClient,
        last_completed: str,
        state: str,
        days: int,
    ) -> None:
        response = await compliance_forecast_client.get(
            "/api/v1/lifecycle",
            params={"last_completed": last_completed, "reference_date": "2025-03-15"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == state
        assert data["days_until_due"] == days
        assert data["last_completed_date"] == last_completed

    @pytest.mark.asyncio
    async def test_next_due_date(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.get(
            "/api/v1/lifecycle",
            params={"last_completed": "2024-02-29", "reference_date": "2025-01-01"},
        )

        assert response.json()["next_due_date"] == "2025-02-28"

    @pytest.mark.asyncio
    async def test_missing_completion_is_required(
        self,
        compliance_forecast_client: AsyncClient,
    ) -> None:
        response = await compliance_forecast_client.get(
            "/api/v1/lifecycle",
            params={"reference_date": "2025-03-15"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "required"
        assert data["next_due_date"] is None
        assert data["days_until_due"] is None

    @pytest.mark.asyncio
    async def test_unparseable_completion_is_required(
        self,
        compliance_forecast_client: AsyncClient,
    ) -> None:
        response = await compliance_forecast_client.get(
            "/api/v1/lifecycle",
            params={"last_completed": "last spring", "reference_date": "2025-03-15"},
        )

        assert response.json()["state"] == "required"

    @pytest.mark.asyncio
    async def test_invalid_reference_date(self, compliance_forecast_client: AsyncClient) -> None:
        response = await compliance_forecast_client.get(
            "/api/v1/lifecycle",
            params={"reference_date": "15/03/2025"},
        )

        assert response.status_code == 422
