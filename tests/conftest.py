"""
Test Configuration
==================

Pytest fixtures for RetailSafe tests.
"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"

from services.compliance_forecast.models.site import SiteComplianceRecord  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def compliance_forecast_client() -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Compliance Forecast Service."""
    from services.compliance_forecast.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def reference_date() -> date:
    """Fixed forecast date (15 Mar 2025; the following month has 31 days)."""
    return date(2025, 3, 15)


@pytest.fixture
def make_site() -> Callable[..., SiteComplianceRecord]:
    """Factory for site records with no data unless overridden."""

    def _make(site_id: str = "site-1", **overrides: Any) -> SiteComplianceRecord:
        values: dict[str, Any] = {
            "id": site_id,
            "name": f"Store {site_id}",
            "code": None,
            "region": None,
        }
        values.update(overrides)
        return SiteComplianceRecord(**values)

    return _make


@pytest.fixture
def sample_store_rows() -> list[dict[str, Any]]:
    """Store rows as returned by the data layer."""
    return [
        {
            "id": "store-001",
            "store_name": "High Street",
            "store_code": "HS01",
            "region": "North",
            "compliance_audit_1_date": "2025-03-05",
            "compliance_audit_1_overall_pct": 92,
            "compliance_audit_2_date": None,
            "compliance_audit_2_overall_pct": None,
            "fire_risk_assessment_date": "2024-04-15",
            "compliance_audit_2_planned_date": None,
        },
        {
            "id": "store-002",
            "store_name": "Retail Park",
            "store_code": "RP02",
            "region": "South",
            "compliance_audit_1_date": "2025-03-05",
            "compliance_audit_1_overall_pct": 60,
            "compliance_audit_2_date": None,
            "compliance_audit_2_overall_pct": None,
            "fire_risk_assessment_date": "2024-02-15",
            "compliance_audit_2_planned_date": None,
        },
        {
            "id": "store-003",
            "store_name": "Station Kiosk",
            "store_code": None,
            "region": None,
            "compliance_audit_1_date": None,
            "compliance_audit_1_overall_pct": None,
            "compliance_audit_2_date": None,
            "compliance_audit_2_overall_pct": None,
            "fire_risk_assessment_date": None,
            "compliance_audit_2_planned_date": None,
        },
    ]
