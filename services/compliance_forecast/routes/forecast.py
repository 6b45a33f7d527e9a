"""
Compliance Forecast Routes
==========================

API endpoints for estate risk forecasts and the weekly forecast digest.

Version: 0.1.0
"""

from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from services.compliance_forecast.models.forecast import (
    ComplianceForecastResult,
    LifecycleState,
    RiskBand,
)
from services.compliance_forecast.models.site import SiteComplianceRecord
from services.compliance_forecast.services.digest import (
    build_forecast_digest,
    obligation_stats,
    summarize_obligations,
)
from services.compliance_forecast.services.forecast import (
    ForecastService,
    ForecastWeights,
)
from services.compliance_forecast.services.lifecycle import coerce_date, today
from services.compliance_forecast.services.loader import (
    coerce_counts,
    count_open_incidents,
    count_overdue_actions,
    sites_from_rows,
)
from shared.config import settings
from shared.logging import get_logger


logger = get_logger(__name__)

router = APIRouter()

forecast_service = ForecastService(
    ForecastWeights(max_drivers=settings.forecast.max_drivers),
)


# =============================================================================
# Request/Response Models
# =============================================================================


class ForecastRequest(BaseModel):
    """Snapshot of the estate to forecast."""

    sites: list[dict[str, Any]] = Field(default_factory=list, description="Store rows")
    open_incidents_by_site: dict[str, int] | None = Field(
        None, description="Open incident counts keyed by store id"
    )
    overdue_actions_by_site: dict[str, int] | None = Field(
        None, description="Overdue action counts keyed by store id"
    )
    open_incident_rows: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Open incident rows, counted per store_id when no counts are given",
    )
    overdue_action_rows: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Overdue action rows, counted per incident store when no counts are given",
    )
    reference_date: str | None = Field(None, description="ISO date to forecast for")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sites": [
                        {
                            "id": "store-001",
                            "store_name": "High Street",
                            "store_code": "HS01",
                            "region": "North",
                            "compliance_audit_1_date": "2025-01-14",
                            "compliance_audit_1_overall_pct": 72.5,
                            "compliance_audit_2_date": None,
                            "compliance_audit_2_overall_pct": None,
                            "fire_risk_assessment_date": "2024-02-01",
                            "compliance_audit_2_planned_date": "2025-03-20",
                        }
                    ],
                    "open_incidents_by_site": {"store-001": 2},
                    "overdue_actions_by_site": {"store-001": 1},
                    "reference_date": "2025-03-10",
                }
            ]
        }
    }


class DigestRequest(ForecastRequest):
    """Forecast snapshot plus digest options."""

    top_n: int | None = Field(None, ge=1, le=50, description="Priority stores to list")


class StoreRiskForecastResponse(BaseModel):
    """Forecast for one store."""

    model_config = ConfigDict(from_attributes=True)

    site_id: str
    site_name: str
    site_code: str | None
    region: str | None
    risk_score: int
    probability: int
    risk_band: RiskBand
    open_incidents: int
    overdue_actions: int
    fra_status: LifecycleState
    latest_audit_score: float | None
    planned_date: date | None
    drivers: list[str]


class ComplianceForecastResponse(BaseModel):
    """Estate forecast."""

    reference_date: date
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    avg_risk_score: int
    stores: list[StoreRiskForecastResponse]


class ObligationSummaryResponse(BaseModel):
    """FRA renewal pressure."""

    model_config = ConfigDict(from_attributes=True)

    due_soon: int
    overdue_or_required: int


class ObligationStatsResponse(BaseModel):
    """FRA tracker stats."""

    model_config = ConfigDict(from_attributes=True)

    sites_requiring: int
    completed: int
    due_or_overdue: int


class ForecastDigestResponse(BaseModel):
    """Weekly forecast digest."""

    reference_date: date
    avg_risk_score: int
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    obligations: ObligationSummaryResponse
    obligation_stats: ObligationStatsResponse
    top_stores: list[StoreRiskForecastResponse]
    priority_lines: list[str]
    recommended_focus: list[str]
    markdown: str


# =============================================================================
# Helpers
# =============================================================================


def resolve_reference_date(value: str | None) -> date:
    """Parse the request reference date, defaulting to today."""
    if value is None:
        return today()

    parsed = coerce_date(value)
    if parsed is None:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid reference_date: {value!r}",
        )
    return parsed


def _lookup_counts(
    counts: dict[str, int] | None,
    rows: list[dict[str, Any]],
    counter: Callable[[Iterable[Mapping[str, Any]]], dict[str, int]],
) -> dict[str, int]:
    if counts is not None:
        return coerce_counts(counts)
    return counter(rows)


def _run_forecast(
    request: ForecastRequest,
) -> tuple[date, list[SiteComplianceRecord], ComplianceForecastResult]:
    reference = resolve_reference_date(request.reference_date)
    sites = sites_from_rows(request.sites)

    result = forecast_service.compute_forecast(
        sites,
        open_incidents_by_site=_lookup_counts(
            request.open_incidents_by_site,
            request.open_incident_rows,
            count_open_incidents,
        ),
        overdue_actions_by_site=_lookup_counts(
            request.overdue_actions_by_site,
            request.overdue_action_rows,
            count_overdue_actions,
        ),
        reference_date=reference,
    )
    return reference, sites, result


# =============================================================================
# Routes
# =============================================================================


@router.post("", response_model=ComplianceForecastResponse)
async def compute_estate_forecast(request: ForecastRequest) -> ComplianceForecastResponse:
    """
    Forecast near-term compliance risk for every store in the snapshot.

    Stores are returned highest risk first. Unusable dates inside store rows
    count as missing data rather than errors.
    """
    reference, _, result = _run_forecast(request)

    logger.debug(
        "estate_forecast_served",
        reference_date=reference.isoformat(),
        site_count=len(result.stores),
    )

    return ComplianceForecastResponse(
        reference_date=reference,
        high_risk_count=result.high_risk_count,
        medium_risk_count=result.medium_risk_count,
        low_risk_count=result.low_risk_count,
        avg_risk_score=result.avg_risk_score,
        stores=[StoreRiskForecastResponse.model_validate(s) for s in result.stores],
    )


@router.post("/digest", response_model=ForecastDigestResponse)
async def compute_forecast_digest(request: DigestRequest) -> ForecastDigestResponse:
    """Build the weekly digest: FRA pressure plus the top forecast priorities."""
    reference, sites, result = _run_forecast(request)
    top_n = request.top_n or settings.forecast.digest_top_n

    digest = build_forecast_digest(
        result,
        summarize_obligations(sites, reference),
        top_n=top_n,
        reference_date=reference,
    )

    return ForecastDigestResponse(
        reference_date=digest.reference_date,
        avg_risk_score=digest.avg_risk_score,
        high_risk_count=digest.high_risk_count,
        medium_risk_count=digest.medium_risk_count,
        low_risk_count=digest.low_risk_count,
        obligations=ObligationSummaryResponse.model_validate(digest.obligations),
        obligation_stats=ObligationStatsResponse.model_validate(
            obligation_stats(sites, reference)
        ),
        top_stores=[StoreRiskForecastResponse.model_validate(s) for s in digest.top_stores],
        priority_lines=list(digest.priority_lines),
        recommended_focus=list(digest.recommended_focus),
        markdown=digest.markdown,
    )
