"""
Forecast Models
===============

Lifecycle states, risk bands and the per-site / aggregate forecast results.

Version: 0.1.0
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class LifecycleState(str, Enum):
    """Renewal status of a 12-monthly compliance obligation."""

    REQUIRED = "required"
    OVERDUE = "overdue"
    DUE = "due"
    UP_TO_DATE = "up_to_date"


class RiskBand(str, Enum):
    """Coarse risk bucket for triage."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class StoreRiskForecast:
    """Forecast for a single site."""

    site_id: str
    site_name: str
    site_code: str | None
    region: str | None

    # 0..99; probability mirrors risk_score for consumers using that label
    risk_score: int
    probability: int
    risk_band: RiskBand

    open_incidents: int
    overdue_actions: int
    fra_status: LifecycleState
    latest_audit_score: float | None
    planned_date: date | None

    drivers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ComplianceForecastResult:
    """Aggregate forecast across all sites, highest risk first."""

    high_risk_count: int = 0
    medium_risk_count: int = 0
    low_risk_count: int = 0
    avg_risk_score: int = 0
    stores: tuple[StoreRiskForecast, ...] = field(default_factory=tuple)
