"""
Compliance Forecast Models
==========================

Typed input and output records for the forecast engine.

Version: 0.1.0
"""

from services.compliance_forecast.models.forecast import (
    ComplianceForecastResult,
    LifecycleState,
    RiskBand,
    StoreRiskForecast,
)
from services.compliance_forecast.models.site import SiteComplianceRecord

__all__ = [
    "ComplianceForecastResult",
    "LifecycleState",
    "RiskBand",
    "SiteComplianceRecord",
    "StoreRiskForecast",
]
