"""
Compliance Forecast Services
============================

Business logic for obligation lifecycles and risk forecasting.

Services:
- lifecycle: FRA lifecycle resolution and date helpers
- forecast: ForecastService risk heuristic
- loader: Raw row coercion at the data boundary
- digest: Obligation summaries and weekly digest

Version: 0.1.0
"""

from services.compliance_forecast.services.digest import (
    ForecastDigest,
    ObligationStats,
    ObligationSummary,
    build_forecast_digest,
    obligation_stats,
    summarize_obligations,
)
from services.compliance_forecast.services.forecast import (
    ForecastService,
    ForecastWeights,
    RuleOutcome,
    SiteSignals,
    compute_forecast,
    risk_band_for_score,
)
from services.compliance_forecast.services.lifecycle import (
    coerce_date,
    days_until_due,
    next_due_date,
    resolve_lifecycle_state,
)
from services.compliance_forecast.services.loader import (
    ForecastInputError,
    count_open_incidents,
    count_overdue_actions,
    sites_from_rows,
)


__all__ = [
    # Lifecycle
    "coerce_date",
    "days_until_due",
    "next_due_date",
    "resolve_lifecycle_state",
    # Forecast
    "ForecastService",
    "ForecastWeights",
    "RuleOutcome",
    "SiteSignals",
    "compute_forecast",
    "risk_band_for_score",
    # Loader
    "ForecastInputError",
    "count_open_incidents",
    "count_overdue_actions",
    "sites_from_rows",
    # Digest
    "ForecastDigest",
    "ObligationStats",
    "ObligationSummary",
    "build_forecast_digest",
    "obligation_stats",
    "summarize_obligations",
]
