"""
Forecast Digest
===============

Estate-level summaries built on top of the forecast engine:
- Obligation summary (FRAs due soon / overdue or never done)
- Obligation tracker stats for sites that require an FRA
- Weekly digest of the top forecast priorities, with a markdown rendering

Version: 0.1.0
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from services.compliance_forecast.models.forecast import (
    ComplianceForecastResult,
    LifecycleState,
    StoreRiskForecast,
)
from services.compliance_forecast.models.site import SiteComplianceRecord
from services.compliance_forecast.services.lifecycle import (
    coerce_date,
    resolve_lifecycle_state,
    today,
)
from shared.logging import get_logger


logger = get_logger(__name__)


RECOMMENDED_FOCUS: tuple[str, ...] = (
    "Prioritize high-risk stores with overdue FRA and sub-80 audit outcomes.",
    "Close oldest overdue actions first to reduce near-term forecast risk.",
    "Book compliance visits for high-risk stores without one in the next 14 days.",
)


@dataclass(frozen=True)
class ObligationSummary:
    """FRA renewal pressure across the estate."""

    due_soon: int = 0
    overdue_or_required: int = 0


@dataclass(frozen=True)
class ObligationStats:
    """Tracker counts over sites that require an FRA."""

    sites_requiring: int = 0
    completed: int = 0
    due_or_overdue: int = 0


@dataclass(frozen=True)
class ForecastDigest:
    """Weekly forecast digest."""

    reference_date: date
    avg_risk_score: int
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    obligations: ObligationSummary
    top_stores: tuple[StoreRiskForecast, ...] = ()
    priority_lines: tuple[str, ...] = ()
    markdown: str = ""
    recommended_focus: tuple[str, ...] = RECOMMENDED_FOCUS


def site_requires_obligation(site: SiteComplianceRecord) -> bool:
    """A site needs an FRA once it has been audited at least once."""
    return any(coerce_date(d) is not None for d, _ in site.audit_rounds)


def summarize_obligations(
    sites: Sequence[SiteComplianceRecord],
    reference_date: date | None = None,
) -> ObligationSummary:
    """Count FRAs due within 30 days and FRAs overdue or never completed."""
    reference = coerce_date(reference_date) or today()
    due_soon = 0
    overdue_or_required = 0

    for site in sites:
        state = resolve_lifecycle_state(site.obligation_last_completed_date, reference)
        if state == LifecycleState.DUE:
            due_soon += 1
        elif state in (LifecycleState.OVERDUE, LifecycleState.REQUIRED):
            overdue_or_required += 1

    return ObligationSummary(due_soon=due_soon, overdue_or_required=overdue_or_required)


def obligation_stats(
    sites: Sequence[SiteComplianceRecord],
    reference_date: date | None = None,
) -> ObligationStats:
    """Tracker stats, restricted to sites that require an FRA."""
    reference = coerce_date(reference_date) or today()
    requiring = [s for s in sites if site_requires_obligation(s)]

    completed = sum(
        1 for s in requiring if coerce_date(s.obligation_last_completed_date) is not None
    )
    due_or_overdue = sum(
        1
        for s in requiring
        if resolve_lifecycle_state(s.obligation_last_completed_date, reference)
        in (LifecycleState.DUE, LifecycleState.OVERDUE)
    )

    return ObligationStats(
        sites_requiring=len(requiring),
        completed=completed,
        due_or_overdue=due_or_overdue,
    )


def format_priority_line(position: int, store: StoreRiskForecast) -> str:
    """One numbered line of the top priorities list."""
    code = f" ({store.site_code})" if store.site_code else ""
    drivers = f" | drivers: {'; '.join(store.drivers)}" if store.drivers else ""
    return f"{position}. {store.site_name}{code} - {store.probability}% risk{drivers}"


def _render_markdown(
    reference_date: date,
    forecast: ComplianceForecastResult,
    obligations: ObligationSummary,
    priority_lines: Sequence[str],
    recommended_focus: Sequence[str],
) -> str:
    lines = [
        f"# Compliance Forecast Digest ({reference_date:%d %b %Y})",
        "",
        "## Risk Snapshot",
        f"- Average forecast risk: {forecast.avg_risk_score}%.",
        f"- FRA overdue/required stores: {obligations.overdue_or_required}.",
        f"- FRA due within 30 days: {obligations.due_soon}.",
        (
            f"- Forecast bands: {forecast.high_risk_count} high, "
            f"{forecast.medium_risk_count} medium, {forecast.low_risk_count} low."
        ),
        "",
        "## Top Forecast Priorities",
        *(priority_lines or ["- No forecast priorities available."]),
        "",
        "## Recommended Focus This Week",
        *(f"- {item}" for item in recommended_focus),
    ]
    return "\n".join(lines)


def build_forecast_digest(
    forecast: ComplianceForecastResult,
    obligations: ObligationSummary,
    top_n: int = 5,
    reference_date: date | None = None,
) -> ForecastDigest:
    """
    Build the weekly digest from a computed forecast.

    Args:
        forecast: Forecast result, already sorted by descending risk
        obligations: FRA summary for the same sites
        top_n: Number of priority stores to list
        reference_date: Date the digest is for (defaults to today)

    Returns:
        ForecastDigest including the markdown rendering
    """
    reference = coerce_date(reference_date) or today()
    top_stores = forecast.stores[: max(0, top_n)]
    priority_lines = tuple(
        format_priority_line(i, store) for i, store in enumerate(top_stores, start=1)
    )

    markdown = _render_markdown(
        reference,
        forecast,
        obligations,
        priority_lines,
        RECOMMENDED_FOCUS,
    )

    logger.info(
        "forecast_digest_built",
        reference_date=reference.isoformat(),
        top_n=top_n,
        priorities=len(priority_lines),
    )

    return ForecastDigest(
        reference_date=reference,
        avg_risk_score=forecast.avg_risk_score,
        high_risk_count=forecast.high_risk_count,
        medium_risk_count=forecast.medium_risk_count,
        low_risk_count=forecast.low_risk_count,
        obligations=obligations,
        top_stores=top_stores,
        priority_lines=priority_lines,
        markdown=markdown,
    )
