"""
Compliance Risk Forecast Engine
===============================

Combines weak per-site signals into a bounded, explainable risk score.

Signals (evaluated in this order, which is also the order of the drivers):
1. Latest audit score (missing, failing or marginal)
2. Fire risk assessment lifecycle state
3. Overdue corrective actions
4. Open incidents
5. Planned compliance visit in the next 14 days (discount)
6. Strong audit completed in the last 30 days (discount)

The score starts at a base of 15, is rounded half-up and clamped to 0..99,
then banded: >= 70 high, >= 45 medium, otherwise low. Only the first four
drivers are kept, in evaluation order.

Version: 0.1.0
"""

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from services.compliance_forecast.models.forecast import (
    ComplianceForecastResult,
    LifecycleState,
    RiskBand,
    StoreRiskForecast,
)
from services.compliance_forecast.models.site import SiteComplianceRecord
from services.compliance_forecast.services.lifecycle import (
    coerce_date,
    days_between,
    resolve_lifecycle_state,
    today,
)
from shared.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Forecast Configuration
# =============================================================================


@dataclass
class ForecastWeights:
    """Weights and thresholds for the risk heuristic."""

    base_score: float = 15

    # Audit score
    missing_audit_penalty: float = 25
    audit_pass_threshold: float = 80
    audit_fail_penalty: float = 28
    audit_shortfall_multiplier: float = 0.7
    audit_shortfall_cap: float = 18
    audit_margin_threshold: float = 85
    audit_margin_penalty: float = 8

    # Fire risk assessment lifecycle
    lifecycle_penalties: dict[LifecycleState, float] = field(
        default_factory=lambda: {
            LifecycleState.OVERDUE: 30,
            LifecycleState.REQUIRED: 24,
            LifecycleState.DUE: 12,
        }
    )

    # Per-item penalties with caps
    overdue_action_penalty: float = 7
    overdue_action_cap: float = 28
    open_incident_penalty: float = 6
    open_incident_cap: float = 24

    # Discounts
    planned_visit_window_days: int = 14
    planned_visit_discount: float = 10
    recent_audit_window_days: int = 30
    recent_audit_discount: float = 8

    # Output shaping
    max_score: int = 99
    high_band_threshold: int = 70
    medium_band_threshold: int = 45
    max_drivers: int = 4


LIFECYCLE_DRIVERS: dict[LifecycleState, str] = {
    LifecycleState.OVERDUE: "FRA is overdue",
    LifecycleState.REQUIRED: "No in-date FRA recorded",
    LifecycleState.DUE: "FRA expires within 30 days",
}


@dataclass(frozen=True)
class SiteSignals:
    """Everything the rules need about one site, resolved once."""

    reference_date: date
    latest_audit_score: float | None
    most_recent_audit_date: date | None
    fra_status: LifecycleState
    overdue_actions: int
    open_incidents: int
    planned_visit_date: date | None


@dataclass(frozen=True)
class RuleOutcome:
    """Score adjustment produced by one rule, with its explanation."""

    delta: float
    driver: str | None = None


Rule = Callable[[SiteSignals, ForecastWeights], RuleOutcome | None]


# =============================================================================
# Helpers
# =============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return math.floor(value + 0.5)


def _is_score(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def latest_audit_score(site: SiteComplianceRecord) -> float | None:
    """Score of the most recent audit round that has both a date and a score."""
    candidates = [
        (audit_date, score)
        for audit_date, score in (
            (coerce_date(d), s) for d, s in site.audit_rounds
        )
        if audit_date is not None and _is_score(score)
    ]
    if not candidates:
        return None

    # Stable: on equal dates the earlier round wins
    candidates.sort(key=lambda c: c[0], reverse=True)
    return candidates[0][1]


def most_recent_audit_date(site: SiteComplianceRecord) -> date | None:
    """Latest audit date across both rounds, whether or not a score was recorded."""
    dates = [d for d in (coerce_date(d) for d, _ in site.audit_rounds) if d is not None]
    return max(dates) if dates else None


def risk_band_for_score(
    risk_score: int,
    weights: ForecastWeights | None = None,
) -> RiskBand:
    """Map a bounded risk score onto its band."""
    weights = weights or ForecastWeights()
    if risk_score >= weights.high_band_threshold:
        return RiskBand.HIGH
    if risk_score >= weights.medium_band_threshold:
        return RiskBand.MEDIUM
    return RiskBand.LOW


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


# =============================================================================
# Rules
# =============================================================================


def audit_score_rule(signals: SiteSignals, weights: ForecastWeights) -> RuleOutcome | None:
    """Penalize a missing, failing or marginal latest audit."""
    score = signals.latest_audit_score

    if score is None:
        return RuleOutcome(weights.missing_audit_penalty, "No recent audit score recorded")

    if score < weights.audit_pass_threshold:
        shortfall = weights.audit_pass_threshold - score
        delta = weights.audit_fail_penalty + min(
            weights.audit_shortfall_cap,
            shortfall * weights.audit_shortfall_multiplier,
        )
        return RuleOutcome(
            delta,
            f"Latest audit below pass threshold ({round_half_up(score)}%)",
        )

    if score < weights.audit_margin_threshold:
        return RuleOutcome(
            weights.audit_margin_penalty,
            f"Latest audit margin is narrow ({round_half_up(score)}%)",
        )

    return None


def lifecycle_rule(signals: SiteSignals, weights: ForecastWeights) -> RuleOutcome | None:
    """Penalize a fire risk assessment that is missing, overdue or nearly due."""
    penalty = weights.lifecycle_penalties.get(signals.fra_status)
    if not penalty:
        return None
    return RuleOutcome(penalty, LIFECYCLE_DRIVERS.get(signals.fra_status))


def overdue_actions_rule(signals: SiteSignals, weights: ForecastWeights) -> RuleOutcome | None:
    count = signals.overdue_actions
    if count <= 0:
        return None
    return RuleOutcome(
        min(weights.overdue_action_cap, count * weights.overdue_action_penalty),
        _plural(count, "overdue action"),
    )


def open_incidents_rule(signals: SiteSignals, weights: ForecastWeights) -> RuleOutcome | None:
    count = signals.open_incidents
    if count <= 0:
        return None
    return RuleOutcome(
        min(weights.open_incident_cap, count * weights.open_incident_penalty),
        _plural(count, "open incident"),
    )


def planned_visit_rule(signals: SiteSignals, weights: ForecastWeights) -> RuleOutcome | None:
    """Discount a site with a compliance visit booked in the next two weeks."""
    if signals.planned_visit_date is None:
        return None

    days_until_visit = days_between(signals.planned_visit_date, signals.reference_date)
    if 0 <= days_until_visit <= weights.planned_visit_window_days:
        return RuleOutcome(
            -weights.planned_visit_discount,
            f"Planned compliance visit scheduled within {weights.planned_visit_window_days} days",
        )
    return None


def recent_strong_audit_rule(signals: SiteSignals, weights: ForecastWeights) -> RuleOutcome | None:
    """
    Discount a site whose latest scored audit passed and was recently carried out.

    Recency is taken from the newest audit date of either round, even one
    without a score.
    """
    score = signals.latest_audit_score
    audit_date = signals.most_recent_audit_date
    if audit_date is None or score is None or score < weights.audit_pass_threshold:
        return None

    days_since_audit = days_between(signals.reference_date, audit_date)
    if 0 <= days_since_audit <= weights.recent_audit_window_days:
        return RuleOutcome(-weights.recent_audit_discount, "Strong recent audit completion")
    return None


RISK_RULES: tuple[Rule, ...] = (
    audit_score_rule,
    lifecycle_rule,
    overdue_actions_rule,
    open_incidents_rule,
    planned_visit_rule,
    recent_strong_audit_rule,
)


# =============================================================================
# Forecast Service
# =============================================================================


class ForecastService:
    """
    Service for forecasting near-term compliance risk across sites.

    Stateless: every call recomputes from the supplied snapshot and reference
    date, so one instance can be shared between concurrent callers.
    """

    def __init__(
        self,
        weights: ForecastWeights | None = None,
        rules: Sequence[Rule] = RISK_RULES,
    ) -> None:
        """
        Initialize the forecast service.

        Args:
            weights: Custom weights and thresholds
            rules: Ordered rule table
        """
        self.weights = weights or ForecastWeights()
        self.rules = tuple(rules)

    def collect_signals(
        self,
        site: SiteComplianceRecord,
        reference_date: date,
        open_incidents: int = 0,
        overdue_actions: int = 0,
    ) -> SiteSignals:
        """Resolve the raw inputs for one site into rule signals."""
        return SiteSignals(
            reference_date=reference_date,
            latest_audit_score=latest_audit_score(site),
            most_recent_audit_date=most_recent_audit_date(site),
            fra_status=resolve_lifecycle_state(
                site.obligation_last_completed_date,
                reference_date,
            ),
            overdue_actions=overdue_actions,
            open_incidents=open_incidents,
            planned_visit_date=coerce_date(site.planned_visit_date),
        )

    def evaluate_rules(self, signals: SiteSignals) -> list[RuleOutcome]:
        """Run the rule table in order, keeping only rules that fired."""
        outcomes: list[RuleOutcome] = []
        for rule in self.rules:
            outcome = rule(signals, self.weights)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def score_site(
        self,
        site: SiteComplianceRecord,
        reference_date: date,
        open_incidents: int = 0,
        overdue_actions: int = 0,
    ) -> StoreRiskForecast:
        """
        Score one site.

        Args:
            site: Site snapshot
            reference_date: Date the forecast is made for
            open_incidents: Open incidents at the site
            overdue_actions: Overdue corrective actions at the site

        Returns:
            StoreRiskForecast with bounded score, band and drivers
        """
        signals = self.collect_signals(site, reference_date, open_incidents, overdue_actions)
        outcomes = self.evaluate_rules(signals)

        raw_score = self.weights.base_score
        for outcome in outcomes:
            raw_score += outcome.delta

        risk_score = max(0, min(self.weights.max_score, round_half_up(raw_score)))
        drivers = [o.driver for o in outcomes if o.driver][: self.weights.max_drivers]

        return StoreRiskForecast(
            site_id=site.id,
            site_name=site.name,
            site_code=site.code,
            region=site.region,
            risk_score=risk_score,
            probability=risk_score,
            risk_band=risk_band_for_score(risk_score, self.weights),
            open_incidents=open_incidents,
            overdue_actions=overdue_actions,
            fra_status=signals.fra_status,
            latest_audit_score=signals.latest_audit_score,
            planned_date=signals.planned_visit_date,
            drivers=tuple(drivers),
        )

    def compute_forecast(
        self,
        sites: Sequence[SiteComplianceRecord],
        open_incidents_by_site: Mapping[str, int] | None = None,
        overdue_actions_by_site: Mapping[str, int] | None = None,
        reference_date: date | None = None,
    ) -> ComplianceForecastResult:
        """
        Forecast risk for every site and summarize the estate.

        Args:
            sites: Site snapshots (may be empty)
            open_incidents_by_site: Open incident counts keyed by site id
            overdue_actions_by_site: Overdue action counts keyed by site id
            reference_date: Forecast date, captured once (defaults to today)

        Returns:
            ComplianceForecastResult with sites ordered by descending risk
        """
        reference = coerce_date(reference_date)
        if reference is None:
            if reference_date is not None:
                logger.warning("reference_date_invalid", reference_date=str(reference_date))
            reference = today()
        incidents = open_incidents_by_site or {}
        actions = overdue_actions_by_site or {}

        forecasts = [
            self.score_site(
                site,
                reference,
                open_incidents=incidents.get(site.id) or 0,
                overdue_actions=actions.get(site.id) or 0,
            )
            for site in sites
        ]

        # sorted() is stable, so equal scores keep input order
        ranked = sorted(forecasts, key=lambda f: f.risk_score, reverse=True)

        band_counts = {band: 0 for band in RiskBand}
        for forecast in ranked:
            band_counts[forecast.risk_band] += 1

        avg_risk_score = (
            round_half_up(sum(f.risk_score for f in ranked) / len(ranked))
            if ranked
            else 0
        )

        result = ComplianceForecastResult(
            high_risk_count=band_counts[RiskBand.HIGH],
            medium_risk_count=band_counts[RiskBand.MEDIUM],
            low_risk_count=band_counts[RiskBand.LOW],
            avg_risk_score=avg_risk_score,
            stores=tuple(ranked),
        )

        logger.info(
            "forecast_computed",
            reference_date=reference.isoformat(),
            site_count=len(ranked),
            high_risk=result.high_risk_count,
            medium_risk=result.medium_risk_count,
            low_risk=result.low_risk_count,
            avg_risk_score=avg_risk_score,
        )

        return result


def compute_forecast(
    sites: Sequence[SiteComplianceRecord],
    open_incidents_by_site: Mapping[str, int] | None = None,
    overdue_actions_by_site: Mapping[str, int] | None = None,
    reference_date: date | None = None,
) -> ComplianceForecastResult:
    """Forecast with the default weights."""
    return ForecastService().compute_forecast(
        sites,
        open_incidents_by_site,
        overdue_actions_by_site,
        reference_date,
    )
