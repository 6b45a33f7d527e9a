"""
Site Compliance Records
=======================

Typed snapshot of a single site as supplied to the forecast engine.

Version: 0.1.0
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class SiteComplianceRecord:
    """
    Compliance snapshot for one site.

    Two audit rounds are tracked. A round only contributes an audit score when
    both its date and its percentage are present; the dates alone still count
    towards audit recency.
    """

    id: str
    name: str
    code: str | None = None
    region: str | None = None

    # Audit rounds
    latest_audit_date_1: date | None = None
    latest_audit_score_pct_1: float | None = None
    latest_audit_date_2: date | None = None
    latest_audit_score_pct_2: float | None = None

    # Fire risk assessment
    obligation_last_completed_date: date | None = None

    # Next scheduled compliance visit
    planned_visit_date: date | None = None

    @property
    def audit_rounds(self) -> tuple[tuple[date | None, float | None], ...]:
        """(date, score) pairs for both audit rounds, in round order."""
        return (
            (self.latest_audit_date_1, self.latest_audit_score_pct_1),
            (self.latest_audit_date_2, self.latest_audit_score_pct_2),
        )
