"""
Forecast Input Loader
=====================

Boundary between raw store/incident/action rows and the forecast engine.

Rows arrive as loosely typed mappings keyed by database column names. They
are coerced once here so the engine only ever sees well-shaped records:
unusable dates become None, non-numeric scores become None, and count maps
keep only non-negative integers.

Version: 0.1.0
"""

import math
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from services.compliance_forecast.models.site import SiteComplianceRecord
from services.compliance_forecast.services.lifecycle import coerce_date
from shared.logging import get_logger


logger = get_logger(__name__)


class ForecastInputError(ValueError):
    """Input rows are structurally unusable."""


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_score(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    return value if finite else None


def site_from_row(row: Mapping[str, Any]) -> SiteComplianceRecord:
    """
    Build a site record from a store row.

    Raises:
        ForecastInputError: If the row is not a mapping or has no id
    """
    if not isinstance(row, Mapping):
        raise ForecastInputError(f"Store row must be a mapping, got {type(row).__name__}")

    site_id = _optional_str(row.get("id"))
    if site_id is None:
        raise ForecastInputError("Store row is missing an id")

    return SiteComplianceRecord(
        id=site_id,
        name=_optional_str(row.get("store_name")) or site_id,
        code=_optional_str(row.get("store_code")),
        region=_optional_str(row.get("region")),
        latest_audit_date_1=coerce_date(row.get("compliance_audit_1_date")),
        latest_audit_score_pct_1=_optional_score(row.get("compliance_audit_1_overall_pct")),
        latest_audit_date_2=coerce_date(row.get("compliance_audit_2_date")),
        latest_audit_score_pct_2=_optional_score(row.get("compliance_audit_2_overall_pct")),
        obligation_last_completed_date=coerce_date(row.get("fire_risk_assessment_date")),
        planned_visit_date=coerce_date(row.get("compliance_audit_2_planned_date")),
    )


def sites_from_rows(rows: Any) -> list[SiteComplianceRecord]:
    """
    Build site records for a list of store rows.

    Raises:
        ForecastInputError: If ``rows`` is not a list or any row is unusable
    """
    if not isinstance(rows, (list, tuple)):
        raise ForecastInputError(f"Store rows must be a list, got {type(rows).__name__}")

    sites: list[SiteComplianceRecord] = []
    for index, row in enumerate(rows):
        try:
            sites.append(site_from_row(row))
        except ForecastInputError as e:
            logger.warning("site_row_rejected", index=index, error=str(e))
            raise ForecastInputError(f"Store row {index}: {e}") from e

    logger.debug("site_rows_loaded", count=len(sites))
    return sites


def count_open_incidents(rows: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    """Count open incident rows per ``store_id``, skipping rows without one."""
    counts: Counter[str] = Counter()
    for row in rows:
        store_id = _optional_str(row.get("store_id")) if isinstance(row, Mapping) else None
        if store_id:
            counts[store_id] += 1
    return dict(counts)


def _incident_store_id(action: Mapping[str, Any]) -> str | None:
    incident = action.get("incident")
    if isinstance(incident, list):
        incident = incident[0] if incident else None
    if not isinstance(incident, Mapping):
        return None
    return _optional_str(incident.get("store_id"))


def count_overdue_actions(rows: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    """
    Count overdue action rows per store.

    The store id comes from the action's ``incident`` relation, which may be
    a mapping or a single-element list.
    """
    counts: Counter[str] = Counter()
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        store_id = _incident_store_id(row)
        if store_id:
            counts[store_id] += 1
    return dict(counts)


def coerce_counts(counts: Mapping[Any, Any] | None) -> dict[str, int]:
    """Keep only non-negative integer counts, keyed by string site id."""
    if not counts:
        return {}
    return {
        str(site_id): value
        for site_id, value in counts.items()
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0
    }
