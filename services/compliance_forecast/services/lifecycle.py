"""
Obligation Lifecycle Resolver
=============================

Derives the renewal status of a 12-monthly compliance obligation (the fire
risk assessment) from its last completion date.

States:
- REQUIRED: never completed, or the stored date is unusable
- OVERDUE: the renewal date has passed
- DUE: renewal falls within the next 30 days (inclusive)
- UP_TO_DATE: more than 30 days of cover remain

All arithmetic is on calendar dates. Datetimes lose their time of day before
comparison so a result is stable for the whole day.

Version: 0.1.0
"""

from datetime import date, datetime
from typing import Any

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from services.compliance_forecast.models.forecast import LifecycleState


RENEWAL_PERIOD = relativedelta(months=12)
DUE_SOON_WINDOW_DAYS = 30


def coerce_date(value: Any) -> date | None:
    """
    Normalize a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` and ISO-8601 strings (date or date-time).
    Anything else, including blank or unparseable strings, yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return isoparse(text).date()
        except (ValueError, OverflowError):
            return None
    return None


def today() -> date:
    """Current calendar date."""
    return date.today()


def days_between(later: date, earlier: date) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if reversed)."""
    return (later - earlier).days


def next_due_date(last_completed_date: Any) -> date | None:
    """Renewal date: 12 calendar months after the last completion."""
    completed = coerce_date(last_completed_date)
    if completed is None:
        return None
    return completed + RENEWAL_PERIOD


def days_until_due(
    last_completed_date: Any,
    reference_date: Any = None,
) -> int | None:
    """
    Days of cover left before renewal.

    Positive while in date, negative once overdue, None when there is no
    usable completion date.
    """
    due = next_due_date(last_completed_date)
    if due is None:
        return None
    reference = coerce_date(reference_date) or today()
    return days_between(due, reference)


def resolve_lifecycle_state(
    last_completed_date: Any,
    reference_date: Any = None,
) -> LifecycleState:
    """
    Resolve the lifecycle state of an obligation.

    Args:
        last_completed_date: Date the obligation was last completed
        reference_date: Date to evaluate against (defaults to today)

    Returns:
        LifecycleState for the reference date
    """
    remaining = days_until_due(last_completed_date, reference_date)

    if remaining is None:
        return LifecycleState.REQUIRED
    if remaining < 0:
        return LifecycleState.OVERDUE
    if remaining <= DUE_SOON_WINDOW_DAYS:
        return LifecycleState.DUE
    return LifecycleState.UP_TO_DATE
