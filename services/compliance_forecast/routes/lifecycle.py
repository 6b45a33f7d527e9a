"""
Obligation Lifecycle Routes
===========================

API endpoint for resolving the renewal status of a fire risk assessment.

Version: 0.1.0
"""

from datetime import date

from fastapi import APIRouter, Query
from pydantic import BaseModel

from services.compliance_forecast.models.forecast import LifecycleState
from services.compliance_forecast.routes.forecast import resolve_reference_date
from services.compliance_forecast.services.lifecycle import (
    coerce_date,
    days_until_due,
    next_due_date,
    resolve_lifecycle_state,
)


router = APIRouter()


class LifecycleResponse(BaseModel):
    """Lifecycle state of one obligation."""

    state: LifecycleState
    reference_date: date
    last_completed_date: date | None
    next_due_date: date | None
    days_until_due: int | None


@router.get("", response_model=LifecycleResponse)
async def get_lifecycle_state(
    last_completed: str | None = Query(None, description="Date the FRA was last completed"),
    reference_date: str | None = Query(None, description="ISO date to evaluate against"),
) -> LifecycleResponse:
    """
    Resolve an FRA's lifecycle state.

    A missing or unusable completion date resolves to ``required``.
    """
    reference = resolve_reference_date(reference_date)
    due = next_due_date(last_completed)

    return LifecycleResponse(
        state=resolve_lifecycle_state(last_completed, reference),
        reference_date=reference,
        last_completed_date=coerce_date(last_completed),
        next_due_date=due,
        days_until_due=days_until_due(last_completed, reference),
    )
