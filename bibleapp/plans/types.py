"""Reading plan types.

A Plan is owned by the backend. The client never flips ``is_active`` itself;
it re-reads the whole collection after every mutation.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Plan(BaseModel):
    """A themed sequence of daily passages.

    Attributes:
        id: Backend identifier
        topic: Theme of the plan
        duration_days: Number of daily readings (>= 1)
        created_at: Creation timestamp, used for display ordering
        is_active: Whether this is the plan today's passage is drawn from
        start_date: First calendar day of the plan, when the backend reports it
        end_date: Last calendar day of the plan, when the backend reports it
        target_audience: Audience the passages were chosen for
    """

    id: str
    topic: str
    duration_days: int = Field(ge=1)
    created_at: datetime
    is_active: bool = False
    start_date: datetime | None = None
    end_date: datetime | None = None
    target_audience: str | None = None


class PlanActionOutcome(StrEnum):
    """Result of a registry mutation request."""

    APPLIED = "applied"
    CONFIRMATION_REQUIRED = "confirmation_required"
    REJECTED = "rejected"
    FAILED = "failed"


def sort_newest_first(plans: list[Plan]) -> list[Plan]:
    """Display order: newest ``created_at`` first. Does not touch storage order."""
    return sorted(plans, key=lambda plan: plan.created_at, reverse=True)
