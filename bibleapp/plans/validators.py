"""Plan input validators.

Enforces before any request:
- Topic must be non-empty
- Duration must be at least one day
- The active plan is never deleted
"""

from bibleapp.plans.errors import ActivePlanDeletionError, PlanValidationError
from bibleapp.plans.types import Plan


def validate_new_plan(topic: str, duration_days: int) -> str:
    """Validate plan creation input.

    Args:
        topic: Plan topic
        duration_days: Requested duration in days

    Returns:
        The topic with surrounding whitespace removed

    Raises:
        PlanValidationError: If the topic is empty or the duration is below one day
    """
    cleaned = (topic or "").strip()
    if not cleaned:
        raise PlanValidationError("Please enter a valid topic.")
    if isinstance(duration_days, bool) or not isinstance(duration_days, int) or duration_days < 1:
        raise PlanValidationError("Duration must be at least 1 day.")
    return cleaned


def validate_deletable(plan_id: str, plans: list[Plan]) -> None:
    """Reject deleting the plan that is currently active.

    Args:
        plan_id: Plan to delete
        plans: Last synchronized plan collection

    Raises:
        ActivePlanDeletionError: If plan_id is the active plan
    """
    for plan in plans:
        if plan.id == plan_id and plan.is_active:
            raise ActivePlanDeletionError(plan_id)
