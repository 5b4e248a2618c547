"""Tests for plan input validators."""

from datetime import datetime, timezone

import pytest

from bibleapp.plans.errors import ActivePlanDeletionError, PlanValidationError
from bibleapp.plans.types import Plan
from bibleapp.plans.validators import validate_deletable, validate_new_plan


def _plan(plan_id: str, is_active: bool) -> Plan:
    return Plan(
        id=plan_id,
        topic="Psalms",
        duration_days=7,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        is_active=is_active,
    )


def test_new_plan_topic_is_trimmed():
    assert validate_new_plan("  Parables ", 14) == "Parables"


@pytest.mark.parametrize(
    ("topic", "duration"),
    [("", 7), ("   ", 7), ("Parables", 0), ("Parables", -3), ("Parables", True)],
)
def test_new_plan_rejects_bad_input(topic, duration):
    with pytest.raises(PlanValidationError):
        validate_new_plan(topic, duration)


def test_active_plan_is_not_deletable():
    plans = [_plan("p1", is_active=True), _plan("p2", is_active=False)]

    with pytest.raises(ActivePlanDeletionError, match="active plan cannot be deleted"):
        validate_deletable("p1", plans)
    validate_deletable("p2", plans)
    validate_deletable("unknown", plans)
