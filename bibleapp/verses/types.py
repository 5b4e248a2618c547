"""Daily passage types."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from bibleapp.api.errors import UserFacingError


class DailyVerse(BaseModel):
    """Today's passage from the active plan.

    Derived, never persisted, and never mutated once fetched.

    Attributes:
        day: 1-based day number within the plan, when reported
        reference: Passage reference, e.g. "John 3:16-18"
        text: Passage text; empty and left unset when fetched without content
        title: Short title for the day's reading
        explanation: Optional explanation
    """

    model_config = ConfigDict(frozen=True)

    day: int | None = None
    reference: str
    text: str = ""
    title: str | None = None
    explanation: str | None = None


class ResolutionOutcome(StrEnum):
    RESOLVED = "resolved"
    NO_ELIGIBLE_PLAN = "no_eligible_plan"
    AUTH_FAILED = "auth_failed"
    FAILED = "failed"
    DISCARDED = "discarded"


class VerseResolution(BaseModel):
    """Result of one resolution of today's passage.

    ``discarded`` means a newer resolution started (or the resolution was
    cancelled) before this one completed; its result was not applied.
    """

    outcome: ResolutionOutcome
    verse: DailyVerse | None = None
    error: UserFacingError | None = None
