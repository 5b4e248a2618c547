"""DailyVerseResolver - resolves today's passage from the active plan.

Outcomes are told apart by status and machine code, never by message text:

- 2xx with a passage                     → resolved
- 404, or code no_active_plan/plan_finished → no eligible plan (expected, not an error)
- 401/403, or an auth code               → authentication failure
- anything else                          → generic failure, retryable
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from bibleapp.api import routes
from bibleapp.api.client import ApiClient
from bibleapp.api.errors import CODE_KINDS, ApiError, ErrorKind, UserFacingError
from bibleapp.verses.types import DailyVerse, ResolutionOutcome, VerseResolution

NO_ELIGIBLE_PLAN_MESSAGE = (
    "There's no reading plan active right now, or the current one has finished. "
    "An admin might need to create one!"
)
AUTH_FAILED_MESSAGE = "Authentication error. Please try logging out and back in."


def _failure(message: str) -> VerseResolution:
    return VerseResolution(
        outcome=ResolutionOutcome.FAILED,
        error=UserFacingError(
            kind=ErrorKind.TRANSIENT,
            message=f"Couldn't load today's verse. Maybe try again later? ({message})",
        ),
    )


def _no_eligible_plan() -> VerseResolution:
    return VerseResolution(
        outcome=ResolutionOutcome.NO_ELIGIBLE_PLAN,
        error=UserFacingError(kind=ErrorKind.EXPECTED_EMPTY, message=NO_ELIGIBLE_PLAN_MESSAGE),
    )


def classify_failure(error: ApiError) -> VerseResolution:
    """Map a failed today-request onto a resolution outcome."""
    if error.kind == ErrorKind.EXPECTED_EMPTY or error.status_code == 404:
        return _no_eligible_plan()
    if error.kind == ErrorKind.AUTH:
        return VerseResolution(
            outcome=ResolutionOutcome.AUTH_FAILED,
            error=UserFacingError(kind=ErrorKind.AUTH, message=AUTH_FAILED_MESSAGE),
        )
    return _failure(error.message)


def parse_today_payload(payload: Any) -> VerseResolution:
    """Map a 2xx today-response onto a resolution outcome.

    The backend signals a finished plan with a 2xx body carrying
    ``code: plan_finished`` instead of a passage.
    """
    if isinstance(payload, dict) and CODE_KINDS.get(payload.get("code") or "") == ErrorKind.EXPECTED_EMPTY:
        return _no_eligible_plan()
    try:
        verse = DailyVerse.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Verse: today's passage payload rejected: {e}")
        return _failure("malformed response")
    return VerseResolution(outcome=ResolutionOutcome.RESOLVED, verse=verse)


class DailyVerseResolver:
    """Resolves today's passage; only the latest started resolution may apply.

    A newer ``resolve_today`` call, or ``cancel``, invalidates every earlier
    in-flight resolution. Their results are discarded on completion.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._generation = 0
        self.verse: DailyVerse | None = None
        self.error: UserFacingError | None = None
        self.is_loading = False

    async def resolve_today(self, include_text: bool = True) -> VerseResolution:
        """Request the active plan's passage for today.

        Args:
            include_text: Fetch the passage text as well as the reference

        Returns:
            VerseResolution; ``discarded`` if superseded before completing
        """
        self._generation += 1
        generation = self._generation
        self.verse = None
        self.error = None
        self.is_loading = True

        params = None if include_text else {"content": "false"}
        try:
            payload = await self._client.get(routes.PLANS_TODAY, params=params)
        except ApiError as e:
            resolution = classify_failure(e)
        else:
            resolution = parse_today_payload(payload)

        if generation != self._generation:
            logger.debug(f"Verse: resolution #{generation} superseded by #{self._generation}, discarding")
            return VerseResolution(outcome=ResolutionOutcome.DISCARDED)

        self.is_loading = False
        self.verse = resolution.verse
        self.error = resolution.error
        if resolution.outcome == ResolutionOutcome.RESOLVED:
            logger.info(f"Verse: resolved {resolution.verse.reference}")
        else:
            logger.info(f"Verse: resolution ended with {resolution.outcome}")
        return resolution

    def cancel(self) -> None:
        """Stop any in-flight resolution from being applied."""
        self._generation += 1
        self.is_loading = False
