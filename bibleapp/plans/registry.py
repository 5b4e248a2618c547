"""PlanRegistry - sole owner of the Plan collection.

Every mutation is followed by a full re-read of the collection; ``is_active``
is only ever taken from the backend, which keeps the single-active-plan
invariant trustworthy even when a mutation partially fails.
"""

from __future__ import annotations

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from bibleapp.api import routes
from bibleapp.api.client import ApiClient
from bibleapp.api.errors import ApiError, ErrorKind, UserFacingError
from bibleapp.plans.errors import PlanMutationInProgressError, PlanValidationError
from bibleapp.plans.types import Plan, PlanActionOutcome, sort_newest_first
from bibleapp.plans.validators import validate_deletable, validate_new_plan

_PLAN_LIST = TypeAdapter(list[Plan])


class PlanRegistry:
    """Holds the known plans and the create/activate/delete operations.

    Mutations are serialized per instance: a second mutation while one is
    pending is rejected locally, never queued.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._plans: list[Plan] = []
        self.error: UserFacingError | None = None
        self.notice: str | None = None
        self.is_loading = False
        self.last_created: Plan | None = None
        self._mutating = False
        self._pending_delete_id: str | None = None

    @property
    def plans(self) -> list[Plan]:
        return list(self._plans)

    @property
    def active_plan(self) -> Plan | None:
        return next((plan for plan in self._plans if plan.is_active), None)

    @property
    def is_mutating(self) -> bool:
        return self._mutating

    @property
    def pending_delete_id(self) -> str | None:
        return self._pending_delete_id

    def sorted_plans(self) -> list[Plan]:
        return sort_newest_first(self._plans)

    def _reject(self, exc: PlanValidationError) -> None:
        logger.info(f"Plans: rejected locally: {exc}")
        self.error = UserFacingError(kind=ErrorKind.VALIDATION, message=str(exc))

    def _begin_mutation(self) -> None:
        if self._mutating:
            raise PlanMutationInProgressError()
        self._mutating = True
        self.error = None
        self.notice = None

    async def list_plans(self) -> list[Plan]:
        """Re-read the full plan collection from the backend.

        On failure the collection is emptied (never partially populated) and
        the error is recorded.

        Returns:
            The current collection (empty on failure)
        """
        self.error = None
        return await self._refresh()

    async def _refresh(self, record_error: bool = True) -> list[Plan]:
        self.is_loading = True
        try:
            payload = await self._client.get(routes.PLANS)
            plans = _PLAN_LIST.validate_python(payload or [])
        except ApiError as e:
            logger.warning(f"Plans: could not load plans: {e.message}")
            self._plans = []
            if record_error:
                self.error = e.to_user_error("Could not load existing plans")
            return []
        except ValidationError as e:
            logger.warning(f"Plans: plan list rejected: {e}")
            self._plans = []
            if record_error:
                self.error = UserFacingError(
                    kind=ErrorKind.TRANSIENT,
                    message="Could not load existing plans: malformed response",
                )
            return []
        finally:
            self.is_loading = False

        active_count = sum(1 for plan in plans if plan.is_active)
        if active_count > 1:
            logger.error(f"Plans: backend reported {active_count} active plans")
        self._plans = plans
        if self._pending_delete_id and all(plan.id != self._pending_delete_id for plan in plans):
            self._pending_delete_id = None
        logger.debug(f"Plans: loaded {len(plans)} plans")
        return list(plans)

    async def create_plan(self, topic: str, duration_days: int) -> Plan | None:
        """Create a plan; the backend makes it the active one.

        Args:
            topic: Plan topic (non-empty)
            duration_days: Number of days (>= 1)

        Returns:
            The created plan, or None if rejected or failed (see ``error``)
        """
        try:
            topic = validate_new_plan(topic, duration_days)
            self._begin_mutation()
        except PlanValidationError as e:
            self._reject(e)
            return None

        try:
            try:
                payload = await self._client.post(
                    routes.PLANS,
                    json={"topic": topic, "duration_days": duration_days},
                )
                created = Plan.model_validate(payload)
            except ApiError as e:
                logger.warning(f"Plans: creation failed for topic '{topic}': {e.message}")
                self.error = e.to_user_error("Plan creation failed")
                # The request may have been applied before it failed.
                await self._refresh(record_error=False)
                return None
            except ValidationError as e:
                logger.warning(f"Plans: created plan payload rejected: {e}")
                self.error = UserFacingError(kind=ErrorKind.TRANSIENT, message="Plan creation failed: malformed response")
                await self._refresh(record_error=False)
                return None

            logger.info(f"Plans: created plan {created.id} for topic '{created.topic}'")
            self.last_created = created
            self.notice = f'Successfully created plan for "{created.topic}" (ID: {created.id}). This is now the active plan.'
            await self._refresh()
            return created
        finally:
            self._mutating = False

    async def activate_plan(self, plan_id: str) -> PlanActionOutcome:
        """Ask the backend to make plan_id the active plan, then re-read."""
        try:
            self._begin_mutation()
        except PlanValidationError as e:
            self._reject(e)
            return PlanActionOutcome.REJECTED

        try:
            try:
                await self._client.post(routes.plan_activate_path(plan_id))
            except ApiError as e:
                logger.warning(f"Plans: activation of {plan_id} failed: {e.message}")
                self.error = e.to_user_error("Plan activation failed")
                await self._refresh(record_error=False)
                return PlanActionOutcome.FAILED

            logger.info(f"Plans: activated plan {plan_id}")
            self.notice = "Plan activated successfully!"
            await self._refresh()
            return PlanActionOutcome.APPLIED
        finally:
            self._mutating = False

    async def delete_plan(self, plan_id: str) -> PlanActionOutcome:
        """Delete a plan with a two-step confirmation.

        The first call for a given plan only arms the confirmation; a second
        call for the same plan sends the request. The active plan is rejected
        outright without any request.

        Returns:
            PlanActionOutcome of this call
        """
        try:
            validate_deletable(plan_id, self._plans)
        except PlanValidationError as e:
            self._pending_delete_id = None
            self._reject(e)
            return PlanActionOutcome.REJECTED

        if self._pending_delete_id != plan_id:
            self._pending_delete_id = plan_id
            self.notice = None
            self.error = UserFacingError(
                kind=ErrorKind.CONFIRMATION_REQUIRED,
                message="Delete this plan? Confirm to remove it permanently.",
            )
            logger.debug(f"Plans: delete of {plan_id} awaiting confirmation")
            return PlanActionOutcome.CONFIRMATION_REQUIRED

        try:
            self._begin_mutation()
        except PlanValidationError as e:
            self._reject(e)
            return PlanActionOutcome.REJECTED

        try:
            try:
                await self._client.delete(routes.plan_path(plan_id))
            except ApiError as e:
                logger.warning(f"Plans: deletion of {plan_id} failed: {e.message}")
                self.error = e.to_user_error("Plan deletion failed")
                self._pending_delete_id = None
                await self._refresh(record_error=False)
                return PlanActionOutcome.FAILED

            logger.info(f"Plans: deleted plan {plan_id}")
            self._pending_delete_id = None
            self.notice = "Plan deleted successfully!"
            await self._refresh()
            return PlanActionOutcome.APPLIED
        finally:
            self._mutating = False

    def cancel_delete(self) -> None:
        """Disarm a pending delete confirmation."""
        self._pending_delete_id = None
        if self.error is not None and self.error.kind == ErrorKind.CONFIRMATION_REQUIRED:
            self.error = None
