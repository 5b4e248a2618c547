"""Client-side plan rejections.

All of these are raised before any request is sent.
"""


class PlanValidationError(ValueError):
    """Raised when plan input is invalid (empty topic, non-positive duration)."""

    pass


class ActivePlanDeletionError(PlanValidationError):
    """Raised when deleting the active plan is attempted."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__("The active plan cannot be deleted. Activate another plan first.")


class PlanMutationInProgressError(PlanValidationError):
    """Raised when a mutation is requested while another one is pending."""

    def __init__(self, message: str = "Another plan change is still in progress. Please wait."):
        super().__init__(message)
