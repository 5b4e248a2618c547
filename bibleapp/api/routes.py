"""Backend routes consumed by the client layer."""

IDENTITY = "/identity"
SESSION_END = "/session/end"
PLANS = "/plans"
PLANS_TODAY = "/plans/today"
CHAT = "/chat"
CHAT_RESET = "/chat/reset"


def plan_path(plan_id: str) -> str:
    return f"{PLANS}/{plan_id}"


def plan_activate_path(plan_id: str) -> str:
    return f"{PLANS}/{plan_id}/activate"
