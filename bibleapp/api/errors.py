"""Error taxonomy shared by every component of the client layer.

Components never let an ``ApiError`` escape their public operations. They
convert it into a ``UserFacingError`` that the front end renders according to
its ``kind``:

- expected_empty: nothing to show yet (no active plan, plan finished)
- auth: the session is missing or expired, re-authentication is the remedy
- validation: input rejected locally, no request was made
- transient: network or server failure, the same action may be retried
- confirmation_required: a destructive action needs a second trigger
"""

from enum import StrEnum

from pydantic import BaseModel


class ErrorKind(StrEnum):
    """Closed set of error kinds the front end switches on."""

    EXPECTED_EMPTY = "expected_empty"
    AUTH = "auth"
    VALIDATION = "validation"
    TRANSIENT = "transient"
    CONFIRMATION_REQUIRED = "confirmation_required"


class ErrorCode(StrEnum):
    """Machine codes emitted by the backend in the ``code`` field of error bodies."""

    NOT_AUTHENTICATED = "not_authenticated"
    TOKEN_EXPIRED = "token_expired"
    NO_ACTIVE_PLAN = "no_active_plan"
    PLAN_FINISHED = "plan_finished"
    RATE_LIMITED = "rate_limited"
    VALIDATION_FAILED = "validation_failed"


CODE_KINDS: dict[str, ErrorKind] = {
    ErrorCode.NOT_AUTHENTICATED: ErrorKind.AUTH,
    ErrorCode.TOKEN_EXPIRED: ErrorKind.AUTH,
    ErrorCode.NO_ACTIVE_PLAN: ErrorKind.EXPECTED_EMPTY,
    ErrorCode.PLAN_FINISHED: ErrorKind.EXPECTED_EMPTY,
    ErrorCode.RATE_LIMITED: ErrorKind.TRANSIENT,
    ErrorCode.VALIDATION_FAILED: ErrorKind.VALIDATION,
}


class UserFacingError(BaseModel):
    """Error state exposed by a component for display.

    Attributes:
        kind: Error kind, decides the visual treatment
        message: Human-readable message
    """

    kind: ErrorKind
    message: str


class ApiError(Exception):
    """Raised by ApiClient for non-2xx responses and transport failures."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)

    @property
    def is_not_authenticated(self) -> bool:
        """True for the expected 'no session' answer (HTTP 401)."""
        return self.kind == ErrorKind.AUTH and self.status_code == 401

    def to_user_error(self, prefix: str | None = None) -> UserFacingError:
        """Convert into display state, optionally prefixing the message."""
        message = f"{prefix}: {self.message}" if prefix else self.message
        return UserFacingError(kind=self.kind, message=message)


def classify(status_code: int | None, code: str | None = None) -> ErrorKind:
    """Map a backend error onto an ErrorKind.

    The structured ``code`` wins over the HTTP status. Message text is never
    consulted.

    Args:
        status_code: HTTP status, or None for transport failures
        code: Machine code from the error body, if any

    Returns:
        ErrorKind for the failure
    """
    if code and code in CODE_KINDS:
        return CODE_KINDS[code]
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    return ErrorKind.TRANSIENT
