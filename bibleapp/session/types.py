"""Session types.

Session status machine:

    loading ──► authenticated ──► unauthenticated
       ▲  └──────────────────────────►  │
       └────────── check_session ◄──────┘

``loading`` means access is undetermined. It is never an implicit grant or
an implicit denial.
"""

from enum import StrEnum

from pydantic import BaseModel


class SessionStatus(StrEnum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AccessDecision(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class UserIdentity(BaseModel):
    """Identity of the signed-in user as returned by the identity endpoint."""

    id: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None


class Session(BaseModel):
    """Current authentication state.

    Attributes:
        identity: Signed-in user, absent unless authenticated
        status: Position in the session state machine
        last_error: Message of the last unexpected failure, for display
    """

    identity: UserIdentity | None = None
    status: SessionStatus = SessionStatus.LOADING
    last_error: str | None = None

    @property
    def access(self) -> AccessDecision:
        if self.status == SessionStatus.AUTHENTICATED:
            return AccessDecision.GRANTED
        if self.status == SessionStatus.UNAUTHENTICATED:
            return AccessDecision.DENIED
        return AccessDecision.UNDETERMINED
