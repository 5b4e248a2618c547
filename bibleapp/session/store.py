"""SessionStore - sole owner of the Session state."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from pydantic import ValidationError

from bibleapp.api import routes
from bibleapp.api.client import ApiClient
from bibleapp.api.errors import ApiError
from bibleapp.session.types import Session, SessionStatus, UserIdentity


class SessionStore:
    """Tracks whether the user is authenticated.

    The store starts in ``loading`` and is re-entered on every application
    start through ``check_session``. Only the most recently started check
    may write its result.
    """

    def __init__(self, client: ApiClient, open_url: Callable[[str], object] | None = None) -> None:
        self._client = client
        self._open_url = open_url
        self._session = Session()
        self._check_generation = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def identity(self) -> UserIdentity | None:
        return self._session.identity

    @property
    def last_error(self) -> str | None:
        return self._session.last_error

    @property
    def is_authenticated(self) -> bool:
        return self._session.status == SessionStatus.AUTHENTICATED

    def _set(self, **changes: object) -> None:
        previous = self._session.status
        self._session = self._session.model_copy(update=changes)
        if previous != self._session.status:
            logger.info(f"Session: {previous} → {self._session.status}")

    async def check_session(self) -> Session:
        """Query the identity endpoint and settle the session status.

        - 2xx: authenticated, identity populated
        - 401: unauthenticated, no error recorded (expected answer)
        - anything else: unauthenticated, error recorded

        Returns:
            The session snapshot after the check
        """
        self._check_generation += 1
        generation = self._check_generation
        self._set(status=SessionStatus.LOADING, last_error=None)

        try:
            payload = await self._client.get(routes.IDENTITY)
            identity = UserIdentity.model_validate(payload)
        except ApiError as e:
            if generation != self._check_generation:
                return self._session
            if e.is_not_authenticated:
                logger.debug("Session: identity endpoint reports no session")
                self._set(status=SessionStatus.UNAUTHENTICATED, identity=None, last_error=None)
            else:
                logger.warning(f"Session: failed to verify login status: {e.message}")
                self._set(
                    status=SessionStatus.UNAUTHENTICATED,
                    identity=None,
                    last_error=e.message or "Failed to verify login status",
                )
            return self._session
        except ValidationError as e:
            if generation != self._check_generation:
                return self._session
            logger.warning(f"Session: identity payload rejected: {e}")
            self._set(
                status=SessionStatus.UNAUTHENTICATED,
                identity=None,
                last_error="Failed to verify login status",
            )
            return self._session

        if generation == self._check_generation:
            logger.debug(f"Session: authenticated as {identity.id}")
            self._set(status=SessionStatus.AUTHENTICATED, identity=identity, last_error=None)
        return self._session

    def login(self) -> str:
        """Hand control to the external identity provider.

        Has no effect on the session. The hosting application calls
        ``check_session`` again once the provider flow returns.

        Returns:
            The provider hand-off URL
        """
        url = self._client.login_url
        logger.info(f"Session: handing off to identity provider at {url}")
        if self._open_url is not None:
            self._open_url(url)
        return url

    async def logout(self) -> bool:
        """Sign out on the backend.

        On success the identity is cleared and the status becomes
        ``unauthenticated``. On failure the session is left as it was and only
        the error is recorded; the remote session may still be valid.

        Returns:
            True when the backend confirmed the sign-out
        """
        try:
            await self._client.post(routes.SESSION_END)
        except ApiError as e:
            logger.warning(f"Session: logout failed: {e.message}")
            self._set(last_error=e.message or "Logout failed")
            return False

        # A check started before the logout must not resurrect the session.
        self._check_generation += 1
        self._set(status=SessionStatus.UNAUTHENTICATED, identity=None, last_error=None)
        return True
