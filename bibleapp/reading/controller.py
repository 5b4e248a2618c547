"""ReaderController - wires the reader context together.

SessionStore gates access; a resolved passage feeds the Paginator (display)
and the ChatSession (question context). Each new resolution clears both
before it starts, and only the latest resolution may bind them again.
"""

from __future__ import annotations

from loguru import logger

from bibleapp.api.errors import ErrorKind, UserFacingError
from bibleapp.chat.session import ChatSession
from bibleapp.reading.paginator import Paginator
from bibleapp.reading.viewport import ViewConfig
from bibleapp.session.store import SessionStore
from bibleapp.session.types import AccessDecision
from bibleapp.verses.resolver import AUTH_FAILED_MESSAGE, DailyVerseResolver
from bibleapp.verses.types import DailyVerse, ResolutionOutcome, VerseResolution


class ReaderController:
    """Reader view state: today's passage, its pages and its chat scope."""

    def __init__(
        self,
        session_store: SessionStore,
        resolver: DailyVerseResolver,
        chat: ChatSession,
        view_config: ViewConfig,
        width: int,
    ) -> None:
        self.session_store = session_store
        self.resolver = resolver
        self.chat = chat
        self.view_config = view_config
        self.width = width
        self.paginator = Paginator(view_config.page_budget_for_width(width))

    @property
    def verse(self) -> DailyVerse | None:
        return self.resolver.verse

    @property
    def error(self) -> UserFacingError | None:
        return self.resolver.error

    async def load_today(self, include_text: bool = True) -> VerseResolution | None:
        """Resolve today's passage if the session allows it.

        Returns:
            None while access is undetermined (session still loading),
            an ``auth_failed`` resolution without any request when access is
            denied, otherwise the resolver's result
        """
        access = self.session_store.session.access
        if access == AccessDecision.UNDETERMINED:
            logger.debug("Reader: session still loading, not resolving yet")
            return None
        if access == AccessDecision.DENIED:
            return VerseResolution(
                outcome=ResolutionOutcome.AUTH_FAILED,
                error=UserFacingError(kind=ErrorKind.AUTH, message=AUTH_FAILED_MESSAGE),
            )

        self.paginator.clear()
        self.chat.bind(None)

        resolution = await self.resolver.resolve_today(include_text=include_text)
        if resolution.outcome == ResolutionOutcome.DISCARDED:
            return resolution

        if resolution.outcome == ResolutionOutcome.RESOLVED and resolution.verse is not None:
            self.paginator.set_text(resolution.verse.text)
            self.chat.bind(resolution.verse)
        return resolution

    def resize(self, width: int) -> None:
        """Apply a new viewport width; the page index resets if the budget changes."""
        self.width = width
        self.paginator.set_budget(self.view_config.page_budget_for_width(width))

    def leave(self) -> None:
        """Navigate away: drop pending results for this view."""
        self.resolver.cancel()
        self.chat.close()
