"""Bookmarked passages, persisted through a KeyValueStore."""

from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from bibleapp.storage.kv import KeyValueStore
from bibleapp.verses.types import DailyVerse

BOOKMARKS_KEY = "verse-bookmarks"
EXCERPT_LENGTH = 100


class Bookmark(BaseModel):
    reference: str
    text: str
    date: datetime


_BOOKMARK_LIST = TypeAdapter(list[Bookmark])


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    return text[:length] + ("..." if len(text) > length else "")


class BookmarkStore:
    """Bookmarks keyed by passage reference."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list(self) -> list[Bookmark]:
        raw = self._store.get(BOOKMARKS_KEY) or []
        try:
            return _BOOKMARK_LIST.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Bookmarks: stored bookmarks unreadable, ignoring them: {e}")
            return []

    def _save(self, bookmarks: list[Bookmark]) -> None:
        self._store.set(BOOKMARKS_KEY, _BOOKMARK_LIST.dump_python(bookmarks, mode="json"))

    def is_bookmarked(self, verse: DailyVerse) -> bool:
        return any(bookmark.reference == verse.reference for bookmark in self.list())

    def toggle(self, verse: DailyVerse) -> bool:
        """Add or remove the bookmark for a passage.

        Returns:
            True if the passage is bookmarked after the call
        """
        bookmarks = self.list()
        if any(bookmark.reference == verse.reference for bookmark in bookmarks):
            self._save([bookmark for bookmark in bookmarks if bookmark.reference != verse.reference])
            logger.debug(f"Bookmarks: removed {verse.reference}")
            return False

        bookmarks.append(
            Bookmark(
                reference=verse.reference,
                text=excerpt(verse.text),
                date=datetime.now(timezone.utc),
            )
        )
        self._save(bookmarks)
        logger.debug(f"Bookmarks: added {verse.reference}")
        return True
