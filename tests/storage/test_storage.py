"""Tests for local persistence: key-value stores, bookmarks, theme."""

from bibleapp.storage.bookmarks import BOOKMARKS_KEY, BookmarkStore, excerpt
from bibleapp.storage.kv import InMemoryKeyValueStore, JsonFileKeyValueStore
from bibleapp.storage.theme import THEME_KEY, Theme, ThemePreference
from bibleapp.verses.types import DailyVerse

VERSE = DailyVerse(reference="Romans 8:28", text="And we know that all things work together for good. " * 4)


def test_excerpt_truncates_long_text():
    assert excerpt("short") == "short"
    assert excerpt("x" * 150) == "x" * 100 + "..."
    assert excerpt("x" * 100) == "x" * 100


def test_bookmark_toggle_adds_then_removes():
    store = InMemoryKeyValueStore()
    bookmarks = BookmarkStore(store)

    assert bookmarks.toggle(VERSE) is True
    assert bookmarks.is_bookmarked(VERSE)
    saved = bookmarks.list()
    assert [bookmark.reference for bookmark in saved] == ["Romans 8:28"]
    assert saved[0].text.endswith("...")
    assert len(store.get(BOOKMARKS_KEY)) == 1

    assert bookmarks.toggle(VERSE) is False
    assert bookmarks.list() == []
    assert not bookmarks.is_bookmarked(VERSE)


def test_unreadable_bookmarks_are_ignored():
    store = InMemoryKeyValueStore({BOOKMARKS_KEY: [{"reference": "x"}]})

    assert BookmarkStore(store).list() == []


def test_json_file_store_persists_between_instances(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    JsonFileKeyValueStore(path).set("answer", {"value": 42})

    store = JsonFileKeyValueStore(path)
    assert store.get("answer") == {"value": 42}

    store.remove("answer")
    assert JsonFileKeyValueStore(path).get("answer") is None


def test_json_file_store_treats_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileKeyValueStore(path)

    assert store.get("theme") is None

    store.set("theme", "dark")
    assert JsonFileKeyValueStore(path).get("theme") == "dark"


def test_bookmarks_survive_on_disk(tmp_path):
    path = tmp_path / "storage.json"
    BookmarkStore(JsonFileKeyValueStore(path)).toggle(VERSE)

    assert BookmarkStore(JsonFileKeyValueStore(path)).is_bookmarked(VERSE)


def test_theme_falls_back_to_system_preference():
    store = InMemoryKeyValueStore()

    assert ThemePreference(store).current == Theme.LIGHT
    assert ThemePreference(store, system_prefers_dark=True).current == Theme.DARK


def test_theme_toggle_is_saved():
    store = InMemoryKeyValueStore()
    theme = ThemePreference(store, system_prefers_dark=True)

    assert theme.toggle() == Theme.LIGHT
    assert store.get(THEME_KEY) == "light"
    assert ThemePreference(store, system_prefers_dark=True).current == Theme.LIGHT

    theme.clear()
    assert theme.saved is None
    assert theme.current == Theme.DARK


def test_unknown_saved_theme_is_ignored():
    store = InMemoryKeyValueStore({THEME_KEY: "sepia"})

    assert ThemePreference(store).saved is None
    assert ThemePreference(store).current == Theme.LIGHT
