"""Tests for ChatSession: single in-flight request, scopes and reset."""

import asyncio

import pytest

from bibleapp.chat.session import RESET_DEFAULT_MESSAGE, ChatSession
from bibleapp.chat.types import ChatRole
from bibleapp.verses.types import DailyVerse

VERSE = DailyVerse(day=1, reference="Psalm 23:1-6", text="The Lord is my shepherd. I shall not want.")


def _roles(session):
    return [message.role for message in session.history]


@pytest.mark.asyncio
async def test_ask_appends_question_and_answer(client, backend):
    session = ChatSession(client, VERSE)

    message = await session.ask("  Who is the shepherd?  ")

    assert message.role == ChatRole.ASSISTANT
    assert message.content == "About Psalm 23:1-6: Who is the shepherd?"
    assert _roles(session) == [ChatRole.USER, ChatRole.ASSISTANT]
    assert session.history[0].content == "Who is the shepherd?"
    assert backend.chat_requests[0]["verse"]["reference"] == "Psalm 23:1-6"
    assert session.is_busy is False


@pytest.mark.asyncio
async def test_reference_only_passage_is_sent_without_text(client, backend):
    """A passage fetched without content is sent back as it was received."""
    verse = DailyVerse.model_validate({"day": 2, "reference": "Psalm 23:1-6", "title": "The Shepherd"})
    session = ChatSession(client, verse)

    await session.ask("What does it mean?")

    assert backend.chat_requests[0]["verse"] == {"day": 2, "reference": "Psalm 23:1-6", "title": "The Shepherd"}


@pytest.mark.asyncio
async def test_full_passage_is_sent_with_text(client, backend):
    session = ChatSession(client, VERSE)

    await session.ask("What does it mean?")

    assert backend.chat_requests[0]["verse"]["text"] == VERSE.text


@pytest.mark.asyncio
@pytest.mark.parametrize("question", ["", "   ", None])
async def test_blank_question_is_ignored(client, backend, question):
    session = ChatSession(client, VERSE)

    assert await session.ask(question) is None
    assert session.history == []
    assert backend.calls == []


@pytest.mark.asyncio
async def test_ask_without_passage_is_ignored(client, backend):
    session = ChatSession(client)

    assert await session.ask("Anything?") is None
    assert backend.calls == []


@pytest.mark.asyncio
async def test_failure_appends_single_error_message(client, backend):
    backend.fail("POST", "/chat", 500, {"error": "model unavailable"})
    session = ChatSession(client, VERSE)

    message = await session.ask("Why?")

    assert message.role == ChatRole.ERROR
    assert message.content == "Oops! Chatbot trouble: model unavailable"
    assert _roles(session) == [ChatRole.USER, ChatRole.ERROR]
    assert session.is_busy is False


@pytest.mark.asyncio
async def test_second_ask_while_in_flight_is_noop(client, backend):
    hold = backend.hold("POST", "/chat")
    session = ChatSession(client, VERSE)

    first = asyncio.create_task(session.ask("First?"))
    await hold.arrived.wait()
    assert session.is_busy is True

    assert await session.ask("Second?") is None
    assert await session.reset() is False

    hold.release.set()
    await first

    assert backend.calls_to("POST", "/chat") == 1
    assert _roles(session) == [ChatRole.USER, ChatRole.ASSISTANT]


@pytest.mark.asyncio
async def test_usage_is_tracked_from_answers(client, backend):
    backend.usage = (3, 10)
    session = ChatSession(client, VERSE)

    await session.ask("How many?")

    assert session.usage.usage_today == 3
    assert session.usage.daily_limit == 10


@pytest.mark.asyncio
async def test_rate_limited_answer_is_error_message(client, backend):
    backend.fail("POST", "/chat", 429, {"error": "Daily chat limit reached", "code": "rate_limited"})
    session = ChatSession(client, VERSE)

    message = await session.ask("One more?")

    assert message.role == ChatRole.ERROR
    assert "Daily chat limit reached" in message.content


@pytest.mark.asyncio
async def test_reset_replaces_history_with_info(client, backend):
    session = ChatSession(client, VERSE)
    await session.ask("First?")

    assert await session.reset() is True

    assert _roles(session) == [ChatRole.INFO]
    assert session.history[0].content == "Chat history has been reset."


@pytest.mark.asyncio
async def test_reset_without_server_message_uses_default(client, backend, monkeypatch):
    session = ChatSession(client, VERSE)

    async def empty_post(path, json=None):
        return None

    monkeypatch.setattr(client, "post", empty_post)

    assert await session.reset() is True
    assert session.history[0].content == RESET_DEFAULT_MESSAGE


@pytest.mark.asyncio
async def test_failed_reset_keeps_history(client, backend):
    session = ChatSession(client, VERSE)
    await session.ask("First?")
    backend.fail("POST", "/chat/reset", 503, {"error": "Service unavailable"})

    assert await session.reset() is False

    assert _roles(session) == [ChatRole.USER, ChatRole.ASSISTANT, ChatRole.ERROR]
    assert session.history[-1].content == "Could not reset chat: Service unavailable"


@pytest.mark.asyncio
async def test_rebind_discards_late_answer(client, backend):
    hold = backend.hold("POST", "/chat")
    session = ChatSession(client, VERSE)

    pending = asyncio.create_task(session.ask("Old question?"))
    await hold.arrived.wait()
    session.bind(DailyVerse(reference="Psalm 24:1", text="The earth is the Lord's."))
    hold.release.set()

    assert await pending is None
    assert session.history == []
    assert session.is_busy is False


@pytest.mark.asyncio
async def test_close_discards_late_answer_and_blocks_new_questions(client, backend):
    hold = backend.hold("POST", "/chat")
    session = ChatSession(client, VERSE)

    pending = asyncio.create_task(session.ask("Question?"))
    await hold.arrived.wait()
    session.close()
    hold.release.set()

    assert await pending is None
    assert _roles(session) == [ChatRole.USER]
    assert await session.ask("After close?") is None
    assert backend.calls_to("POST", "/chat") == 1
