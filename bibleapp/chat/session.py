"""ChatSession - question/answer history scoped to one resolved passage.

Guarantees:
- At most one request (ask or reset) in flight; extra calls are no-ops
- Each accepted question appends exactly one user message, then exactly one
  assistant or error message
- A failed reset keeps the history and appends an error message
- Results arriving after the scope ended (rebind or close) are discarded
"""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError

from bibleapp.api import routes
from bibleapp.api.client import ApiClient
from bibleapp.api.errors import ApiError
from bibleapp.chat.types import ChatAnswer, ChatMessage, ChatRole, ChatUsage
from bibleapp.verses.types import DailyVerse

RESET_DEFAULT_MESSAGE = "Chat history cleared. Ask a new question!"


class ChatSession:
    """Owns the chat history for the currently bound passage."""

    def __init__(self, client: ApiClient, verse: DailyVerse | None = None) -> None:
        self._client = client
        self._history: list[ChatMessage] = []
        self._verse = verse
        self._scope = 0
        self._busy = False
        self._closed = False
        self.usage: ChatUsage | None = None

    @property
    def history(self) -> list[ChatMessage]:
        return list(self._history)

    @property
    def verse(self) -> DailyVerse | None:
        return self._verse

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _append(self, role: ChatRole, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self._history.append(message)
        return message

    def bind(self, verse: DailyVerse | None) -> None:
        """Start a new scope for a freshly resolved passage.

        History is cleared and any in-flight request of the previous scope
        will be discarded when it completes.
        """
        self._scope += 1
        self._verse = verse
        self._history = []
        self._busy = False
        self._closed = False
        logger.debug(f"Chat: scope #{self._scope} bound to {verse.reference if verse else None}")

    def close(self) -> None:
        """End the scope; pending results are dropped on arrival."""
        self._scope += 1
        self._busy = False
        self._closed = True

    async def ask(self, question: str) -> ChatMessage | None:
        """Ask a question about the bound passage.

        No-op (returns None) when the question is blank, no passage is bound,
        the scope is closed, or a request is already in flight.

        Returns:
            The assistant or error message appended, or None
        """
        question = (question or "").strip()
        if not question or self._verse is None or self._busy or self._closed:
            return None

        scope = self._scope
        verse = self._verse
        self._append(ChatRole.USER, question)
        self._busy = True

        try:
            payload = await self._client.post(
                routes.CHAT,
                json={"verse": verse.model_dump(exclude_unset=True, exclude_none=True), "question": question},
            )
            answer = ChatAnswer.model_validate(payload)
        except ApiError as e:
            logger.warning(f"Chat: failed to get response: {e.message}")
            role, content, usage = ChatRole.ERROR, f"Oops! Chatbot trouble: {e.message}", None
        except ValidationError as e:
            logger.warning(f"Chat: answer payload rejected: {e}")
            role, content, usage = ChatRole.ERROR, "Oops! Chatbot trouble: malformed response", None
        else:
            role, content, usage = ChatRole.ASSISTANT, answer.answer, answer.usage

        if scope != self._scope:
            logger.debug("Chat: scope ended while asking, discarding answer")
            return None

        self._busy = False
        if usage is not None:
            self.usage = usage
        return self._append(role, content)

    async def reset(self) -> bool:
        """Clear the conversation on the backend and locally.

        On success the history is replaced by a single info message. On
        failure the history is kept and an error message is appended.

        Returns:
            True when the backend confirmed the reset
        """
        if self._busy or self._closed:
            return False

        scope = self._scope
        self._busy = True
        try:
            payload = await self._client.post(routes.CHAT_RESET)
        except ApiError as e:
            if scope != self._scope:
                return False
            logger.warning(f"Chat: failed to reset: {e.message}")
            self._busy = False
            self._append(ChatRole.ERROR, f"Could not reset chat: {e.message}")
            return False

        if scope != self._scope:
            return False

        self._busy = False
        message = payload.get("message") if isinstance(payload, dict) else None
        self._history = []
        self._append(ChatRole.INFO, message or RESET_DEFAULT_MESSAGE)
        logger.info("Chat: history reset")
        return True
