"""Active conversation and saved chat histories."""

import dataclasses
import logging
import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from ..errors import ChatNotFoundError
from ..models.chat import AnalysisResult, ChatHistory, ChatMessage, make_title

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class SessionStore:
    """Reconciles the active conversation with the list of saved histories.

    When ``current_chat_id`` is set, the active messages always equal that
    history's messages. When it is None, the active messages are an unsaved
    conversation that is historized by the next ``start_new_chat()``.
    """

    def __init__(
        self,
        histories: Iterable[ChatHistory] = (),
        active_messages: Iterable[ChatMessage] = (),
        current_chat_id: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_id,
    ):
        """Initialize the store, optionally restoring earlier state.

        Args:
            histories: Saved conversations, newest first
            active_messages: Messages of an unsaved draft (requires no current_chat_id)
            current_chat_id: History to show; its messages become the active list
            clock: Source of message timestamps and history dates
            id_factory: Source of message and history identifiers
        """
        self._histories: List[ChatHistory] = list(histories)
        self._active: List[ChatMessage] = list(active_messages)
        self._current_chat_id: Optional[str] = None
        self._clock = clock
        self._id_factory = id_factory

        if current_chat_id is not None:
            if self._active:
                raise ValueError("active_messages cannot be combined with current_chat_id")
            self.switch_to_chat(current_chat_id)

    @property
    def histories(self) -> Tuple[ChatHistory, ...]:
        """Saved conversations, newest first."""
        return tuple(self._histories)

    @property
    def active_messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._active)

    @property
    def current_chat_id(self) -> Optional[str]:
        return self._current_chat_id

    @property
    def has_unsaved_conversation(self) -> bool:
        return bool(self._active) and self._current_chat_id is None

    def get_history(self, chat_id: str) -> ChatHistory:
        """Look up a saved conversation.

        Raises:
            ChatNotFoundError: If no history has this id
        """
        for history in self._histories:
            if history.id == chat_id:
                return history
        raise ChatNotFoundError(chat_id)

    def start_new_chat(self) -> Optional[ChatHistory]:
        """Save an unsaved conversation, then clear the active view.

        Returns:
            The history created from the unsaved conversation, if any
        """
        committed = None
        if self.has_unsaved_conversation:
            committed = self._create_history(self._active)
            logger.info(f"Saved unsaved conversation as '{committed.title}' ({len(committed.messages)} messages)")

        self._current_chat_id = None
        self._active = []
        return committed

    def switch_to_chat(self, chat_id: str) -> ChatHistory:
        """Show a saved conversation.

        Raises:
            ChatNotFoundError: If no history has this id; state is left unchanged
        """
        history = self.get_history(chat_id)
        self._current_chat_id = history.id
        self._active = list(history.messages)
        logger.debug(f"Switched to chat {chat_id} ({len(history.messages)} messages)")
        return history

    def append_message(self, result: AnalysisResult) -> ChatMessage:
        """Add an analysed utterance to the active conversation."""
        message = ChatMessage(
            id=self._id_factory(),
            transcription=result.transcription,
            emotion=result.emotion,
            gemini_response=result.gemini_response,
            timestamp=self._clock(),
        )
        was_empty = not self._active
        self._active.append(message)

        if was_empty:
            history = self._create_history(self._active)
            self._current_chat_id = history.id
            logger.info(f"Started chat history '{history.title}'")
        elif self._current_chat_id is not None:
            self._replace_messages(self._current_chat_id, self._active)

        return message

    def _create_history(self, messages: List[ChatMessage]) -> ChatHistory:
        history = ChatHistory(
            id=self._id_factory(),
            title=make_title(messages[0].transcription),
            date=self._clock().date(),
            messages=tuple(messages),
        )
        self._histories.insert(0, history)
        return history

    def _replace_messages(self, chat_id: str, messages: List[ChatMessage]) -> None:
        for index, history in enumerate(self._histories):
            if history.id == chat_id:
                self._histories[index] = dataclasses.replace(history, messages=tuple(messages))
                return
        raise ChatNotFoundError(chat_id)
