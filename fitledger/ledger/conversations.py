# -*- coding: utf-8 -*-
"""Coach conversations — a single JSON array bucket, most recently updated first."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError

from ..persistence.adapter import PersistenceAdapter
from .days import utc_now_iso
from .models import Conversation, ConversationMessage, Sender
from .store import CONVERSATIONS_BUCKET, new_id

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_MAX_CHARS = 30
GREETING = (
    "Hey! I'm your AI fitness coach. I can help you track your food, workouts, "
    "weight, and answer any fitness questions. What would you like to do today?"
)


def title_from_message(text: str) -> str:
    text = (text or "").strip()
    if len(text) > TITLE_MAX_CHARS:
        return text[:TITLE_MAX_CHARS] + "..."
    return text or DEFAULT_TITLE


class ConversationStore:
    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.adapter = adapter
        self._new_id = id_factory

    def _load(self) -> List[Conversation]:
        out: List[Conversation] = []
        for raw in self.adapter.read_bucket(CONVERSATIONS_BUCKET):
            if not isinstance(raw, dict):
                continue
            try:
                out.append(Conversation.model_validate(raw))
            except ValidationError:
                logger.debug("Skipping unreadable conversation record")
                continue
        return out

    def _save(self, conversations: List[Conversation]) -> None:
        self.adapter.write_bucket(CONVERSATIONS_BUCKET, [c.to_storage() for c in conversations])

    def list(self) -> List[Conversation]:
        # Stored order is already most-recent-first; sort anyway for data written by others.
        return sorted(self._load(), key=lambda c: c.updated_at, reverse=True)

    def get(self, conversation_id: str) -> Optional[Conversation]:
        for conv in self._load():
            if conv.id == str(conversation_id):
                return conv
        return None

    def create(self, *, title: str = DEFAULT_TITLE, greeting: Optional[str] = GREETING) -> Conversation:
        now = utc_now_iso()
        messages = []
        if greeting:
            messages.append(
                ConversationMessage(id=self._new_id(), text=greeting, sender=Sender.assistant, timestamp=now)
            )
        conv = Conversation(id=self._new_id(), title=title, messages=messages, created_at=now, updated_at=now)
        self._save([conv, *self._load()])
        return conv

    def add_message(
        self,
        conversation_id: str,
        text: str,
        sender: Union[Sender, str],
    ) -> Optional[ConversationMessage]:
        """Append a message and move the conversation to the front; ``None`` if it does not exist."""
        conversations = self._load()
        target = next((c for c in conversations if c.id == str(conversation_id)), None)
        if target is None:
            return None
        now = utc_now_iso()
        message = ConversationMessage(id=self._new_id(), text=text, sender=Sender(sender), timestamp=now)
        target.messages.append(message)
        target.updated_at = now
        others = [c for c in conversations if c is not target]
        self._save([target, *others])
        return message

    def retitle_from_first_user_message(self, conversation_id: str) -> Optional[Conversation]:
        """Title the conversation after its first user message, once."""
        conversations = self._load()
        target = next((c for c in conversations if c.id == str(conversation_id)), None)
        if target is None:
            return None
        user_messages = [m for m in target.messages if m.sender is Sender.user]
        if len(user_messages) != 1 or target.title != DEFAULT_TITLE:
            return target
        target.title = title_from_message(user_messages[0].text)
        target.updated_at = utc_now_iso()
        self._save(conversations)
        return target

    def delete(self, conversation_id: str) -> bool:
        conversations = self._load()
        kept = [c for c in conversations if c.id != str(conversation_id)]
        if len(kept) == len(conversations):
            return False
        self._save(kept)
        return True

    def history(self, conversation_id: str, *, limit: int = 20) -> List[dict[str, Any]]:
        """Recent messages in chat-completions shape (role/content)."""
        conv = self.get(conversation_id)
        if conv is None:
            return []
        out = []
        for m in conv.messages[-limit:]:
            out.append({"role": m.sender.value, "content": m.text})
        return out
