"""Saved chat conversations."""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, List, Optional

from synapse.storage import CONVERSATIONS_KEY, JsonStore

TITLE_LIMIT = 40
DEFAULT_TITLE = "New Chat"


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_title(messages: List[Dict[str, Any]]) -> str:
    first = next((m for m in messages if m.get("role") == "user"), None)
    if first is None:
        return DEFAULT_TITLE
    content = str(first.get("content", ""))
    return content[:TITLE_LIMIT] + ("..." if len(content) > TITLE_LIMIT else "")


class ConversationStore:
    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def _load(self) -> List[Dict[str, Any]]:
        data = self._store.get(CONVERSATIONS_KEY, [])
        return [c for c in data if isinstance(c, dict)] if isinstance(data, list) else []

    def _save(self, conversations: List[Dict[str, Any]]) -> None:
        self._store.set(CONVERSATIONS_KEY, conversations)

    def list(self) -> List[Dict[str, Any]]:
        """Newest activity first."""
        return sorted(self._load(), key=lambda c: c.get("updatedAt", 0), reverse=True)

    def get(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        return next((c for c in self._load() if c.get("id") == conversation_id), None)

    def delete(self, conversation_id: str) -> bool:
        conversations = self._load()
        kept = [c for c in conversations if c.get("id") != conversation_id]
        if len(kept) == len(conversations):
            return False
        self._save(kept)
        return True

    def append(self, conversation_id: Optional[str], *messages: Dict[str, str]) -> Dict[str, Any]:
        """Add messages, creating the conversation on first send."""
        conversations = self._load()
        stamp = now_ms()
        conversation = next((c for c in conversations if conversation_id and c.get("id") == conversation_id), None)
        if conversation is None:
            conversation = {
                "id": conversation_id or uuid.uuid4().hex,
                "title": DEFAULT_TITLE,
                "messages": [],
                "createdAt": stamp,
                "updatedAt": stamp,
            }
            conversations.append(conversation)
        for msg in messages:
            conversation["messages"].append(
                {"role": msg["role"], "content": msg["content"], "timestamp": stamp}
            )
        conversation["title"] = generate_title(conversation["messages"])
        conversation["updatedAt"] = stamp
        self._save(conversations)
        return conversation
