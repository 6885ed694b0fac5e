"""
Durable key-value storage and the local conversation store used while
nobody is signed in.

Chats are kept under a single key as a JSON list, newest first. Deleting a
chat records a tombstone so it stays hidden even if a stale copy of the list
is written back later.
"""
import json
import logging
import os
import tempfile

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from client.errors import PersistenceError
from client.messages import ChatSummary, LoadedConversation, Message

logger = logging.getLogger(__name__)

CHATS_KEY = "unauthenticatedChats"
DELETED_KEY = "deletedChats"
SELECTED_PROVIDER_KEY = "selected-api"


def provider_key_name(provider: str) -> str:
    return f"{provider}-api-key"


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """ In-process storage; nothing survives the process """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """
    All items in one JSON object on disk. Every write replaces the file
    atomically (temp file + rename) so a crash never leaves half a document.
    """

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Unreadable storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Storage file %s does not hold an object", self.path)
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise PersistenceError(f"Could not write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class LocalRepository:
    """ Conversation store backed by KeyValueStorage """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    # --- raw list access ---

    def _load_json(self, key: str) -> list:
        raw = self.storage.get_item(key)
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.error("Corrupt %s in local storage, treating as empty: %s", key, e)
            return []
        return value if isinstance(value, list) else []

    def _deleted_ids(self) -> set:
        return set(self._load_json(DELETED_KEY))

    def _save_chats(self, chats: List[dict]) -> None:
        self.storage.set_item(CHATS_KEY, json.dumps(chats, ensure_ascii=False))

    def load_all(self) -> List[dict]:
        """ Stored chats minus tombstoned ids, newest first """
        deleted = self._deleted_ids()
        return [
            chat for chat in self._load_json(CHATS_KEY)
            if isinstance(chat, dict) and chat.get("id") not in deleted
        ]

    def upsert_chat(
        self, chat_id: str, title: str, messages: List[Message], persona: Optional[str] = None
    ) -> None:
        """ Replace the entry with this id in place, or insert it at the front """
        entry = {
            "id": chat_id,
            "title": title,
            "date": datetime.now(timezone.utc).isoformat(),
            "messages": [m.to_storage() for m in messages],
        }
        if persona:
            entry["persona"] = persona
        chats = self.load_all()
        for index, chat in enumerate(chats):
            if chat.get("id") == chat_id:
                chats[index] = entry
                break
        else:
            chats.insert(0, entry)

        # tombstoned ids never come back
        deleted = self._deleted_ids()
        self._save_chats([c for c in chats if c["id"] not in deleted])

    def remove_chat(self, chat_id: str) -> None:
        deleted = self._deleted_ids()
        deleted.add(chat_id)
        self.storage.set_item(DELETED_KEY, json.dumps(sorted(deleted)))
        self._save_chats([c for c in self.load_all() if c.get("id") != chat_id])
        logger.info("Removed local chat %s", chat_id)

    def clear(self) -> None:
        self.storage.remove_item(CHATS_KEY)
        logger.info("Cleared local chat mirror")

    def _find(self, chat_id: str) -> Optional[dict]:
        for chat in self.load_all():
            if chat.get("id") == chat_id:
                return chat
        return None

    # --- ConversationRepository ---

    async def create_conversation(self, title: str, persona: str) -> ChatSummary:
        chat_id = str(uuid4())
        self.upsert_chat(chat_id, title, [], persona=persona)
        return ChatSummary(id=chat_id, title=title, date=datetime.now(timezone.utc))

    async def append_message(self, conversation_id: str, message: Message) -> bool:
        chat = self._find(conversation_id)
        if chat is None:
            logger.warning("append_message: unknown local chat %s", conversation_id)
            return False
        messages = [Message.model_validate(m) for m in chat.get("messages", [])]
        messages.append(message)
        self.upsert_chat(conversation_id, chat.get("title", ""), messages, chat.get("persona"))
        return True

    async def load_conversation(self, conversation_id: str) -> Optional[LoadedConversation]:
        chat = self._find(conversation_id)
        if chat is None:
            return None
        messages = [Message.model_validate(m) for m in chat.get("messages", [])]
        return LoadedConversation(
            id=chat["id"], title=chat.get("title", ""), persona=chat.get("persona"), messages=messages
        )

    async def list_conversations(self) -> List[ChatSummary]:
        return [
            ChatSummary(id=chat["id"], title=chat.get("title", ""), date=chat["date"])
            for chat in self.load_all()
        ]

    async def delete_conversation(self, conversation_id: str) -> None:
        self.remove_chat(conversation_id)

    async def update_title(self, conversation_id: str, title: str) -> None:
        chat = self._find(conversation_id)
        if chat is None:
            return
        messages = [Message.model_validate(m) for m in chat.get("messages", [])]
        self.upsert_chat(conversation_id, title, messages, chat.get("persona"))

    async def update_persona(self, conversation_id: str, persona: str) -> None:
        chat = self._find(conversation_id)
        if chat is None:
            logger.warning("update_persona: unknown local chat %s", conversation_id)
            return
        messages = [Message.model_validate(m) for m in chat.get("messages", [])]
        self.upsert_chat(conversation_id, chat.get("title", ""), messages, persona)
