"""
ConversationRepository: the one interface the orchestrator persists through.

RemoteRepository talks to the backend REST API for signed-in users;
storage.LocalRepository keeps chats on disk for anonymous use.
"""
import logging

import httpx

from typing import List, Optional, Protocol

from core.security import is_uuid
from client.errors import AuthRequired, NetworkError, PersistenceError
from client.messages import ChatSummary, LoadedConversation, Message
from client.session import SessionProvider

logger = logging.getLogger(__name__)


class ConversationRepository(Protocol):
    async def create_conversation(self, title: str, persona: str) -> ChatSummary: ...

    async def append_message(self, conversation_id: str, message: Message) -> bool: ...

    async def load_conversation(self, conversation_id: str) -> Optional[LoadedConversation]: ...

    async def list_conversations(self) -> List[ChatSummary]: ...

    async def delete_conversation(self, conversation_id: str) -> None: ...

    async def update_title(self, conversation_id: str, title: str) -> None: ...

    async def update_persona(self, conversation_id: str, persona: str) -> None: ...


def valid_conversation_id(conversation_id: Optional[str]) -> bool:
    if not conversation_id or conversation_id == "default":
        return False
    return is_uuid(conversation_id)


class RemoteRepository:
    """ Conversation store client for /api/conversations """

    def __init__(self, http: httpx.AsyncClient, session: SessionProvider):
        self._http = http
        self._session = session

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        auth = self._session.require()
        try:
            response = await self._http.request(method, path, headers=auth.headers, **kwargs)
        except httpx.RequestError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if response.status_code == 401:
            raise AuthRequired("Session expired. Please sign in again.")
        return response

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        if response.is_error:
            logger.error("%s failed: %s %s", operation, response.status_code, response.text)
            raise PersistenceError(f"{operation} failed with HTTP {response.status_code}")

    async def create_conversation(self, title: str, persona: str) -> ChatSummary:
        response = await self._request(
            "POST", "/api/conversations", json={"title": title, "persona": persona}
        )
        self._raise_for_status(response, "create_conversation")
        data = response.json()
        logger.info("Created conversation %s", data["id"])
        return ChatSummary(id=data["id"], title=data["title"], date=data["updated_at"])

    async def append_message(self, conversation_id: str, message: Message) -> bool:
        """
        Store one message. Malformed ids are refused without a request.

        Returns:
            bool: False when the id was refused, True once stored
        """
        if not valid_conversation_id(conversation_id):
            logger.warning("append_message: invalid conversation id %r, not saved", conversation_id)
            return False

        response = await self._request(
            "POST", f"/api/conversations/{conversation_id}/messages",
            json=message.to_storage()
        )
        self._raise_for_status(response, "append_message")
        return True

    async def load_conversation(self, conversation_id: str) -> Optional[LoadedConversation]:
        if not valid_conversation_id(conversation_id):
            return None

        response = await self._request("GET", f"/api/conversations/{conversation_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "load_conversation")

        data = response.json()
        return LoadedConversation(
            id=data["id"],
            title=data["title"],
            persona=data.get("persona"),
            messages=[Message.model_validate(m) for m in data["messages"]],
        )

    async def list_conversations(self) -> List[ChatSummary]:
        response = await self._request("GET", "/api/conversations")
        self._raise_for_status(response, "list_conversations")
        return [
            ChatSummary(id=c["id"], title=c["title"], date=c["updated_at"])
            for c in response.json()["conversations"]
        ]

    async def delete_conversation(self, conversation_id: str) -> None:
        response = await self._request("DELETE", f"/api/conversations/{conversation_id}")
        self._raise_for_status(response, "delete_conversation")
        logger.info("Deleted conversation %s", conversation_id)

    async def update_title(self, conversation_id: str, title: str) -> None:
        response = await self._request(
            "PATCH", f"/api/conversations/{conversation_id}", json={"title": title}
        )
        self._raise_for_status(response, "update_title")

    async def update_persona(self, conversation_id: str, persona: str) -> None:
        response = await self._request(
            "PATCH", f"/api/conversations/{conversation_id}", json={"persona": persona}
        )
        self._raise_for_status(response, "update_persona")
