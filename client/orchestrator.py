"""
Conversation orchestrator: the stateful chat session.

Owns the visible message list, the chat history, the active persona and the
active conversation id. Persists through whichever ConversationRepository
matches the current session (remote when signed in, local otherwise) and
rebuilds that choice whenever the SessionProvider reports a change.
"""
import logging

from enum import Enum
from typing import List, Optional

from core.personas import (
    DEFAULT_PERSONA, PERSONAS, display_name, persona_id_for, system_prompt, welcome_message
)
from core.providers import Provider
from client.errors import GreenBotError, describe_error
from client.messages import (
    ChatSummary, DEFAULT_TITLE, Message, MessageStatus, derive_title
)
from client.repository import ConversationRepository
from client.router import ProviderRouter
from client.session import SIGNED_IN, AuthSession, SessionProvider
from client.storage import LocalRepository

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    NO_CONVERSATION = "no_conversation"
    CONVERSATION_ACTIVE = "conversation_active"


class ChatOrchestrator:

    def __init__(
        self,
        session: SessionProvider,
        remote: ConversationRepository,
        local: LocalRepository,
        router: ProviderRouter,
        provider: Provider = Provider.OPENAI,
        persona: str = DEFAULT_PERSONA,
        context_window: int = 6,
    ):
        self._session = session
        self._remote = remote
        self._local = local
        self.router = router
        self.provider = provider
        self.context_window = context_window

        self.persona = persona
        self.conversation_id: Optional[str] = None
        self.chat_history: List[ChatSummary] = []
        self.messages: List[Message] = [self._welcome()]
        self._loading_id: Optional[str] = None
        # conversation exists but its title was never derived from a message
        self._needs_title = False

        self.repository: ConversationRepository = self._select_repository()
        self._unsubscribe = session.subscribe(self._on_session_change)

    # --- session handling ---

    def _select_repository(self) -> ConversationRepository:
        return self._remote if self._session.is_authenticated else self._local

    async def _on_session_change(self, event: str, session: Optional[AuthSession]) -> None:
        if event == SIGNED_IN:
            # anonymous chats are discarded, not imported
            self._local.clear()
        self.repository = self._select_repository()
        logger.info("Session event %s, using %s", event, type(self.repository).__name__)

        self.new_chat()
        await self.refresh_history()

    async def start(self) -> None:
        await self.refresh_history()

    def close(self) -> None:
        self._unsubscribe()

    # --- state ---

    @property
    def state(self) -> ChatState:
        if self.conversation_id is None:
            return ChatState.NO_CONVERSATION
        return ChatState.CONVERSATION_ACTIVE

    @property
    def session(self) -> SessionProvider:
        return self._session

    @property
    def persona_name(self) -> str:
        return display_name(self.persona)

    def _welcome(self) -> Message:
        return Message.bot(welcome_message(self.persona), self.persona_name, intro=True)

    def _mark_selected(self, conversation_id: Optional[str]) -> None:
        self.chat_history = [
            chat.model_copy(update={"selected": chat.id == conversation_id})
            for chat in self.chat_history
        ]

    def _replace_message(self, message_id: str, replacement: Message) -> None:
        self.messages = [replacement if m.id == message_id else m for m in self.messages]

    async def refresh_history(self) -> None:
        try:
            self.chat_history = await self.repository.list_conversations()
        except GreenBotError as e:
            logger.error("Loading chat history failed: %s", e)
            self.chat_history = []
        self._mark_selected(self.conversation_id)

    # --- operations ---

    def _build_history(self, content: str) -> List[dict]:
        """ System prompt, the last few finished messages, then the new message """
        context = [
            m for m in self.messages
            if m.status == MessageStatus.RESOLVED
        ][-self.context_window:] if self.context_window > 0 else []

        history = [{"role": "system", "content": system_prompt(self.persona_name)}]
        for m in context:
            history.append({
                "role": "user" if m.sender == "user" else "assistant",
                "content": m.content
            })
        history.append({"role": "user", "content": content})
        return history

    async def _ensure_conversation(self, content: str) -> None:
        if self.conversation_id is not None:
            if self._needs_title:
                await self._persist_title(content)
            return

        title = derive_title(content)
        try:
            summary = await self.repository.create_conversation(title, self.persona_name)
        except GreenBotError as e:
            # the chat carries on in memory only
            logger.error("Creating conversation failed: %s", e)
            return

        self.conversation_id = summary.id
        self.chat_history.insert(0, summary)
        self._mark_selected(summary.id)

    async def _persist_title(self, content: str) -> None:
        title = derive_title(content)
        try:
            await self.repository.update_title(self.conversation_id, title)
        except GreenBotError as e:
            logger.error("Saving title for %s failed: %s", self.conversation_id, e)
            return
        self._needs_title = False
        self.chat_history = [
            c.model_copy(update={"title": title}) if c.id == self.conversation_id else c
            for c in self.chat_history
        ]

    async def _persist(self, messages: List[Message]) -> None:
        for message in messages:
            try:
                saved = await self.repository.append_message(self.conversation_id, message)
            except GreenBotError as e:
                logger.error("Saving message %s failed: %s", message.id, e)
                return
            if not saved:
                return

    async def send_message(self, text: str) -> Optional[Message]:
        """
        Send one user message and wait for the bot reply.

        Returns the finished bot message (Resolved or Failed), or None for
        blank input. Store and provider errors end up in the returned
        message or the log; nothing is raised.
        """
        if not text or not text.strip():
            return None

        # 1. Conversation (created lazily with a derived title)
        history = self._build_history(text)
        await self._ensure_conversation(text)

        # 2. User message and placeholder
        user_message = Message.user(text)
        placeholder = Message.pending(self.persona_name)
        self.messages.extend([user_message, placeholder])

        # 3. Provider call
        try:
            reply = await self.router.send_chat(history, self.provider)
            final = placeholder.resolve(reply)
        except GreenBotError as e:
            logger.warning("Chat request failed: %s", e)
            final = placeholder.fail(describe_error(e, self.persona_name))

        # 4. Swap placeholder by id and persist the pair
        self._replace_message(placeholder.id, final)
        if self.conversation_id is not None:
            await self._persist([user_message, final])
        return final

    def new_chat(self) -> None:
        self.conversation_id = None
        self._needs_title = False
        self.messages = [self._welcome()]
        self._mark_selected(None)

    async def select_chat(self, conversation_id: str) -> bool:
        """ Load a stored conversation; no-op if it is already shown or a load is running """
        if conversation_id == self.conversation_id or self._loading_id is not None:
            return False

        self._loading_id = conversation_id
        try:
            loaded = await self.repository.load_conversation(conversation_id)
        except GreenBotError as e:
            logger.error("Loading conversation %s failed: %s", conversation_id, e)
            return False
        finally:
            self._loading_id = None

        if loaded is None:
            logger.warning("Conversation %s not found", conversation_id)
            return False

        # the stored persona wins; chats without one follow their latest bot message
        if loaded.persona:
            persona = persona_id_for(loaded.persona)
        else:
            persona = DEFAULT_PERSONA
            for message in reversed(loaded.messages):
                if message.sender == "bot" and message.persona:
                    persona = persona_id_for(message.persona)
                    break

        self.persona = persona
        self.conversation_id = loaded.id
        self._needs_title = (
            loaded.title == DEFAULT_TITLE
            and not any(m.sender == "user" for m in loaded.messages)
        )
        self.messages = loaded.messages or [self._welcome()]
        self._mark_selected(loaded.id)
        return True

    async def change_persona(self, persona: str) -> Message:
        """
        Switch persona and show its introduction in place of the last bot message.

        A pending placeholder is never replaced; the introduction is appended
        after it instead. In an active conversation the new persona and the
        introduction are both stored.
        """
        self.persona = persona if persona in PERSONAS else DEFAULT_PERSONA
        intro = self._welcome()

        last_bot = next(
            (i for i in range(len(self.messages) - 1, -1, -1) if self.messages[i].sender == "bot"),
            None
        )
        if last_bot is not None and self.messages[last_bot].status != MessageStatus.PENDING:
            self.messages[last_bot] = intro
        else:
            self.messages.append(intro)

        if self.conversation_id is not None:
            try:
                await self.repository.update_persona(self.conversation_id, self.persona_name)
            except GreenBotError as e:
                logger.error("Saving persona for %s failed: %s", self.conversation_id, e)
            await self._persist([intro])
        return intro

    async def delete_chat(self, conversation_id: str) -> bool:
        try:
            await self.repository.delete_conversation(conversation_id)
        except GreenBotError as e:
            logger.error("Deleting conversation %s failed: %s", conversation_id, e)
            return False

        self.chat_history = [c for c in self.chat_history if c.id != conversation_id]
        if conversation_id == self.conversation_id:
            self.new_chat()
        return True

    def complete_quiz(self, score: int, total: int) -> Message:
        percentage = int(score / total * 100 + 0.5) if total else 0
        message = Message.bot(
            f"Quiz completed! You scored {score} out of {total} ({percentage}%). "
            "Would you like to learn more about any of the topics covered?",
            self.persona_name
        )
        self.messages.append(message)
        return message
