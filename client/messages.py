"""
Client-side message and conversation types.

A bot reply goes through two phases: a Pending placeholder is shown while the
provider call runs, then it is replaced, matched by id, with either a Resolved
reply or a Failed error message.
"""
from pydantic import BaseModel, Field

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional
from uuid import uuid4


PLACEHOLDER_TEXT = "Thinking..."
TITLE_LENGTH = 30
DEFAULT_TITLE = "New Conversation"


def _now() -> datetime:
    return datetime.now(timezone.utc)

def _new_id() -> str:
    return str(uuid4())


class MessageStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class Message(BaseModel):
    id: str = Field(default_factory=_new_id)
    content: str
    sender: Literal["user", "bot"]
    persona: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
    status: MessageStatus = MessageStatus.RESOLVED
    # welcome / persona introduction; shown but never persisted
    intro: bool = False

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(content=content, sender="user")

    @classmethod
    def bot(cls, content: str, persona: Optional[str], intro: bool = False) -> "Message":
        return cls(content=content, sender="bot", persona=persona, intro=intro)

    @classmethod
    def pending(cls, persona: Optional[str]) -> "Message":
        return cls(
            content=PLACEHOLDER_TEXT, sender="bot",
            persona=persona, status=MessageStatus.PENDING
        )

    def resolve(self, content: str) -> "Message":
        """ Finished reply carrying the placeholder's id """
        return self.model_copy(update={
            "content": content, "status": MessageStatus.RESOLVED, "timestamp": _now()
        })

    def fail(self, content: str) -> "Message":
        return self.model_copy(update={
            "content": content, "status": MessageStatus.FAILED, "timestamp": _now()
        })

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", exclude={"status", "intro"})


class ChatSummary(BaseModel):
    """ One history entry (sidebar item) """
    id: str
    title: str
    date: datetime
    selected: bool = False


class LoadedConversation(BaseModel):
    id: str
    title: str
    persona: Optional[str] = None
    messages: List[Message] = []


def derive_title(content: str) -> str:
    """ First 30 characters of the opening message, with "..." when cut """
    content = content.strip()
    if len(content) > TITLE_LENGTH:
        return content[:TITLE_LENGTH] + "..."
    return content
