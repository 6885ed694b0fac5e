from sqlmodel import SQLModel, Field

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID


class ConversationCreateRequest(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    # Persona id ("greenbot") or display name ("GreenBot")
    persona: str = "greenbot"

class ConversationUpdateRequest(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    persona: Optional[str] = None

class ConversationRead(SQLModel):
    id: UUID
    title: str
    persona: str
    user_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

class ConversationListResponse(SQLModel):
    conversations: List[ConversationRead]

class ChatMessage(SQLModel):
    id: UUID
    content: str
    sender: Literal["user", "bot"]
    persona: Optional[str] = None
    timestamp: datetime

class MessageCreateRequest(SQLModel):
    # Client generated message id; assigned by the server when absent
    id: Optional[UUID] = None
    content: str
    sender: Literal["user", "bot"]
    persona: Optional[str] = None
    timestamp: Optional[datetime] = None

class ConversationWithMessages(ConversationRead):
    messages: List[ChatMessage]
