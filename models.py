from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import (
    Column, ForeignKey, Index,
    TEXT, JSON, TIMESTAMP, CHAR,
    String, Integer
)
from sqlalchemy.sql import func

from typing import List, Optional
from datetime import datetime, timezone
from uuid import uuid4


def get_timestamp_column():
    """Timestamp column helper"""
    return Column(
        TIMESTAMP(timezone=True),  # column type stored in the DB
        server_default=func.now(), # default applied by the DB server
        nullable=False
    )

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def new_id() -> str:
    return str(uuid4())


class User(SQLModel, table=True):
    __tablename__ = "User"

    # Primary Key
    id: str = Field(
        default_factory=new_id,
        sa_column=Column(CHAR(36), primary_key=True) # UUID stored as CHAR(36)
    )
    email: str = Field(sa_column=Column(String(255), unique=True, nullable=False))
    password_hash: str = Field(sa_column=Column(String(255), nullable=False))

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )

    # --- Relationships ---
    conversations: List["Conversation"] = Relationship(back_populates="user")

class AccessToken(SQLModel, table=True):
    __tablename__ = "AccessToken"

    # Opaque bearer token issued at sign-in
    token: str = Field(sa_column=Column(String(64), primary_key=True))

    # Foreign Key - User.id (tokens are removed with their user)
    user_id: str = Field(
        sa_column=Column(CHAR(36), ForeignKey("User.id", ondelete="CASCADE"), nullable=False)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )
    expires_at: datetime = Field(sa_column=Column(TIMESTAMP(timezone=True), nullable=False))

class Conversation(SQLModel, table=True):
    __tablename__ = "Conversation"

    # Primary Key
    id: str = Field(
        default_factory=new_id,
        sa_column=Column(CHAR(36), primary_key=True)
    )

    title: str = Field(sa_column=Column(String(255), nullable=False))

    # Persona display name (e.g. "GreenBot")
    persona: str = Field(
        default="GreenBot",
        sa_column=Column(String(100), nullable=False)
    )

    # Foreign Key - User.id
    user_id: Optional[str] = Field(
        default=None,
        sa_column=Column(CHAR(36), ForeignKey("User.id", ondelete="CASCADE"), index=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )
    # Refreshed on every appended message
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )

    # --- Relationships ---
    user: Optional[User] = Relationship(back_populates="conversations")
    messages: List["Message"] = Relationship(back_populates="conversation")

class Message(SQLModel, table=True):
    __tablename__ = "Message"

    # Index for per-conversation ordered reads
    __table_args__ = (
        Index("idx_conversation_created", "conversation_id", "created_at"),
    )

    # Primary Key (client generated)
    id: str = Field(
        default_factory=new_id,
        sa_column=Column(CHAR(36), primary_key=True)
    )

    # Foreign Key - Conversation.id
    conversation_id: str = Field(
        sa_column=Column(
            CHAR(36),
            ForeignKey("Conversation.id", ondelete="CASCADE"),
            nullable=False
        )
    )

    # "user" or "bot"
    sender: str = Field(sa_column=Column(String(10), nullable=False))

    content: str = Field(sa_column=Column(TEXT, nullable=False))

    # Persona display name for bot messages
    persona: Optional[str] = Field(default=None, sa_column=Column(String(100)))

    # Message timestamp
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )

    # --- Relationships ---
    conversation: Conversation = Relationship(back_populates="messages")

class ApiKeys(SQLModel, table=True):
    __tablename__ = "ApiKeys"

    # Primary Key
    id: str = Field(
        default_factory=new_id,
        sa_column=Column(CHAR(36), primary_key=True)
    )

    # Foreign Key - User.id (one record per user)
    user_id: str = Field(
        sa_column=Column(
            CHAR(36), ForeignKey("User.id", ondelete="CASCADE"),
            unique=True, nullable=False
        )
    )

    openai_key: Optional[str] = Field(default=None, sa_column=Column(TEXT))
    deepseek_key: Optional[str] = Field(default=None, sa_column=Column(TEXT))
    grok_key: Optional[str] = Field(default=None, sa_column=Column(TEXT))

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )

class QuizResult(SQLModel, table=True):
    __tablename__ = "QuizResult"

    # Primary Key
    id: str = Field(
        default_factory=new_id,
        sa_column=Column(CHAR(36), primary_key=True)
    )

    # Foreign Key - User.id
    user_id: str = Field(
        sa_column=Column(CHAR(36), ForeignKey("User.id", ondelete="CASCADE"), nullable=False)
    )

    quiz_type: str = Field(sa_column=Column(String(50), nullable=False, index=True))
    quiz_title: str = Field(sa_column=Column(String(255), nullable=False))
    score: int = Field(sa_column=Column(Integer, nullable=False))
    total_questions: int = Field(sa_column=Column(Integer, nullable=False))

    # round(score / total_questions * 100)
    percentage: int = Field(sa_column=Column(Integer, nullable=False))
    time_taken_seconds: Optional[int] = Field(default=None, sa_column=Column(Integer))

    # Ordered list of {question_id, selected_answer, correct_answer, is_correct}
    answers: Optional[list] = Field(default=None, sa_column=Column(JSON))

    completed_at: datetime = Field(
        default_factory=utcnow,
        sa_column=get_timestamp_column()
    )
