from sqlmodel import select
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from models import Conversation, Message, utcnow


async def create_conversation(
    db: AsyncSession,
    user_id: str,
    title: str,
    persona: str
) -> Conversation:
    """
    Create a conversation owned by the user.
    """
    new_conversation = Conversation(
        title=title,
        persona=persona,
        user_id=str(user_id)
    )
    db.add(new_conversation)
    await db.commit()
    await db.refresh(new_conversation)

    return new_conversation

async def get_conversation(
    db: AsyncSession,
    conversation_id: UUID,
    user_id: str
) -> Optional[Conversation]:
    """
    Get a conversation by id, scoped to its owner.
    """
    statement = (
        select(Conversation)
        .where(
            Conversation.id == str(conversation_id),
            Conversation.user_id == str(user_id)
        )
    )
    result = await db.execute(statement)

    return result.scalar_one_or_none()

async def list_conversations(db: AsyncSession, user_id: str) -> List[Conversation]:
    """
    All conversations of a user, most recently updated first.
    """
    statement = (
        select(Conversation)
        .where(Conversation.user_id == str(user_id))
        .order_by(Conversation.updated_at.desc())
    )
    result = await db.execute(statement)

    return result.scalars().all()

async def fetch_messages(db: AsyncSession, conversation_id: UUID) -> List[Message]:
    """
    Messages of a conversation in ascending timestamp order.
    """
    statement = (
        select(Message)
        .where(Message.conversation_id == str(conversation_id))
        .order_by(Message.created_at)
    )
    result = await db.execute(statement)

    return result.scalars().all()

async def append_message(
    db: AsyncSession,
    conversation: Conversation,
    content: str,
    sender: str,
    persona: Optional[str] = None,
    message_id: Optional[UUID] = None,
    timestamp: Optional[datetime] = None
) -> Message:
    """
    Insert a message and refresh the conversation's updated_at.
    """
    now = utcnow()
    new_message = Message(
        conversation_id=str(conversation.id),
        content=content,
        sender=sender,
        persona=persona,
        created_at=timestamp or now
    )
    if message_id:
        new_message.id = str(message_id)

    conversation.updated_at = now
    db.add(new_message)
    db.add(conversation)
    await db.commit()
    await db.refresh(new_message)

    return new_message

async def update_conversation(
    db: AsyncSession,
    conversation: Conversation,
    title: Optional[str] = None,
    persona: Optional[str] = None
) -> Conversation:
    if title is not None:
        conversation.title = title
    if persona is not None:
        conversation.persona = persona
    db.add(conversation)
    await db.commit()
    await db.refresh(conversation)

    return conversation

async def delete_conversation(db: AsyncSession, conversation: Conversation) -> None:
    """
    Delete the conversation's messages, then the conversation row.

    The message delete is committed first; if it fails the conversation row
    is left untouched.
    """
    await db.execute(
        delete(Message).where(Message.conversation_id == str(conversation.id))
    )
    await db.commit()

    await db.execute(
        delete(Conversation).where(Conversation.id == str(conversation.id))
    )
    await db.commit()
