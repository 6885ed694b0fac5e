from fastapi import APIRouter, HTTPException, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import logging
from uuid import UUID

from schemas.chat import (
    ConversationCreateRequest, ConversationUpdateRequest,
    ConversationRead, ConversationListResponse,
    ConversationWithMessages, ChatMessage,
    MessageCreateRequest
)

import crud.conversation
from core.db import SessionDep
from core.personas import normalize_display_name
from api.deps import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


def _db_error(operation: str, e: Exception) -> HTTPException:
    logger.error("DB error in %s: %s", operation, e)
    return HTTPException(
        status_code=500,
        detail="Internal Server Error: DB operation failed"
    )

def _to_chat_message(message) -> ChatMessage:
    return ChatMessage(
        id=message.id,
        content=message.content,
        sender=message.sender,
        persona=message.persona,
        timestamp=message.created_at
    )

async def _get_owned(db, conversation_id: UUID, user):
    conversation = await crud.conversation.get_conversation(db, conversation_id, user.id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("", response_model=ConversationListResponse)
async def list_conversations(user: CurrentUser, db: SessionDep):
    """ The caller's conversations, most recently updated first. """
    try:
        conversations = await crud.conversation.list_conversations(db, user.id)
        return {"conversations": conversations}
    except SQLAlchemyError as e:
        raise _db_error("GET /conversations", e)

@router.post("", response_model=ConversationRead, status_code=201)
async def create_conversation(req: ConversationCreateRequest, user: CurrentUser, db: SessionDep):
    try:
        conversation = await crud.conversation.create_conversation(
            db, user.id, req.title, normalize_display_name(req.persona)
        )
        logger.info("Created conversation %s for user %s", conversation.id, user.id)
        return conversation
    except SQLAlchemyError as e:
        raise _db_error("POST /conversations", e)

@router.get("/{conversation_id}", response_model=ConversationWithMessages)
async def get_conversation(conversation_id: UUID, user: CurrentUser, db: SessionDep):
    """ A conversation together with its messages in timestamp order. """
    try:
        conversation = await _get_owned(db, conversation_id, user)
        messages = await crud.conversation.fetch_messages(db, conversation_id)

        return ConversationWithMessages(
            **ConversationRead.model_validate(conversation).model_dump(),
            messages=[_to_chat_message(m) for m in messages]
        )
    except SQLAlchemyError as e:
        raise _db_error(f"GET /conversations/{conversation_id}", e)

@router.patch("/{conversation_id}", response_model=ConversationRead)
async def update_conversation(
    conversation_id: UUID,
    req: ConversationUpdateRequest,
    user: CurrentUser,
    db: SessionDep
):
    """ Rename a conversation or record a persona change. """
    try:
        conversation = await _get_owned(db, conversation_id, user)
        persona = normalize_display_name(req.persona) if req.persona else None
        return await crud.conversation.update_conversation(
            db, conversation, title=req.title, persona=persona
        )
    except SQLAlchemyError as e:
        raise _db_error(f"PATCH /conversations/{conversation_id}", e)

@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(conversation_id: UUID, user: CurrentUser, db: SessionDep):
    """ Delete the conversation's messages, then the conversation itself. """
    try:
        conversation = await _get_owned(db, conversation_id, user)
        await crud.conversation.delete_conversation(db, conversation)
        logger.info("Deleted conversation %s for user %s", conversation_id, user.id)
        return Response(status_code=204)
    except SQLAlchemyError as e:
        raise _db_error(f"DELETE /conversations/{conversation_id}", e)

@router.post("/{conversation_id}/messages", response_model=ChatMessage, status_code=201)
async def append_message(
    conversation_id: UUID,
    req: MessageCreateRequest,
    user: CurrentUser,
    db: SessionDep
):
    """ Append one message and bump the conversation's updated_at. """
    try:
        conversation = await _get_owned(db, conversation_id, user)
        message = await crud.conversation.append_message(
            db, conversation,
            content=req.content,
            sender=req.sender,
            persona=req.persona,
            message_id=req.id,
            timestamp=req.timestamp
        )
        return _to_chat_message(message)
    except IntegrityError as e:
        logger.warning("Duplicate message %s in conversation %s: %s", req.id, conversation_id, e)
        raise HTTPException(status_code=409, detail="Message already exists")
    except SQLAlchemyError as e:
        raise _db_error(f"POST /conversations/{conversation_id}/messages", e)
