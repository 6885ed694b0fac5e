from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

import httpx
import logging
from typing import Annotated

from schemas.relay import RelayRequest

import crud.credentials
from core.db import SessionDep
from core.providers import Provider
from api.deps import OptionalUser
from services.llm import UpstreamError, forward_chat, get_http_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Relay"])


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})

@router.post("/ai-chat")
async def ai_chat(
    req: RelayRequest,
    user: OptionalUser,
    db: SessionDep,
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)]
):
    """
    Forward a chat request to the caller's chosen provider using the key
    stored for that caller. The upstream JSON body is returned verbatim.
    """
    # 1. Caller identity
    if user is None:
        return _error(401, "Unauthorized")

    # 2. Provider
    try:
        provider = Provider(req.provider)
    except ValueError:
        return _error(400, f"Unsupported provider: {req.provider}")

    # 3. Caller's credential record
    try:
        record = await crud.credentials.get_credentials(db, user.id)
    except SQLAlchemyError as e:
        logger.error("DB error fetching API keys for user %s: %s", user.id, e)
        return _error(500, "Failed to fetch API keys from database.")

    if record is None:
        return _error(
            400,
            "No API keys configured. Please add your API keys in settings.",
            needsSetup=True
        )

    # 4. Provider key
    api_key = crud.credentials.provider_key(record, provider)
    if not api_key:
        return _error(
            400,
            f"No {provider.label} API key found. Please add it in settings.",
            missingKey=True
        )

    # 5. Upstream call
    messages = [m.model_dump() for m in req.messages]
    try:
        return await forward_chat(client, provider, api_key, messages)
    except UpstreamError as e:
        return _error(e.status_code, str(e))
    except httpx.RequestError as e:
        logger.error("Transport error calling %s for user %s: %s", provider.value, user.id, e)
        return _error(502, f"{provider.label} API request failed: {e}")
    except ValueError as e:
        logger.error("Non-JSON body from %s: %s", provider.value, e)
        return _error(502, f"{provider.label} API returned an invalid response")
    except Exception as e:
        logger.exception("Unknown error in /ai-chat")
        return _error(500, str(e))
