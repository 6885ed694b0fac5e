from fastapi import APIRouter, HTTPException
from sqlalchemy.exc import SQLAlchemyError

import logging

from schemas.credentials import (
    CredentialsUpdateRequest, CredentialsResponse, ProviderKeyStatus
)

import crud.credentials
from core.db import SessionDep
from core.providers import Provider
from core.security import mask_key
from api.deps import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/credentials", tags=["Credentials"])


def _to_response(record) -> CredentialsResponse:
    """ Key status per provider; key material only ever leaves masked """
    providers = {}
    for provider in Provider:
        key = crud.credentials.provider_key(record, provider)
        providers[provider.value] = ProviderKeyStatus(
            configured=bool(key),
            masked_key=mask_key(key) if key else None
        )
    return CredentialsResponse(
        providers=providers,
        updated_at=record.updated_at if record else None
    )

@router.get("", response_model=CredentialsResponse)
async def get_credentials(user: CurrentUser, db: SessionDep):
    try:
        record = await crud.credentials.get_credentials(db, user.id)
        return _to_response(record)
    except SQLAlchemyError as e:
        logger.error("DB error loading credentials for user %s: %s", user.id, e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )

@router.put("", response_model=CredentialsResponse)
async def save_credentials(req: CredentialsUpdateRequest, user: CurrentUser, db: SessionDep):
    """
    Merge the given provider keys into the caller's record.
    Providers left out of the body keep their stored keys.
    """
    partial = {
        Provider(name): value
        for name, value in req.model_dump(exclude_none=True).items()
    }
    try:
        record = await crud.credentials.save_credentials(db, user.id, partial)
        return _to_response(record)
    except SQLAlchemyError as e:
        logger.error("DB error saving credentials for user %s: %s", user.id, e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )

@router.delete("/{provider}", response_model=CredentialsResponse)
async def clear_credential(provider: Provider, user: CurrentUser, db: SessionDep):
    try:
        record = await crud.credentials.clear_provider_key(db, user.id, provider)
        if record is None:
            raise HTTPException(status_code=404, detail="No API keys configured")
        return _to_response(record)
    except SQLAlchemyError as e:
        logger.error("DB error clearing %s key for user %s: %s", provider.value, user.id, e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )
