from fastapi import Depends, HTTPException, Header
from sqlalchemy.exc import SQLAlchemyError

import logging
from typing import Annotated, Optional

import crud.user
from core.db import SessionDep
from models import User

logger = logging.getLogger(__name__)


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """ Token part of an "Authorization: Bearer <token>" header """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()

async def get_optional_user(
    db: SessionDep,
    authorization: Annotated[Optional[str], Header()] = None
) -> Optional[User]:
    """ Caller identity from the bearer token, None when missing or invalid """
    token = parse_bearer(authorization)
    if not token:
        return None
    try:
        return await crud.user.get_user_by_token(db, token)
    except SQLAlchemyError as e:
        logger.error("DB error while resolving access token: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )

async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)]
) -> User:
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user

# Authenticated caller dependency
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
