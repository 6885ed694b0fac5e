from fastapi import APIRouter, HTTPException, Header
from sqlalchemy.exc import SQLAlchemyError

import logging
from typing import Annotated, Optional

from schemas.login import LoginRequest, TokenResponse, UserRead

import crud.user

from core.config import settings
from core.db import SessionDep
from api.deps import CurrentUser, parse_bearer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/login", tags=["Login"])


async def _issue_token(db, user) -> TokenResponse:
    token = await crud.user.create_access_token(
        db, user.id, settings.ACCESS_TOKEN_TTL_MINUTES
    )
    return TokenResponse(
        access_token=token.token,
        user_id=user.id,
        email=user.email,
        expires_at=token.expires_at
    )

@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(req: LoginRequest, db: SessionDep):
    """
        Register a new user and return a bearer token for the fresh session.
    """
    try:
        if await crud.user.get_user_by_email(db, req.email):
            raise HTTPException(status_code=409, detail="Email already registered")

        user = await crud.user.create_user(db, req.email, req.password)
        logger.info("Registered user %s", user.id)
        return await _issue_token(db, user)
    except SQLAlchemyError as e:
        logger.error("DB error in /login/signup: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )

@router.post("/", response_model=TokenResponse)
async def login(req: LoginRequest, db: SessionDep):
    """
        Verify email and password and issue a bearer token.
    """
    try:
        user = await crud.user.authenticate(db, req.email, req.password)
        if not user:
            raise HTTPException(status_code=401, detail="Invalid email or password")

        logger.info("User %s signed in", user.id)
        return await _issue_token(db, user)
    except SQLAlchemyError as e:
        logger.error("DB error in /login: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )

@router.post("/logout", status_code=204)
async def logout(
    user: CurrentUser,
    db: SessionDep,
    authorization: Annotated[Optional[str], Header()] = None
):
    """ Revoke the token used for this request. """
    try:
        await crud.user.revoke_token(db, parse_bearer(authorization))
        logger.info("User %s signed out", user.id)
    except SQLAlchemyError as e:
        logger.error("DB error in /login/logout: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Internal Server Error: DB operation failed"
        )

@router.get("/me", response_model=UserRead)
async def me(user: CurrentUser):
    return UserRead(id=user.id, email=user.email)
