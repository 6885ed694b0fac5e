from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timedelta, timezone
from typing import Optional

from models import User, AccessToken, utcnow
from core.security import hash_password, verify_password, new_access_token


def as_utc(value: datetime) -> datetime:
    """ SQLite returns naive datetimes; treat them as UTC """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    statement = (
        select(User)
        .where(User.email == email.lower())
    )
    result = await db.execute(statement)

    return result.scalars().first()

async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    statement = (
        select(User)
        .where(User.id == str(user_id))
    )
    result = await db.execute(statement)

    return result.scalar_one_or_none()

async def create_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Create a user with a hashed password.
    """
    new_user = User(email=email.lower(), password_hash=hash_password(password))
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    return new_user

async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user

async def create_access_token(
    db: AsyncSession,
    user_id: str,
    ttl_minutes: int
) -> AccessToken:
    """
    Issue a new bearer token for the user.
    """
    token = AccessToken(
        token=new_access_token(),
        user_id=str(user_id),
        expires_at=utcnow() + timedelta(minutes=ttl_minutes)
    )
    db.add(token)
    await db.commit()
    await db.refresh(token)

    return token

async def get_user_by_token(db: AsyncSession, token: str) -> Optional[User]:
    """
    Resolve the owner of a bearer token; expired or unknown tokens give None.
    """
    statement = (
        select(AccessToken)
        .where(AccessToken.token == token)
    )
    result = await db.execute(statement)
    access_token = result.scalar_one_or_none()

    if not access_token or as_utc(access_token.expires_at) <= utcnow():
        return None

    return await get_user_by_id(db, access_token.user_id)

async def revoke_token(db: AsyncSession, token: str) -> bool:
    statement = (
        select(AccessToken)
        .where(AccessToken.token == token)
    )
    result = await db.execute(statement)
    access_token = result.scalar_one_or_none()

    if not access_token:
        return False

    await db.delete(access_token)
    await db.commit()
    return True
