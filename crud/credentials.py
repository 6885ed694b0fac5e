import logging

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Optional

from models import ApiKeys, utcnow
from core.providers import Provider

logger = logging.getLogger(__name__)


async def get_credentials(db: AsyncSession, user_id: str) -> Optional[ApiKeys]:
    """
    The user's credential record, or None when nothing was saved yet.
    """
    statement = (
        select(ApiKeys)
        .where(ApiKeys.user_id == str(user_id))
    )
    result = await db.execute(statement)

    return result.scalar_one_or_none()

async def save_credentials(
    db: AsyncSession,
    user_id: str,
    partial: Dict[Provider, Optional[str]]
) -> ApiKeys:
    """
    Insert the record if absent, otherwise merge into the existing row.

    Providers missing from `partial` (or given an empty value) keep their
    stored key, so saving one provider never clears the others.
    """
    record = await get_credentials(db, user_id)
    if record is None:
        record = ApiKeys(user_id=str(user_id))

    updated = []
    for provider, key in partial.items():
        if not key:
            continue
        setattr(record, Provider(provider).endpoint.key_field, key)
        updated.append(Provider(provider).value)

    record.updated_at = utcnow()
    db.add(record)
    await db.commit()
    await db.refresh(record)

    # provider names only, never the key material
    logger.info("Saved credentials for user %s (providers=%s)", user_id, updated)
    return record

async def clear_provider_key(
    db: AsyncSession,
    user_id: str,
    provider: Provider
) -> Optional[ApiKeys]:
    """
    Explicitly remove one provider's key; the other keys are kept.
    """
    record = await get_credentials(db, user_id)
    if record is None:
        return None

    setattr(record, provider.endpoint.key_field, None)
    record.updated_at = utcnow()
    db.add(record)
    await db.commit()
    await db.refresh(record)

    logger.info("Cleared %s key for user %s", provider.value, user_id)
    return record

def provider_key(record: Optional[ApiKeys], provider: Provider) -> Optional[str]:
    """ Stored key for a provider, None when the record or the key is missing """
    if record is None:
        return None
    return getattr(record, provider.endpoint.key_field) or None
