import logging

import httpx

from typing import Dict, Optional

from pydantic import BaseModel

from core.providers import DEFAULT_PROVIDER, Provider
from client.errors import AuthRequired, NetworkError, PersistenceError
from client.session import SessionProvider
from client.storage import KeyValueStorage, SELECTED_PROVIDER_KEY, provider_key_name

logger = logging.getLogger(__name__)


class ProviderKeyStatus(BaseModel):
    configured: bool
    masked_key: Optional[str] = None


class CredentialRecord(BaseModel):
    """ Masked view of the caller's stored keys """
    providers: Dict[str, ProviderKeyStatus]
    updated_at: Optional[str] = None

    def is_configured(self, provider: Provider) -> bool:
        status = self.providers.get(provider.value)
        return bool(status and status.configured)


class LocalKeyCache:
    """
    Client-held provider keys and the selected provider, kept in the local
    key-value store. The direct routing mode reads keys from here.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def get(self, provider: Provider) -> Optional[str]:
        return self.storage.get_item(provider_key_name(provider.value)) or None

    def set(self, provider: Provider, key: str) -> None:
        self.storage.set_item(provider_key_name(provider.value), key)

    def remove(self, provider: Provider) -> None:
        self.storage.remove_item(provider_key_name(provider.value))

    @property
    def selected_provider(self) -> Provider:
        value = self.storage.get_item(SELECTED_PROVIDER_KEY)
        try:
            return Provider(value) if value else DEFAULT_PROVIDER
        except ValueError:
            logger.warning("Unknown provider %r in local storage, using %s", value, DEFAULT_PROVIDER.value)
            return DEFAULT_PROVIDER

    @selected_provider.setter
    def selected_provider(self, provider: Provider) -> None:
        self.storage.set_item(SELECTED_PROVIDER_KEY, Provider(provider).value)


class CredentialStore:
    """ Per-user provider keys stored on the backend """

    def __init__(
        self,
        http: httpx.AsyncClient,
        session: SessionProvider,
        cache: Optional[LocalKeyCache] = None
    ):
        self._http = http
        self._session = session
        self.cache = cache

    async def get_credentials(self) -> Optional[CredentialRecord]:
        """
        The caller's record with masked keys, or None when no key was saved.

        Raises:
            AuthRequired: no signed-in session
            PersistenceError: the backend rejected the read
        """
        auth = self._session.require()
        try:
            response = await self._http.get("/api/credentials", headers=auth.headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Loading API keys failed: {e}") from e

        if response.status_code == 401:
            raise AuthRequired("Session expired. Please sign in again.")
        if response.is_error:
            raise PersistenceError(f"Loading API keys failed with HTTP {response.status_code}")

        record = CredentialRecord.model_validate(response.json())
        if record.updated_at is None:
            return None
        return record

    async def save_credentials(self, partial: Dict[Provider, str]) -> bool:
        """
        Merge the given keys into the stored record. Empty values are skipped
        so they never clear a stored key. Not retried on failure.
        """
        auth = self._session.require()
        body = {Provider(p).value: key for p, key in partial.items() if key}
        try:
            response = await self._http.put("/api/credentials", json=body, headers=auth.headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Saving API keys failed: {e}") from e

        if response.status_code == 401:
            raise AuthRequired("Session expired. Please sign in again.")
        if response.is_error:
            logger.error("Saving API keys failed: HTTP %s", response.status_code)
            raise PersistenceError(f"Saving API keys failed with HTTP {response.status_code}")

        if self.cache is not None:
            for provider, key in partial.items():
                if key:
                    self.cache.set(Provider(provider), key)

        logger.info("Saved API keys (providers=%s)", sorted(body))
        return True
