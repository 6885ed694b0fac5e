"""
Client wiring: builds every client component from ClientSettings around one
backend connection and one durable storage file.
"""
import logging

import httpx

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from client.config import ClientSettings, create_backend_client
from client.credentials import CredentialStore, LocalKeyCache
from client.orchestrator import ChatOrchestrator
from client.repository import RemoteRepository
from client.router import ProviderRouter
from client.session import SessionProvider
from client.storage import JsonFileStorage, LocalRepository

logger = logging.getLogger(__name__)


@dataclass
class ChatClient:
    settings: ClientSettings
    session: SessionProvider
    credentials: CredentialStore
    router: ProviderRouter
    orchestrator: ChatOrchestrator


def build_chat_client(
    settings: ClientSettings,
    backend: httpx.AsyncClient,
    provider_http: Optional[httpx.AsyncClient] = None,
) -> ChatClient:
    storage = JsonFileStorage(settings.STORAGE_PATH)
    keys = LocalKeyCache(storage)
    session = SessionProvider(backend)
    router = ProviderRouter(session, backend, keys, settings=settings, provider_http=provider_http)
    orchestrator = ChatOrchestrator(
        session,
        RemoteRepository(backend, session),
        LocalRepository(storage),
        router,
        provider=keys.selected_provider,
        context_window=settings.CONTEXT_WINDOW,
    )
    return ChatClient(
        settings=settings,
        session=session,
        credentials=CredentialStore(backend, session, cache=keys),
        router=router,
        orchestrator=orchestrator,
    )


@asynccontextmanager
async def open_chat_client(
    settings: Optional[ClientSettings] = None,
    provider_http: Optional[httpx.AsyncClient] = None,
) -> AsyncGenerator[ChatClient, None]:
    """ Started ChatClient; the backend connection is closed on exit """
    settings = settings or ClientSettings()
    async with create_backend_client(settings) as backend:
        client = build_chat_client(settings, backend, provider_http=provider_http)
        await client.orchestrator.start()
        logger.info("Chat client ready (%s routing, storage %s)", client.router.mode, settings.STORAGE_PATH)
        try:
            yield client
        finally:
            client.orchestrator.close()
