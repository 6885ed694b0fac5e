"""
Session provider passed explicitly to the stores, router and orchestrator.

Listeners registered with subscribe() are told about SIGNED_IN and
SIGNED_OUT; subscribe() returns the matching unsubscribe callable.
"""
import inspect
import logging

import httpx

from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Union

from pydantic import BaseModel

from client.errors import AuthRequired, NetworkError, ValidationError

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


class AuthSession(BaseModel):
    access_token: str
    user_id: str
    email: str
    expires_at: Optional[datetime] = None

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"}


Listener = Callable[[str, Optional[AuthSession]], Union[None, Awaitable[None]]]


class SessionProvider:
    """ Holds the current session and notifies subscribers when it changes """

    def __init__(self, http: httpx.AsyncClient, session: Optional[AuthSession] = None):
        self._http = http
        self._session = session
        self._listeners: List[Listener] = []

    @property
    def current(self) -> Optional[AuthSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def require(self) -> AuthSession:
        if self._session is None:
            raise AuthRequired()
        return self._session

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            result = listener(event, self._session)
            if inspect.isawaitable(result):
                await result

    async def restore(self, session: AuthSession) -> None:
        """ Adopt a previously issued token without a network round trip """
        self._session = session
        await self._notify(SIGNED_IN)

    async def sign_up(self, email: str, password: str) -> AuthSession:
        return await self._authenticate("/api/login/signup", email, password)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        return await self._authenticate("/api/login/", email, password)

    async def _authenticate(self, path: str, email: str, password: str) -> AuthSession:
        try:
            response = await self._http.post(path, json={"email": email, "password": password})
        except httpx.RequestError as e:
            raise NetworkError(f"Could not reach the server: {e}") from e

        if response.status_code == 401:
            raise AuthRequired("Invalid email or password.")
        if response.status_code in (409, 422):
            raise ValidationError(str(response.json().get("detail", "Invalid sign-in details")))
        if response.is_error:
            raise NetworkError(f"Sign-in failed with HTTP {response.status_code}")

        data = response.json()
        self._session = AuthSession(
            access_token=data["access_token"],
            user_id=data["user_id"],
            email=data["email"],
            expires_at=data.get("expires_at"),
        )
        logger.info("Signed in as user %s", self._session.user_id)
        await self._notify(SIGNED_IN)
        return self._session

    async def sign_out(self) -> None:
        session = self._session
        if session is None:
            return
        try:
            await self._http.post("/api/login/logout", headers=session.headers)
        except httpx.RequestError as e:
            # the local session is dropped regardless
            logger.warning("Token revocation failed: %s", e)
        self._session = None
        logger.info("Signed out user %s", session.user_id)
        await self._notify(SIGNED_OUT)
