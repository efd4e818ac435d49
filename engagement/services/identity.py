"""
Identity providers: who is acting, if anyone.

current_user() returns a user id or None. require_user() raises AuthRequired, which
the HTTP layer turns into a 401 carrying the login URL (the UI redirects there).
"""

import asyncio
import logging
from typing import Mapping, Optional, Protocol

from firebase_admin import auth as firebase_auth

from ..errors import AuthRequired

logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-user-id"


class IdentityProvider(Protocol):
    """Protocol for resolving the acting user."""

    login_url: str

    async def current_user(self) -> Optional[str]:
        """Return the authenticated user id, or None for anonymous."""
        ...

    async def require_user(self) -> str:
        """Return the authenticated user id or raise AuthRequired."""
        ...


class _BaseIdentity:
    login_url: str = "/auth/login"

    async def current_user(self) -> Optional[str]:
        raise NotImplementedError

    async def require_user(self) -> str:
        user_id = await self.current_user()
        if not user_id:
            raise AuthRequired(self.login_url)
        return user_id


class StaticIdentityProvider(_BaseIdentity):
    """Fixed identity. None means anonymous."""

    def __init__(self, user_id: Optional[str] = None, login_url: str = "/auth/login"):
        self.user_id = user_id.strip() if user_id and user_id.strip() else None
        self.login_url = login_url

    async def current_user(self) -> Optional[str]:
        return self.user_id


class HeaderIdentityProvider(_BaseIdentity):
    """
    Trusts the X-User-Id request header. Development only: anyone can claim any id.
    """

    def __init__(self, headers: Mapping[str, str], login_url: str = "/auth/login"):
        self._headers = headers
        self.login_url = login_url

    async def current_user(self) -> Optional[str]:
        value = self._headers.get(USER_ID_HEADER) or ""
        return value.strip() or None


class FirebaseIdentityProvider(_BaseIdentity):
    """
    Verifies a Firebase ID token from 'Authorization: Bearer <token>'.
    An invalid or expired token is treated as anonymous.
    """

    def __init__(self, headers: Mapping[str, str], login_url: str = "/auth/login"):
        self._headers = headers
        self.login_url = login_url
        self._resolved = False
        self._user_id: Optional[str] = None

    def _bearer_token(self) -> Optional[str]:
        value = self._headers.get("authorization") or ""
        scheme, _, token = value.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()

    async def current_user(self) -> Optional[str]:
        if self._resolved:
            return self._user_id
        token = self._bearer_token()
        if token:
            try:
                # verify_id_token may fetch signing keys over the network
                claims = await asyncio.to_thread(firebase_auth.verify_id_token, token)
                self._user_id = claims.get("uid") or None
            except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError) as e:
                logger.info("[identity] rejected ID token: %s", e)
                self._user_id = None
        self._resolved = True
        return self._user_id
