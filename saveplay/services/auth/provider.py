"""
Authentication Collaborator

The domain services never authenticate anyone themselves. They ask an
AuthProvider who is signed in and scope every read and write to that
user's namespace.

SessionAuthProvider keeps the identity for the lifetime of the process.
A real identity provider plugs in by implementing AuthProvider.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

import structlog

from saveplay.errors import AuthError
from saveplay.models.finance import UserIdentity


logger = structlog.get_logger()

AuthListener = Callable[[Optional[UserIdentity]], Union[None, Awaitable[None]]]


class AuthProvider(ABC):
    """Source of the current user identity."""

    @abstractmethod
    def current_user(self) -> Optional[UserIdentity]:
        """The signed-in user, or None."""
        pass

    @abstractmethod
    async def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        """
        Register a listener for sign-in / sign-out.

        The listener is called immediately with the current user and then
        on every change. Returns a callable that removes it.
        """
        pass

    def require_user(self) -> UserIdentity:
        """
        Return the signed-in user.

        Raises:
            AuthError: If nobody is signed in
        """
        user = self.current_user()
        if user is None:
            raise AuthError()
        return user


class SessionAuthProvider(AuthProvider):
    """In-process session: sign_in / sign_out switch the current identity."""

    def __init__(self, user: Optional[UserIdentity] = None):
        self._user = user
        self._listeners: list[AuthListener] = []

    def current_user(self) -> Optional[UserIdentity]:
        return self._user

    async def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)
        await self._notify(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def sign_in(self, identity: UserIdentity) -> UserIdentity:
        self._user = identity
        logger.info("user_signed_in", user_id=identity.uid)
        await self._notify_all()
        return identity

    async def sign_out(self) -> None:
        if self._user is not None:
            logger.info("user_signed_out", user_id=self._user.uid)
        self._user = None
        await self._notify_all()

    async def _notify_all(self) -> None:
        for callback in list(self._listeners):
            await self._notify(callback)

    async def _notify(self, callback: AuthListener) -> None:
        result = callback(self._user)
        if inspect.isawaitable(result):
            await result
