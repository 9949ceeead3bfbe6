"""
User Service

Keeps the profile document at users/{uid} in step with sign-ins.
"""

from datetime import datetime
from typing import Optional

from saveplay.domain.base import DomainService
from saveplay.models.finance import UserIdentity, UserProfile
from saveplay.services.storage.paths import user_path


class UserService(DomainService):

    async def ensure_profile(self, identity: Optional[UserIdentity] = None) -> UserProfile:
        """
        Create the profile on first sign-in, otherwise refresh last_login.

        Args:
            identity: Who signed in (defaults to the current user)
        """
        identity = identity or self._auth.require_user()
        path = user_path(identity.uid)
        now = datetime.now()

        document = await self._store.get(path)
        if document is None:
            profile = UserProfile(
                id=identity.uid,
                email=identity.email,
                display_name=self.display_name_for(identity),
                created_at=now,
                last_login=now,
            )
            await self._store.set(path, profile.to_document())
        else:
            profile = UserProfile.from_document(document).model_copy(update={"last_login": now})
            await self._store.update(path, {"last_login": now.isoformat()})

        if self._audit_logger:
            await self._audit_logger.log_user_signed_in(
                user_id=identity.uid,
                first_login=document is None,
            )
        return profile

    async def get_profile(self, uid: Optional[str] = None) -> Optional[UserProfile]:
        uid = uid or self._user_id()
        document = await self._store.get(user_path(uid))
        return UserProfile.from_document(document) if document else None

    @staticmethod
    def display_name_for(identity: UserIdentity) -> str:
        """Display name, else the e-mail's local part, else a placeholder."""
        if identity.display_name:
            return identity.display_name
        if identity.email:
            return identity.email.split("@")[0]
        return "Anonymous Player"
