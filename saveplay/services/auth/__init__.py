"""Authentication collaborator."""

from saveplay.services.auth.provider import AuthListener, AuthProvider, SessionAuthProvider

__all__ = ["AuthListener", "AuthProvider", "SessionAuthProvider"]
