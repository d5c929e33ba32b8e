"""Anonymous participant identity shared by the client facade and the server."""

from shared.auth.identity import AnonymousIdentity, IdentityProvider
from shared.auth.models import AnonymousSession
from shared.auth.session_store import AnonymousSessionStore

__all__ = [
    "AnonymousIdentity",
    "AnonymousSession",
    "AnonymousSessionStore",
    "IdentityProvider",
]
