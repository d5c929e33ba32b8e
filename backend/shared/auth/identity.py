"""Anonymous, session-scoped participant identities."""

from typing import Protocol
from uuid import uuid4

import structlog

logger = structlog.get_logger()


class IdentityProvider(Protocol):
    """Source of the current participant's opaque id."""

    def current_identity(self) -> str | None: ...


class AnonymousIdentity:
    """Issues one opaque id per sign-in; the id is stable until sign-out."""

    def __init__(self, identity: str | None = None) -> None:
        self._identity = identity

    def sign_in(self) -> str:
        if self._identity is None:
            self._identity = str(uuid4())
            logger.info("signed in anonymously", identity=self._identity)
        return self._identity

    def sign_out(self) -> None:
        self._identity = None

    def current_identity(self) -> str | None:
        return self._identity
