"""Anonymous participant session model."""

from dataclasses import dataclass


@dataclass
class AnonymousSession:
    """Server-side record binding a bearer token to an anonymous identity."""

    token: str  # secret presented by the client
    identity: str  # opaque participant id written into room records
    created_at: float  # time.time()
    expires_at: float
