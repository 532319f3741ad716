"""Session store: authentication lifecycle and change notifications."""

from __future__ import annotations

from steadythere.session.base import (
    AuthBackend,
    AuthChangeEvent,
    AuthError,
    AuthResult,
    SessionStore,
    Subscription,
)
from steadythere.session.memory import InMemoryAuthBackend
from steadythere.session.store import ProviderSessionStore

__all__ = [
    "AuthBackend",
    "AuthChangeEvent",
    "AuthError",
    "AuthResult",
    "InMemoryAuthBackend",
    "ProviderSessionStore",
    "SessionStore",
    "Subscription",
]
