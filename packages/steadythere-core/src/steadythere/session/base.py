"""Session store contracts: change events, typed auth failures, backend protocol."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from steadythere.models import Session


class AuthChangeEvent(str, Enum):
    """Kinds of session transitions delivered to subscribers."""
    INITIAL_SESSION = "INITIAL_SESSION"  # replay of the state at subscribe time
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthError(Exception):
    """Credential or provider failure reported by an AuthBackend."""

    def __init__(self, message: str, code: str = "auth_error", status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a sign-in / sign-up / refresh. Exactly one side is meaningful."""

    session: Session | None = None
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


AuthChangeHandler = Callable[[AuthChangeEvent, Session | None], Awaitable[None] | None]


class Subscription:
    """Disposable handle returned by ``subscribe``."""

    def __init__(self, on_close: Callable[[], None]) -> None:
        self._on_close: Callable[[], None] | None = on_close

    @property
    def closed(self) -> bool:
        return self._on_close is None

    def unsubscribe(self) -> None:
        if self._on_close is None:
            return
        on_close, self._on_close = self._on_close, None
        on_close()


class AuthBackend(Protocol):
    """The authentication provider a SessionStore wraps.

    Credential failures are raised as AuthError.
    """

    async def sign_in_with_password(self, email: str, password: str) -> Session: ...

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        """Create an account. Returns None when the account needs confirmation first."""
        ...

    async def sign_out(self, session: Session) -> None: ...

    async def get_session(self, access_token: str) -> Session | None:
        """Resolve a persisted access token, or None if it is no longer valid."""
        ...

    async def refresh_session(self, refresh_token: str) -> Session: ...


class SessionStore(Protocol):
    """Owner of the authentication lifecycle."""

    async def get_current_session(self) -> Session | None: ...
    def subscribe(self, handler: AuthChangeHandler) -> Subscription: ...
    async def sign_in(self, email: str, password: str) -> AuthResult: ...
    async def sign_up(self, email: str, password: str, name: str | None = None) -> AuthResult: ...
    async def sign_out(self) -> None: ...
