"""In-memory auth backend for testing and local development."""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from steadythere.models import Session, User
from steadythere.session.base import AuthError


@dataclass
class _Account:
    user: User
    password: str
    name: str | None = None


class InMemoryAuthBackend:
    """Simple in-memory auth provider. Passwords are kept in plain text."""

    def __init__(self, session_ttl: timedelta = timedelta(hours=1)) -> None:
        self._accounts: dict[str, _Account] = {}
        self._access: dict[str, Session] = {}
        self._refresh: dict[str, str] = {}  # refresh token -> user id
        self._session_ttl = session_ttl
        self.sign_out_calls = 0

    def add_user(self, email: str, password: str, name: str | None = None, user_id: str | None = None) -> User:
        user = User(id=user_id or str(uuid.uuid4()), email=email)
        self._accounts[email.lower()] = _Account(user=user, password=password, name=name)
        return user

    def _issue(self, user: User) -> Session:
        session = Session(
            access_token=secrets.token_urlsafe(16),
            refresh_token=secrets.token_urlsafe(16),
            expires_at=datetime.now(UTC) + self._session_ttl,
            user=user,
        )
        self._access[session.access_token] = session
        self._refresh[session.refresh_token] = user.id
        return session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        account = self._accounts.get(email.lower())
        if account is None or account.password != password:
            raise AuthError("Invalid login credentials", "invalid_credentials", 401)
        return self._issue(account.user)

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        if email.lower() in self._accounts:
            raise AuthError("User already registered", "user_already_exists", 409)
        user = self.add_user(email, password, name)
        return self._issue(user)

    async def sign_out(self, session: Session) -> None:
        self.sign_out_calls += 1
        self._access.pop(session.access_token, None)
        self._refresh.pop(session.refresh_token, None)

    async def get_session(self, access_token: str) -> Session | None:
        return self._access.get(access_token)

    async def refresh_session(self, refresh_token: str) -> Session:
        user_id = self._refresh.pop(refresh_token, None)
        account = next((a for a in self._accounts.values() if a.user.id == user_id), None)
        if account is None:
            raise AuthError("Invalid refresh token", "invalid_refresh_token", 401)
        return self._issue(account.user)
