"""Database-backed implementations of the steadythere auth and membership protocols."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
import structlog

from steadythere.models import (
    Organization,
    OrganizationMembership,
    OrgRole,
    Profile,
    Session,
    User,
)
from steadythere.session.base import AuthError
from steadythere_service.auth.jwt import (
    create_access_token,
    create_refresh_token,
    decode_token,
    token_subject,
)
from steadythere_service.auth.passwords import verify_password
from steadythere_service.db.repositories.auth import AuthRepo
from steadythere_service.db.repositories.organizations import OrganizationsRepo
from steadythere_service.db.repositories.profiles import ProfilesRepo
from steadythere_service.settings import settings

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# ORM -> domain mappers
# ---------------------------------------------------------------------------


def user_from_model(user) -> User:
    return User(id=str(user.id), email=user.email)


def profile_from_model(profile) -> Profile:
    return Profile(
        id=str(profile.id),
        email=profile.email,
        name=profile.name,
        timezone=profile.timezone,
        avatar_url=profile.avatar_url,
    )


def organization_from_model(org) -> Organization:
    return Organization(id=str(org.id), name=org.name, slug=org.slug, timezone=org.timezone)


def membership_from_model(member) -> OrganizationMembership:
    org = member.organization
    return OrganizationMembership(
        id=str(member.id),
        organization_id=str(member.organization_id),
        user_id=str(member.user_id),
        role=OrgRole(member.role),
        organization=organization_from_model(org) if org is not None else None,
        created_at=member.created_at or datetime.now(UTC),
    )


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Auth backend
# ---------------------------------------------------------------------------


class DatabaseAuthBackend:
    """AuthBackend over the users/profiles tables with JWT sessions.

    Repositories only flush; committing is left to the request handler.
    """

    def __init__(self, auth_repo: AuthRepo, profiles_repo: ProfilesRepo) -> None:
        self._auth_repo = auth_repo
        self._profiles_repo = profiles_repo

    def _issue(self, user: User) -> Session:
        user_id = UUID(user.id)
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
        return Session(
            access_token=create_access_token(user_id, user.email, expires_delta=expires_delta),
            refresh_token=create_refresh_token(user_id),
            expires_at=datetime.now(UTC) + expires_delta,
            user=user,
        )

    async def _ensure_profile(self, user_id: UUID, email: str, name: str | None = None) -> None:
        if await self._profiles_repo.get_profile(user_id) is None:
            await self._profiles_repo.create_profile(user_id, email, name=name)
            logger.info("profile_created", user_id=str(user_id))

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        row = await self._auth_repo.get_user_by_email(email)
        if row is None or not verify_password(password, row.password_hash):
            raise AuthError("Invalid login credentials", "invalid_credentials", 401)
        await self._ensure_profile(row.id, row.email)
        logger.info("signed_in", user_id=str(row.id))
        return self._issue(user_from_model(row))

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        if await self._auth_repo.get_user_by_email(email) is not None:
            raise AuthError("User already registered", "user_already_exists", 409)
        row = await self._auth_repo.create_user(email=email, password=password)
        await self._ensure_profile(row.id, row.email, name=name)
        logger.info("signed_up", user_id=str(row.id))
        return self._issue(user_from_model(row))

    async def sign_out(self, session: Session) -> None:
        # Tokens are stateless; the client forgets them.
        logger.info("signed_out", user_id=session.user.id)

    async def get_session(self, access_token: str) -> Session | None:
        try:
            payload = decode_token(access_token)
            user_id = token_subject(payload, "access")
        except jwt.PyJWTError as exc:
            logger.debug("access_token_rejected", error=str(exc))
            return None
        row = await self._auth_repo.get_user(user_id)
        if row is None:
            return None
        return Session(
            access_token=access_token,
            user=user_from_model(row),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC) if "exp" in payload else None,
        )

    async def refresh_session(self, refresh_token: str) -> Session:
        try:
            user_id = token_subject(decode_token(refresh_token), "refresh")
        except jwt.PyJWTError as exc:
            raise AuthError("Invalid refresh token", "invalid_refresh_token", 401) from exc
        row = await self._auth_repo.get_user(user_id)
        if row is None:
            raise AuthError("User not found", "user_not_found", 401)
        return self._issue(user_from_model(row))


# ---------------------------------------------------------------------------
# Membership source
# ---------------------------------------------------------------------------


class DatabaseMembershipSource:
    """MembershipSource over the profiles and organization_members tables.

    ``interrupted`` is set when a fetch is cancelled (a loader timeout or
    context disposal) while it holds the session. The statement may have
    been cut off mid-flight, so the owner of the session must roll it back
    before reusing it.
    """

    def __init__(self, organizations_repo: OrganizationsRepo, profiles_repo: ProfilesRepo) -> None:
        self._organizations_repo = organizations_repo
        self._profiles_repo = profiles_repo
        # One AsyncSession cannot run two statements at once.
        self._lock = asyncio.Lock()
        self.interrupted = False

    @contextlib.asynccontextmanager
    async def _statement(self) -> AsyncIterator[None]:
        async with self._lock:
            try:
                yield
            except asyncio.CancelledError:
                self.interrupted = True
                raise

    async def fetch_profile(self, user_id: str) -> Profile | None:
        uid = _parse_uuid(user_id)
        if uid is None:
            return None
        async with self._statement():
            row = await self._profiles_repo.get_profile(uid)
        return profile_from_model(row) if row is not None else None

    async def fetch_memberships(self, user_id: str) -> list[OrganizationMembership]:
        uid = _parse_uuid(user_id)
        if uid is None:
            return []
        async with self._statement():
            rows = await self._organizations_repo.list_memberships(uid)
        return [membership_from_model(row) for row in rows]
