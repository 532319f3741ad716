"""FastAPI auth dependencies.

Each request gets its own AuthContext, seeded from the request's token and
organization cookie the same way a browser client is seeded from its
persisted slot.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from steadythere.config import AuthConfig
from steadythere.context import AuthContext
from steadythere.session.store import ProviderSessionStore
from steadythere.storage.memory import InMemorySlot
from steadythere_service.auth.backend import DatabaseAuthBackend, DatabaseMembershipSource
from steadythere_service.db.deps import (
    AuthRepoDep,
    OrganizationsRepoDep,
    ProfilesRepoDep,
    SessionDep,
)
from steadythere_service.settings import settings

logger = structlog.get_logger()


def auth_config() -> AuthConfig:
    return AuthConfig(
        selection_key=settings.org_cookie_name,
        token_key=settings.access_cookie_name,
        login_path=settings.login_path,
        onboarding_path=settings.onboarding_path,
        fetch_timeout_seconds=settings.membership_fetch_timeout_seconds,
    )


def request_token(request: Request) -> str | None:
    """Access token from ``Authorization: Bearer`` or, failing that, the cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.removeprefix("Bearer ").strip() or None
    return request.cookies.get(settings.access_cookie_name) or None


def get_auth_backend(auth_repo: AuthRepoDep, profiles_repo: ProfilesRepoDep) -> DatabaseAuthBackend:
    return DatabaseAuthBackend(auth_repo, profiles_repo)


AuthBackendDep = Annotated[DatabaseAuthBackend, Depends(get_auth_backend)]


def get_membership_source(
    organizations_repo: OrganizationsRepoDep, profiles_repo: ProfilesRepoDep
) -> DatabaseMembershipSource:
    return DatabaseMembershipSource(organizations_repo, profiles_repo)


MembershipSourceDep = Annotated[DatabaseMembershipSource, Depends(get_membership_source)]


def get_session_store(backend: AuthBackendDep) -> ProviderSessionStore:
    """A fresh store for credential exchanges (sign-in / sign-up) with nothing restored."""
    return ProviderSessionStore(backend, InMemorySlot(), token_key=settings.access_cookie_name)


SessionStoreDep = Annotated[ProviderSessionStore, Depends(get_session_store)]


async def _rollback_if_interrupted(
    source: DatabaseMembershipSource, session: AsyncSession, request: Request
) -> None:
    if not source.interrupted:
        return
    source.interrupted = False
    logger.warning("membership_fetch_interrupted", path=request.url.path)
    await session.rollback()


async def get_auth_context(
    request: Request,
    backend: AuthBackendDep,
    source: MembershipSourceDep,
    session: SessionDep,
) -> AsyncIterator[AuthContext]:
    """Resolve the caller's session, profile and memberships for this request.

    Waits up to ``auth_ready_timeout_seconds`` for the context to become
    ready. A context that is still loading after that is handed over as is;
    the route guard turns it into a retryable response. A fetch cancelled
    on the request's database session leaves that session rolled back.
    """
    slot = InMemorySlot(
        {
            settings.access_cookie_name: request_token(request),
            settings.org_cookie_name: request.cookies.get(settings.org_cookie_name),
        }
    )
    ctx = AuthContext.create(backend, source, slot, auth_config())
    await ctx.start()
    try:
        try:
            await ctx.wait_until_ready(timeout=settings.auth_ready_timeout_seconds)
        except TimeoutError:
            logger.warning(
                "auth_context_not_ready",
                path=request.url.path,
                timeout=settings.auth_ready_timeout_seconds,
            )
        await _rollback_if_interrupted(source, session, request)
        yield ctx
    finally:
        await ctx.dispose()
        await _rollback_if_interrupted(source, session, request)


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]
