"""FastAPI dependency injection for database sessions and repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from steadythere_service.db.engine import get_session_factory
from steadythere_service.db.repositories.auth import AuthRepo
from steadythere_service.db.repositories.organizations import OrganizationsRepo
from steadythere_service.db.repositories.profiles import ProfilesRepo


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_auth_repo(session: SessionDep) -> AuthRepo:
    return AuthRepo(session)


def get_profiles_repo(session: SessionDep) -> ProfilesRepo:
    return ProfilesRepo(session)


def get_organizations_repo(session: SessionDep) -> OrganizationsRepo:
    return OrganizationsRepo(session)


AuthRepoDep = Annotated[AuthRepo, Depends(get_auth_repo)]
ProfilesRepoDep = Annotated[ProfilesRepo, Depends(get_profiles_repo)]
OrganizationsRepoDep = Annotated[OrganizationsRepo, Depends(get_organizations_repo)]
