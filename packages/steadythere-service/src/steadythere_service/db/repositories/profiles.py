"""Repository for user profiles."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from steadythere_service.db.models import ProfileModel


class ProfilesRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_profile(self, user_id: UUID) -> ProfileModel | None:
        return await self._session.get(ProfileModel, user_id)

    async def get_profile_by_email(self, email: str) -> ProfileModel | None:
        result = await self._session.execute(
            select(ProfileModel).where(func.lower(ProfileModel.email) == email.lower())
        )
        return result.scalars().first()

    async def create_profile(
        self,
        user_id: UUID,
        email: str,
        name: str | None = None,
        timezone: str | None = None,
    ) -> ProfileModel:
        """Create the profile for a new user. ``name`` defaults to the e-mail local part."""
        profile = ProfileModel(
            id=user_id,
            email=email,
            name=name or email.split("@", 1)[0],
            timezone=timezone,
        )
        self._session.add(profile)
        await self._session.flush()
        await self._session.refresh(profile)
        return profile

    async def update_profile(self, user_id: UUID, **fields) -> ProfileModel | None:
        profile = await self.get_profile(user_id)
        if profile is None:
            return None
        for key, value in fields.items():
            setattr(profile, key, value)
        await self._session.flush()
        await self._session.refresh(profile)
        return profile
