"""Repository for credential records."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from steadythere_service.auth.passwords import hash_password
from steadythere_service.db.models import UserModel


class AuthRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_user(self, email: str, password: str) -> UserModel:
        """Create a new user with a bcrypt-hashed password."""
        user = UserModel(email=email.lower(), password_hash=hash_password(password))
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def get_user_by_email(self, email: str) -> UserModel | None:
        result = await self._session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        return result.scalars().first()

    async def get_user(self, user_id: UUID) -> UserModel | None:
        return await self._session.get(UserModel, user_id)
