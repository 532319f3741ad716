"""Repository for organizations and their members."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from steadythere_service.db.models import OrganizationMemberModel, OrganizationModel


class OrganizationsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_org(
        self, name: str, slug: str, timezone: str = "America/New_York"
    ) -> OrganizationModel:
        org = OrganizationModel(name=name, slug=slug, timezone=timezone)
        self._session.add(org)
        await self._session.flush()
        await self._session.refresh(org)
        return org

    async def get_org_by_slug(self, slug: str) -> OrganizationModel | None:
        result = await self._session.execute(
            select(OrganizationModel).where(OrganizationModel.slug == slug)
        )
        return result.scalars().first()

    async def add_member(
        self, org_id: UUID, user_id: UUID, role: str = "volunteer"
    ) -> OrganizationMemberModel:
        """Add a user to an organization. The returned row has its organization and profile loaded."""
        member = OrganizationMemberModel(organization_id=org_id, user_id=user_id, role=role)
        self._session.add(member)
        await self._session.flush()
        await self._session.refresh(member, attribute_names=["organization", "profile"])
        return member

    async def get_membership(self, org_id: UUID, user_id: UUID) -> OrganizationMemberModel | None:
        result = await self._session.execute(
            select(OrganizationMemberModel)
            .options(selectinload(OrganizationMemberModel.organization))
            .where(
                OrganizationMemberModel.organization_id == org_id,
                OrganizationMemberModel.user_id == user_id,
            )
        )
        return result.scalars().first()

    async def list_memberships(self, user_id: UUID) -> list[OrganizationMemberModel]:
        """All memberships of a user with the organization eagerly loaded, oldest first."""
        result = await self._session.execute(
            select(OrganizationMemberModel)
            .options(selectinload(OrganizationMemberModel.organization))
            .where(OrganizationMemberModel.user_id == user_id)
            .order_by(OrganizationMemberModel.created_at)
        )
        return list(result.scalars().all())

    async def list_members(self, org_id: UUID) -> list[OrganizationMemberModel]:
        """Members of one organization with their profiles, oldest first."""
        result = await self._session.execute(
            select(OrganizationMemberModel)
            .options(
                selectinload(OrganizationMemberModel.organization),
                selectinload(OrganizationMemberModel.profile),
            )
            .where(OrganizationMemberModel.organization_id == org_id)
            .order_by(OrganizationMemberModel.created_at)
        )
        return list(result.scalars().all())

    async def get_member(self, org_id: UUID, member_id: UUID) -> OrganizationMemberModel | None:
        """A membership row by id, only if it belongs to ``org_id``."""
        result = await self._session.execute(
            select(OrganizationMemberModel)
            .options(
                selectinload(OrganizationMemberModel.organization),
                selectinload(OrganizationMemberModel.profile),
            )
            .where(
                OrganizationMemberModel.id == member_id,
                OrganizationMemberModel.organization_id == org_id,
            )
        )
        return result.scalars().first()

    async def update_member_role(
        self, member: OrganizationMemberModel, role: str
    ) -> OrganizationMemberModel:
        member.role = role
        await self._session.flush()
        return member

    async def remove_member(self, member: OrganizationMemberModel) -> None:
        await self._session.delete(member)
        await self._session.flush()
