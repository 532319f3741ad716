"""Organization endpoints: membership listing, onboarding, switching, team management."""

from __future__ import annotations

import re
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response

from steadythere.context import AuthContext
from steadythere.models import OrgRole
from steadythere.permissions import Permission, assignable_roles
from steadythere_service.auth.backend import membership_from_model, profile_from_model
from steadythere_service.auth.guard import ProtectedRoute, require_permission
from steadythere_service.db.deps import OrganizationsRepoDep, ProfilesRepoDep, SessionDep
from steadythere_service.db.models import OrganizationMemberModel
from steadythere_service.db.repositories.organizations import OrganizationsRepo
from steadythere_service.rest.schemas import (
    CreateOrganizationRequest,
    CurrentOrganizationResponse,
    InviteMemberRequest,
    MembershipListResponse,
    MembershipSchema,
    RoleOptionSchema,
    TeamMemberListResponse,
    TeamMemberSchema,
    UpdateMemberRoleRequest,
    current_organization_response,
    membership_schema,
    role_options,
    team_member_schema,
)
from steadythere_service.settings import settings

logger = structlog.get_logger()

router = APIRouter(prefix="/organizations", tags=["organizations"])

MAX_SLUG_LENGTH = 50

signed_in = ProtectedRoute(require_org=False, redirect=False)
with_org = ProtectedRoute(require_org=True, redirect=False)


def generate_slug(name: str) -> str:
    """URL-safe slug: lowercase, runs of other characters become one dash."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH]


def set_org_cookie(response: Response, org_id: str) -> None:
    response.set_cookie(
        settings.org_cookie_name,
        org_id,
        max_age=60 * 60 * 24 * 365,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


@router.get("", response_model=MembershipListResponse)
async def list_organizations(ctx: AuthContext = Depends(signed_in)) -> MembershipListResponse:
    return MembershipListResponse(
        memberships=[membership_schema(m) for m in ctx.organizations],
        current_org_id=ctx.current_org.id if ctx.current_org else None,
    )


@router.post("", response_model=MembershipSchema, status_code=201)
async def create_organization(
    request: CreateOrganizationRequest,
    response: Response,
    repo: OrganizationsRepoDep,
    session: SessionDep,
    ctx: AuthContext = Depends(signed_in),
) -> MembershipSchema:
    """Onboarding: create an organization with the caller as its org admin."""
    slug = generate_slug(request.name)
    if not slug:
        raise HTTPException(status_code=422, detail="Organization name must contain letters or digits")
    if await repo.get_org_by_slug(slug):
        raise HTTPException(status_code=409, detail="Organization slug already taken")

    org = await repo.create_org(name=request.name, slug=slug, timezone=request.timezone)
    member = await repo.add_member(
        org_id=org.id, user_id=UUID(ctx.user.id), role=OrgRole.ORG_ADMIN.value
    )
    await session.commit()
    logger.info("organization_created", org_id=str(org.id), slug=slug, user_id=ctx.user.id)

    await ctx.refresh_profile()
    ctx.switch_organization(str(org.id))
    set_org_cookie(response, str(org.id))
    return membership_schema(membership_from_model(member))


@router.get("/current", response_model=CurrentOrganizationResponse)
async def current_organization(ctx: AuthContext = Depends(with_org)) -> CurrentOrganizationResponse:
    return current_organization_response(ctx.state)


@router.post("/{org_id}/switch", response_model=CurrentOrganizationResponse)
async def switch_organization(
    org_id: str,
    response: Response,
    ctx: AuthContext = Depends(with_org),
) -> CurrentOrganizationResponse:
    if not ctx.switch_organization(org_id):
        raise HTTPException(status_code=404, detail="Not a member of this organization")
    set_org_cookie(response, org_id)
    return current_organization_response(ctx.state)


# ---------------------------------------------------------------------------
# Team management (current organization)
# ---------------------------------------------------------------------------


def _member_schema(row: OrganizationMemberModel) -> TeamMemberSchema:
    profile = profile_from_model(row.profile) if row.profile is not None else None
    return team_member_schema(membership_from_model(row), profile)


def _ensure_assignable(caller_role: OrgRole, *roles: OrgRole) -> None:
    grantable = assignable_roles(caller_role)
    denied = [r.value for r in roles if r not in grantable]
    if denied:
        raise HTTPException(
            status_code=403, detail=f"Role '{caller_role.value}' cannot assign: {denied}"
        )


async def _other_member(
    repo: OrganizationsRepo, ctx: AuthContext, member_id: UUID
) -> OrganizationMemberModel:
    """A member of the current organization other than the caller."""
    row = await repo.get_member(UUID(ctx.current_org.id), member_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Member not found")
    if str(row.user_id) == ctx.user.id:
        raise HTTPException(status_code=403, detail="Cannot change your own membership")
    return row


@router.get("/current/roles", response_model=list[RoleOptionSchema])
async def list_roles(ctx: AuthContext = Depends(with_org)) -> list[RoleOptionSchema]:
    return role_options(ctx.current_org_member.role)


@router.get("/current/members", response_model=TeamMemberListResponse)
async def list_members(
    repo: OrganizationsRepoDep,
    ctx: AuthContext = require_permission(Permission.TEAM_VIEW),
) -> TeamMemberListResponse:
    rows = await repo.list_members(UUID(ctx.current_org.id))
    return TeamMemberListResponse(members=[_member_schema(row) for row in rows])


@router.post("/current/members", response_model=TeamMemberSchema, status_code=201)
async def add_team_member(
    request: InviteMemberRequest,
    repo: OrganizationsRepoDep,
    profiles_repo: ProfilesRepoDep,
    session: SessionDep,
    ctx: AuthContext = require_permission(Permission.TEAM_INVITE),
) -> TeamMemberSchema:
    """Add an existing user to the current organization."""
    _ensure_assignable(ctx.current_org_member.role, request.role)
    profile = await profiles_repo.get_profile_by_email(request.email)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found. They need to sign up first.")
    org_id = UUID(ctx.current_org.id)
    if await repo.get_membership(org_id, profile.id):
        raise HTTPException(status_code=409, detail="User is already a member of this organization")

    row = await repo.add_member(org_id=org_id, user_id=profile.id, role=request.role.value)
    await session.commit()
    logger.info(
        "member_added", org_id=ctx.current_org.id, user_id=str(profile.id), role=request.role.value
    )
    return _member_schema(row)


@router.patch("/current/members/{member_id}", response_model=TeamMemberSchema)
async def update_member_role(
    member_id: UUID,
    request: UpdateMemberRoleRequest,
    repo: OrganizationsRepoDep,
    session: SessionDep,
    ctx: AuthContext = require_permission(Permission.TEAM_CHANGE_ROLES),
) -> TeamMemberSchema:
    row = await _other_member(repo, ctx, member_id)
    _ensure_assignable(ctx.current_org_member.role, OrgRole(row.role), request.role)

    row = await repo.update_member_role(row, request.role.value)
    await session.commit()
    logger.info(
        "member_role_changed", org_id=ctx.current_org.id, member_id=str(member_id), role=row.role
    )
    return _member_schema(row)


@router.delete("/current/members/{member_id}", status_code=204)
async def remove_member(
    member_id: UUID,
    repo: OrganizationsRepoDep,
    session: SessionDep,
    ctx: AuthContext = require_permission(Permission.TEAM_REMOVE),
) -> Response:
    row = await _other_member(repo, ctx, member_id)
    _ensure_assignable(ctx.current_org_member.role, OrgRole(row.role))

    await repo.remove_member(row)
    await session.commit()
    logger.info("member_removed", org_id=ctx.current_org.id, member_id=str(member_id))
    return Response(status_code=204)
