"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from steadythere.context import AuthState
from steadythere.models import Organization, OrganizationMembership, OrgRole, Profile, User
from steadythere.permissions import (
    ROLE_INFO,
    all_roles,
    assignable_roles,
    can_manage_events,
    can_manage_org,
    can_manage_team,
    is_admin_role,
    permissions_for_role,
)


class UserSchema(BaseModel):
    id: str
    email: str


class ProfileSchema(BaseModel):
    id: str
    email: str
    name: str | None = None
    timezone: str | None = None
    avatar_url: str | None = None


class OrganizationSchema(BaseModel):
    id: str
    name: str
    slug: str
    timezone: str


class MembershipSchema(BaseModel):
    id: str
    organization_id: str
    role: str
    organization: OrganizationSchema | None = None
    created_at: datetime | None = None


class MembershipListResponse(BaseModel):
    memberships: list[MembershipSchema]
    current_org_id: str | None = None


class CapabilitiesSchema(BaseModel):
    is_admin: bool = False
    can_manage_org: bool = False
    can_manage_events: bool = False
    can_manage_team: bool = False


class CurrentOrganizationResponse(BaseModel):
    organization: OrganizationSchema
    membership: MembershipSchema
    permissions: list[str] = Field(default_factory=list)
    capabilities: CapabilitiesSchema = Field(default_factory=CapabilitiesSchema)


class TeamMemberSchema(BaseModel):
    id: str
    user_id: str
    organization_id: str
    role: str
    created_at: datetime | None = None
    profile: ProfileSchema | None = None


class TeamMemberListResponse(BaseModel):
    members: list[TeamMemberSchema]


class InviteMemberRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    role: OrgRole = OrgRole.VOLUNTEER


class UpdateMemberRoleRequest(BaseModel):
    role: OrgRole


class RoleOptionSchema(BaseModel):
    role: str
    label: str
    description: str
    assignable: bool


class MeResponse(BaseModel):
    user: UserSchema
    profile: ProfileSchema | None = None
    memberships: list[MembershipSchema] = Field(default_factory=list)
    current_organization: OrganizationSchema | None = None
    current_membership: MembershipSchema | None = None
    permissions: list[str] = Field(default_factory=list)


class CreateOrganizationRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    timezone: str = "America/New_York"

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Organization name must not be blank")
        return v


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    timezone: str | None = None
    avatar_url: str | None = None


class ShellView(BaseModel):
    """What a page route would render."""

    view: str
    user: UserSchema | None = None
    organization: OrganizationSchema | None = None
    role: str | None = None
    next: str | None = None


# ---------------------------------------------------------------------------
# Domain -> schema
# ---------------------------------------------------------------------------


def user_schema(user: User) -> UserSchema:
    return UserSchema(id=user.id, email=user.email)


def profile_schema(profile: Profile) -> ProfileSchema:
    return ProfileSchema(
        id=profile.id,
        email=profile.email,
        name=profile.name,
        timezone=profile.timezone,
        avatar_url=profile.avatar_url,
    )


def organization_schema(org: Organization) -> OrganizationSchema:
    return OrganizationSchema(id=org.id, name=org.name, slug=org.slug, timezone=org.timezone)


def membership_schema(member: OrganizationMembership) -> MembershipSchema:
    return MembershipSchema(
        id=member.id,
        organization_id=member.organization_id,
        role=member.role.value,
        organization=organization_schema(member.organization) if member.organization else None,
        created_at=member.created_at,
    )


def current_organization_response(state: AuthState) -> CurrentOrganizationResponse:
    member = state.current_org_member
    return CurrentOrganizationResponse(
        organization=organization_schema(member.organization),
        membership=membership_schema(member),
        permissions=[p.value for p in permissions_for_role(member.role)],
        capabilities=CapabilitiesSchema(
            is_admin=is_admin_role(member.role),
            can_manage_org=can_manage_org(member.role),
            can_manage_events=can_manage_events(member.role),
            can_manage_team=can_manage_team(member.role),
        ),
    )


def me_response(state: AuthState) -> MeResponse:
    member = state.current_org_member
    return MeResponse(
        user=user_schema(state.user),
        profile=profile_schema(state.profile) if state.profile else None,
        memberships=[membership_schema(m) for m in state.organizations],
        current_organization=organization_schema(state.current_org) if state.current_org else None,
        current_membership=membership_schema(member) if member else None,
        permissions=[p.value for p in permissions_for_role(member.role)] if member else [],
    )


def team_member_schema(member: OrganizationMembership, profile: Profile | None) -> TeamMemberSchema:
    return TeamMemberSchema(
        id=member.id,
        user_id=member.user_id,
        organization_id=member.organization_id,
        role=member.role.value,
        created_at=member.created_at,
        profile=profile_schema(profile) if profile else None,
    )


def role_options(role: OrgRole) -> list[RoleOptionSchema]:
    """Every role in display order, flagged with whether ``role`` may grant it."""
    grantable = set(assignable_roles(role))
    return [
        RoleOptionSchema(
            role=r.value,
            label=ROLE_INFO[r].label,
            description=ROLE_INFO[r].description,
            assignable=r in grantable,
        )
        for r in all_roles()
    ]
