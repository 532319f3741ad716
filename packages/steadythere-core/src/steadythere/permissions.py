"""Role hierarchy and role-to-permission mapping."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from steadythere.models import OrgRole


class Permission(str, Enum):
    ORG_CREATE = "org:create"
    ORG_EDIT = "org:edit"
    ORG_ARCHIVE = "org:archive"
    ORG_VIEW = "org:view"
    ORG_MANAGE_MEMBERS = "org:manage_members"
    EVENT_CREATE = "event:create"
    EVENT_EDIT = "event:edit"
    EVENT_DELETE = "event:delete"
    EVENT_VIEW = "event:view"
    EVENT_MANAGE_MILESTONES = "event:manage_milestones"
    MILESTONE_CREATE = "milestone:create"
    MILESTONE_EDIT = "milestone:edit"
    MILESTONE_DELETE = "milestone:delete"
    MILESTONE_VIEW = "milestone:view"
    MILESTONE_EDIT_OWN = "milestone:edit_own"
    MILESTONE_REPORT = "milestone:report"
    TEMPLATE_CREATE = "template:create"
    TEMPLATE_EDIT = "template:edit"
    TEMPLATE_DELETE = "template:delete"
    TEMPLATE_VIEW = "template:view"
    TEAM_VIEW = "team:view"
    TEAM_INVITE = "team:invite"
    TEAM_REMOVE = "team:remove"
    TEAM_CHANGE_ROLES = "team:change_roles"


@dataclass(frozen=True)
class RoleInfo:
    label: str
    description: str
    sort_order: int


ROLE_INFO: dict[OrgRole, RoleInfo] = {
    OrgRole.ORG_ADMIN: RoleInfo(
        "Org Admin",
        "Full administrative access. Can create, edit, and archive the organization.",
        1,
    ),
    OrgRole.EVENT_MANAGER: RoleInfo(
        "Event Manager", "Can create new events and manage all event-related activities.", 2
    ),
    OrgRole.VENDOR: RoleInfo(
        "Vendor",
        "Can view activities, report on actions, and edit their assigned activities.",
        3,
    ),
    OrgRole.PARTNER: RoleInfo(
        "Partner",
        "Can view activities, report on actions, and edit their assigned activities.",
        4,
    ),
    OrgRole.VOLUNTEER: RoleInfo(
        "Volunteer",
        "Can view activities, report on actions, and edit their assigned activities.",
        5,
    ),
}

_CONTRIBUTOR = frozenset({
    Permission.ORG_VIEW,
    Permission.EVENT_VIEW,
    Permission.MILESTONE_VIEW,
    Permission.MILESTONE_EDIT_OWN,
    Permission.MILESTONE_REPORT,
    Permission.TEMPLATE_VIEW,
    Permission.TEAM_VIEW,
})

_EVENT_MANAGER = _CONTRIBUTOR | {
    Permission.EVENT_CREATE,
    Permission.EVENT_EDIT,
    Permission.EVENT_DELETE,
    Permission.EVENT_MANAGE_MILESTONES,
    Permission.MILESTONE_CREATE,
    Permission.MILESTONE_EDIT,
    Permission.MILESTONE_DELETE,
    Permission.TEMPLATE_CREATE,
    Permission.TEMPLATE_EDIT,
    Permission.TEMPLATE_DELETE,
    Permission.TEAM_INVITE,
}

ROLE_PERMISSIONS: dict[OrgRole, frozenset[Permission]] = {
    OrgRole.ORG_ADMIN: frozenset(Permission),
    OrgRole.EVENT_MANAGER: frozenset(_EVENT_MANAGER),
    OrgRole.VENDOR: _CONTRIBUTOR,
    OrgRole.PARTNER: _CONTRIBUTOR,
    OrgRole.VOLUNTEER: _CONTRIBUTOR,
}


def has_permission(role: OrgRole | None, permission: Permission) -> bool:
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def has_any_permission(role: OrgRole | None, permissions: Iterable[Permission]) -> bool:
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role: OrgRole | None, permissions: Iterable[Permission]) -> bool:
    if role is None:
        return False
    return all(has_permission(role, p) for p in permissions)


def permissions_for_role(role: OrgRole) -> list[Permission]:
    """Permissions of ``role`` in declaration order."""
    granted = ROLE_PERMISSIONS.get(role, frozenset())
    return [p for p in Permission if p in granted]


def can_manage_team(role: OrgRole | None) -> bool:
    return has_any_permission(
        role, [Permission.TEAM_INVITE, Permission.TEAM_REMOVE, Permission.TEAM_CHANGE_ROLES]
    )


def can_manage_org(role: OrgRole | None) -> bool:
    return has_any_permission(role, [Permission.ORG_EDIT, Permission.ORG_ARCHIVE])


def can_manage_events(role: OrgRole | None) -> bool:
    return has_any_permission(
        role, [Permission.EVENT_CREATE, Permission.EVENT_EDIT, Permission.EVENT_DELETE]
    )


def is_admin_role(role: OrgRole | None) -> bool:
    return role in (OrgRole.ORG_ADMIN, OrgRole.EVENT_MANAGER)


def assignable_roles(role: OrgRole) -> list[OrgRole]:
    """Roles a member holding ``role`` may grant to others."""
    if role is OrgRole.ORG_ADMIN:
        return all_roles()
    if role is OrgRole.EVENT_MANAGER:
        return [OrgRole.VENDOR, OrgRole.PARTNER, OrgRole.VOLUNTEER]
    return []


def all_roles() -> list[OrgRole]:
    return sorted(ROLE_INFO, key=lambda r: ROLE_INFO[r].sort_order)
