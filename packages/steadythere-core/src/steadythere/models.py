"""Identity, profile and membership records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class OrgRole(str, Enum):
    """Roles a user can hold inside an organization."""
    ORG_ADMIN = "org_admin"
    EVENT_MANAGER = "event_manager"
    VENDOR = "vendor"
    PARTNER = "partner"
    VOLUNTEER = "volunteer"


@dataclass(frozen=True)
class User:
    id: str
    email: str


@dataclass(frozen=True)
class Session:
    """Credential bundle issued by the auth backend for one signed-in user."""

    access_token: str
    user: User
    refresh_token: str = ""
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires_at


@dataclass(frozen=True)
class Profile:
    id: str
    email: str
    name: str | None = None
    timezone: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class Organization:
    id: str
    name: str
    slug: str
    timezone: str = "America/New_York"


@dataclass(frozen=True)
class OrganizationMembership:
    """Join record between a user and an organization, with the nested org."""

    id: str
    organization_id: str
    user_id: str
    role: OrgRole
    organization: Organization | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
