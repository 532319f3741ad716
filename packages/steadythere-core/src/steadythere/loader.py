"""Profile and membership loading for a signed-in user."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

import structlog

from steadythere.models import OrganizationMembership, Profile

logger = structlog.get_logger()

T = TypeVar("T")


class MembershipSource(Protocol):
    """Data store access for profiles and memberships (with nested organizations)."""

    async def fetch_profile(self, user_id: str) -> Profile | None: ...
    async def fetch_memberships(self, user_id: str) -> list[OrganizationMembership]: ...


@dataclass(frozen=True)
class LoadResult:
    profile: Profile | None = None
    memberships: list[OrganizationMembership] = field(default_factory=list)


class ProfileMembershipLoader:
    """Fetches a user's profile and memberships concurrently.

    Never raises for data errors: a failed or timed-out fetch is logged and
    reported as ``None`` / ``[]`` so callers can still finish their load.
    """

    def __init__(self, source: MembershipSource, timeout: float | None = None) -> None:
        self._source = source
        self._timeout = timeout

    async def _guarded(self, what: str, user_id: str, fetch: Awaitable[T]) -> T | None:
        try:
            if self._timeout is None:
                return await fetch
            return await asyncio.wait_for(fetch, timeout=self._timeout)
        except TimeoutError:
            logger.error("user_data_fetch_timeout", fetch=what, user_id=user_id, timeout=self._timeout)
        except Exception as exc:
            logger.error("user_data_fetch_failed", fetch=what, user_id=user_id, error=str(exc))
        return None

    async def load(self, user_id: str) -> LoadResult:
        profile, memberships = await asyncio.gather(
            self._guarded("profile", user_id, self._source.fetch_profile(user_id)),
            self._guarded("memberships", user_id, self._source.fetch_memberships(user_id)),
        )
        memberships = list(memberships or [])
        logger.debug(
            "user_data_loaded",
            user_id=user_id,
            has_profile=profile is not None,
            memberships=len(memberships),
        )
        return LoadResult(profile=profile, memberships=memberships)
