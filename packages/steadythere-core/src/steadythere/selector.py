"""Current-organization selection with a persisted preference."""

from __future__ import annotations

from collections.abc import Sequence

from steadythere.config import DefaultOrgPolicy
from steadythere.models import OrganizationMembership
from steadythere.storage.base import KeyValueSlot


class OrganizationSelector:
    """Picks the organization a user is acting as.

    A saved choice wins when it is still one of the user's memberships.
    Otherwise the first membership is used; with the default
    ``LOADER_ORDER`` policy "first" means whatever order the data source
    returned, which the data store does not guarantee.
    """

    def __init__(
        self,
        slot: KeyValueSlot,
        key: str = "steady_current_org",
        policy: DefaultOrgPolicy = DefaultOrgPolicy.LOADER_ORDER,
    ) -> None:
        self._slot = slot
        self._key = key
        self._policy = policy

    @property
    def saved(self) -> str | None:
        return self._slot.get(self._key)

    def select(self, memberships: Sequence[OrganizationMembership]) -> str | None:
        saved = self.saved
        if saved and any(m.organization_id == saved for m in memberships):
            return saved
        if not memberships:
            return None
        if self._policy is DefaultOrgPolicy.EARLIEST_MEMBERSHIP:
            return min(memberships, key=lambda m: m.created_at).organization_id
        return memberships[0].organization_id

    def switch(self, org_id: str) -> None:
        self._slot.set(self._key, org_id)

    def clear(self) -> None:
        self._slot.delete(self._key)


def find_membership(
    memberships: Sequence[OrganizationMembership], org_id: str | None
) -> OrganizationMembership | None:
    """Membership for ``org_id``, else the first membership, else None."""
    for membership in memberships:
        if membership.organization_id == org_id:
            return membership
    return memberships[0] if memberships else None
