"""Basic example: sign in, pick an organization, reload, sign out.

Uses the in-memory auth backend and a file-backed slot, so the second
context below restores the session and the saved organization the way a
page reload would.
"""

import asyncio
import tempfile
from pathlib import Path

from steadythere import AuthConfig, AuthContext, RouteGuard
from steadythere.models import Organization, OrganizationMembership, OrgRole, Profile
from steadythere.session.memory import InMemoryAuthBackend
from steadythere.storage.file import FileSlot


class DemoSource:
    """Profile and membership data for one demo user."""

    def __init__(self, user_id: str) -> None:
        self._profile = Profile(id=user_id, email="demo@example.com", name="Demo")
        self._memberships = [
            OrganizationMembership(
                id=f"member-{slug}",
                organization_id=f"org-{slug}",
                user_id=user_id,
                role=role,
                organization=Organization(id=f"org-{slug}", name=name, slug=slug),
            )
            for slug, name, role in [
                ("harbor-fest", "Harbor Fest", OrgRole.ORG_ADMIN),
                ("city-marathon", "City Marathon", OrgRole.VOLUNTEER),
            ]
        ]

    async def fetch_profile(self, user_id: str):
        await asyncio.sleep(0.05)
        return self._profile

    async def fetch_memberships(self, user_id: str):
        await asyncio.sleep(0.05)
        return list(self._memberships)


def show(label: str, ctx: AuthContext, guard: RouteGuard) -> None:
    decision = guard.evaluate(ctx.state, "/app")
    org = ctx.current_org.name if ctx.current_org else "-"
    print(f"{label:<24} user={ctx.user.email if ctx.user else '-':<18} org={org:<14} /app -> {decision.outcome.value}")


async def main() -> None:
    config = AuthConfig()
    guard = RouteGuard(config)
    backend = InMemoryAuthBackend()
    user = backend.add_user("demo@example.com", "demo-password", name="Demo")
    source = DemoSource(user.id)

    with tempfile.TemporaryDirectory() as tmp:
        slot_path = Path(tmp) / "client-state.json"

        async with AuthContext.create(backend, source, FileSlot(slot_path), config) as ctx:
            await ctx.wait_until_ready(timeout=5)
            show("fresh visit", ctx, guard)

            await ctx.sign_in("demo@example.com", "demo-password")
            show("after sign-in", ctx, guard)

            ctx.switch_organization("org-city-marathon")
            show("after switch", ctx, guard)

        async with AuthContext.create(backend, source, FileSlot(slot_path), config) as ctx:
            await ctx.wait_until_ready(timeout=5)
            show("after reload", ctx, guard)

            await ctx.sign_out()
            show("after sign-out", ctx, guard)

        print(f"\nPersisted slot: {slot_path.read_text()}")


if __name__ == "__main__":
    asyncio.run(main())
