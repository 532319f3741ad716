"""End-to-end flows: session events through the context into the route guard."""

from __future__ import annotations

import pytest
from _helpers import ALICE_EMAIL, ALICE_ID, ALICE_PASSWORD, make_context, make_membership

from steadythere.guard import GuardOutcome, RouteGuard
from steadythere.storage.file import FileSlot

guard = RouteGuard()


@pytest.mark.asyncio
async def test_unauthenticated_visit_redirects_to_login(backend, source):
    async with make_context(backend, source) as ctx:
        state = await ctx.wait_until_ready(timeout=1)
        decision = guard.evaluate(state, "/app")
    assert decision.outcome is GuardOutcome.REDIRECT_LOGIN
    assert decision.return_to == "/app"


@pytest.mark.asyncio
async def test_admin_member_sees_dashboard(backend, source):
    source.memberships[ALICE_ID] = [make_membership("org-a")]
    async with make_context(backend, source) as ctx:
        await ctx.wait_until_ready(timeout=1)
        await ctx.sign_in(ALICE_EMAIL, ALICE_PASSWORD)
        assert guard.evaluate(ctx.state, "/app").outcome is GuardOutcome.RENDER


@pytest.mark.asyncio
async def test_user_without_orgs_is_sent_to_onboarding(backend, source):
    async with make_context(backend, source) as ctx:
        await ctx.wait_until_ready(timeout=1)
        await ctx.sign_in(ALICE_EMAIL, ALICE_PASSWORD)
        assert guard.evaluate(ctx.state, "/app").outcome is GuardOutcome.REDIRECT_ONBOARDING
        onboarding = guard.evaluate(ctx.state, "/onboarding", require_org=False)
        assert onboarding.outcome is GuardOutcome.RENDER


@pytest.mark.asyncio
async def test_guard_never_sees_stale_empty_orgs_during_sign_in(backend, source):
    source.memberships[ALICE_ID] = [make_membership("org-a")]
    async with make_context(backend, source) as ctx:
        await ctx.wait_until_ready(timeout=1)
        outcomes = []
        ctx.subscribe(lambda s: outcomes.append(guard.evaluate(s, "/app").outcome))
        await ctx.sign_in(ALICE_EMAIL, ALICE_PASSWORD)
    assert GuardOutcome.REDIRECT_ONBOARDING not in outcomes
    assert outcomes[-1] is GuardOutcome.RENDER


@pytest.mark.asyncio
async def test_selection_and_session_survive_reload(backend, source, tmp_path):
    source.memberships[ALICE_ID] = [make_membership("org-1"), make_membership("org-2")]
    slot_path = tmp_path / "client.json"

    async with make_context(backend, source, FileSlot(slot_path)) as ctx:
        await ctx.wait_until_ready(timeout=1)
        await ctx.sign_in(ALICE_EMAIL, ALICE_PASSWORD)
        assert ctx.switch_organization("org-2")

    # A fresh context over the same file picks up where the last one left off.
    async with make_context(backend, source, FileSlot(slot_path)) as reloaded:
        state = await reloaded.wait_until_ready(timeout=1)
        assert state.user.id == ALICE_ID
        assert state.current_org.id == "org-2"

        await reloaded.sign_out()

    async with make_context(backend, source, FileSlot(slot_path)) as after_logout:
        state = await after_logout.wait_until_ready(timeout=1)
        assert state.user is None
        assert guard.evaluate(state, "/app").outcome is GuardOutcome.REDIRECT_LOGIN
