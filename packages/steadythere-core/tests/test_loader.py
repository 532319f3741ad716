"""Tests for ProfileMembershipLoader."""

from __future__ import annotations

import asyncio

import pytest
from _helpers import ALICE_ID, make_membership, settle

from steadythere.loader import ProfileMembershipLoader


@pytest.mark.asyncio
async def test_load_returns_profile_and_memberships(source):
    source.memberships[ALICE_ID] = [make_membership("org-a"), make_membership("org-b")]
    result = await ProfileMembershipLoader(source).load(ALICE_ID)
    assert result.profile.name == "Alice"
    assert [m.organization_id for m in result.memberships] == ["org-a", "org-b"]
    assert result.memberships[0].organization.name == "Org org-a"


@pytest.mark.asyncio
async def test_fetches_run_concurrently(source):
    source.gate = asyncio.Event()
    task = asyncio.create_task(ProfileMembershipLoader(source).load(ALICE_ID))
    await settle()
    assert source.max_in_flight == 2
    source.gate.set()
    await task


@pytest.mark.asyncio
async def test_profile_failure_yields_none_but_keeps_memberships(source):
    source.memberships[ALICE_ID] = [make_membership("org-a")]
    source.profile_error = RuntimeError("profiles unavailable")
    result = await ProfileMembershipLoader(source).load(ALICE_ID)
    assert result.profile is None
    assert len(result.memberships) == 1


@pytest.mark.asyncio
async def test_membership_failure_yields_empty_list(source):
    source.memberships_error = ConnectionError("db down")
    result = await ProfileMembershipLoader(source).load(ALICE_ID)
    assert result.profile is not None
    assert result.memberships == []


@pytest.mark.asyncio
async def test_timeout_is_treated_as_failure(source):
    source.delay = 1.0
    result = await ProfileMembershipLoader(source, timeout=0.01).load(ALICE_ID)
    assert result.profile is None
    assert result.memberships == []


@pytest.mark.asyncio
async def test_unknown_user_loads_empty(source):
    result = await ProfileMembershipLoader(source).load("someone-else")
    assert result.profile is None
    assert result.memberships == []
