"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make _helpers importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import (  # noqa: E402
    ALICE_EMAIL,
    ALICE_ID,
    ALICE_PASSWORD,
    FakeMembershipSource,
    GatedAuthBackend,
    make_profile,
)

from steadythere.config import AuthConfig  # noqa: E402
from steadythere.storage.memory import InMemorySlot  # noqa: E402


@pytest.fixture
def config() -> AuthConfig:
    return AuthConfig()


@pytest.fixture
def backend() -> GatedAuthBackend:
    backend = GatedAuthBackend()
    backend.add_user(ALICE_EMAIL, ALICE_PASSWORD, name="Alice", user_id=ALICE_ID)
    return backend


@pytest.fixture
def source() -> FakeMembershipSource:
    source = FakeMembershipSource()
    source.profiles[ALICE_ID] = make_profile()
    return source


@pytest.fixture
def slot() -> InMemorySlot:
    return InMemorySlot()
