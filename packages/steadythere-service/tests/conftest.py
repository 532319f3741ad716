"""Service test fixtures with in-memory mock repos."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Make _fakes importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _fakes import Fakes, make_test_app  # noqa: E402


@pytest.fixture
def fakes() -> Fakes:
    return Fakes()


@pytest.fixture
def client(fakes) -> TestClient:
    return TestClient(make_test_app(fakes))
