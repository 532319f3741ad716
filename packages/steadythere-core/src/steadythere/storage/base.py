"""Protocol for persistent single-value storage slots."""

from __future__ import annotations

from typing import Protocol


class KeyValueSlot(Protocol):
    """Synchronous string storage keyed by a fixed name (survives reloads)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...
