"""Key-value slots for persisted client state."""

from __future__ import annotations

from steadythere.storage.base import KeyValueSlot
from steadythere.storage.file import FileSlot
from steadythere.storage.memory import InMemorySlot

__all__ = ["FileSlot", "InMemorySlot", "KeyValueSlot"]
