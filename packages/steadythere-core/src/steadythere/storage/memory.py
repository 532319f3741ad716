"""In-memory key-value slot for testing and request-scoped use."""

from __future__ import annotations


class InMemorySlot:
    """Dict-backed slot. Optionally seeded, e.g. from request cookies."""

    def __init__(self, initial: dict[str, str | None] | None = None) -> None:
        self._values: dict[str, str] = {k: v for k, v in (initial or {}).items() if v}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)
