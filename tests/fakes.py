"""Fake collaborators shared by the queue tests."""

from __future__ import annotations

import asyncio
from typing import Any


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeOrderStore:
    """In-memory order store recording every call.

    Attributes:
        error: Exception raised by every call while set.
        gate: When set, calls block until the event is set.
    """

    def __init__(self) -> None:
        self.creates: list[Any] = []
        self.edits: list[tuple[str, Any]] = []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.entered = 0

    @property
    def calls(self) -> int:
        return len(self.creates) + len(self.edits)

    async def _maybe_block(self) -> None:
        self.entered += 1
        if self.gate is not None:
            await self.gate.wait()

    async def submit_create(self, payload: Any) -> str:
        await self._maybe_block()
        self.creates.append(payload)
        if self.error is not None:
            raise self.error
        return f"order-{len(self.creates)}"

    async def submit_edit(self, target_id: str, payload: Any) -> None:
        await self._maybe_block()
        self.edits.append((target_id, payload))
        if self.error is not None:
            raise self.error


class FakeRecorder:
    """Consumption recorder recording every call."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, list[dict[str, Any]], str, str]] = []
        self.error = error

    async def record_consumption(
        self,
        scope_id: str,
        items: list[dict[str, Any]],
        date_key: str,
        remote_id: str,
    ) -> None:
        self.calls.append((scope_id, items, date_key, remote_id))
        if self.error is not None:
            raise self.error


ORDER_PAYLOAD: dict[str, Any] = {
    "businessId": "biz-1",
    "items": [
        {"productId": "p1", "variant": "large", "name": "Burger", "quantity": 2},
        {"productId": "p2", "variant": None, "name": "Fries", "quantity": 1},
    ],
    "total": 12.5,
}
