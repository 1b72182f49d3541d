from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest


@dataclass
class YieldingBackend:
    """Memory backend that suspends inside every call, widening race windows."""

    items: dict[str, str] = field(default_factory=dict)
    fail_reads: bool = False
    fail_writes: bool = False
    writes: int = 0

    async def get_item(self, key: str) -> str | None:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise OSError("disk unavailable")
        value = self.items.get(key)
        await asyncio.sleep(0)
        return value

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        if self.fail_writes:
            raise OSError("disk full")
        self.writes += 1
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        await asyncio.sleep(0)
        self.items.pop(key, None)


@pytest.fixture
def backend() -> YieldingBackend:
    return YieldingBackend()
