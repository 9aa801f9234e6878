"""Shared test doubles: re-export memory backends."""

from __future__ import annotations

from usersync.persistence.memory_backend import MemoryMessageQueue, MemoryUserStore

__all__ = ["MemoryMessageQueue", "MemoryUserStore"]
