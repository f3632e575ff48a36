# weatherbot/transport/chat_locks.py
"""
Per-chat serialization shared by the webhook handler and the poller.

Events of one chat are handled strictly one after another (in arrival
order: ``asyncio.Lock`` wakes waiters FIFO); different chats run
concurrently.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ChatLocks:
    """One asyncio.Lock per chat, dropped once nobody holds or waits for it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, chat_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(chat_id, asyncio.Lock())
        self._holders[chat_id] = self._holders.get(chat_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[chat_id] -= 1
            if self._holders[chat_id] == 0:
                del self._holders[chat_id]
                self._locks.pop(chat_id, None)

    def __len__(self) -> int:
        return len(self._locks)
