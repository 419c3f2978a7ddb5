from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
import threading
from typing import AsyncIterator
import weakref

logger = logging.getLogger(__name__)

# Locks disappear once no coroutine holds or waits on them
_LOCKS: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
_LOCKS_GUARD = threading.Lock()


def _lock_key(kind: str, record_id: str) -> str:
    return f"{kind}:{record_id}:mutex"


def _get_lock(key: str) -> asyncio.Lock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = asyncio.Lock()
            _LOCKS[key] = lock
        return lock


@asynccontextmanager
async def record_lock(kind: str, record_id: str) -> AsyncIterator[None]:
    """Serialize writers of one record within this process."""
    key = _lock_key(kind, record_id)
    lock = _get_lock(key)
    if lock.locked():
        logger.debug("record_lock_waiting key=%s", key)
    async with lock:
        yield
