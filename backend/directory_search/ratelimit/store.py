"""
Counter stores for the rate limiter.

The store owns the read-modify-write of a window counter so that the
compare and the increment happen atomically. A shared-cache backend can
implement `RateLimitStore` without touching the limiter.
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, Optional, Tuple

from .window import Decision, WindowState, fixed_window_decide


class RateLimitStore(ABC):
    @abstractmethod
    def hit(self, key: str, limit: int, window_s: float, now_s: float) -> Decision:
        """Atomically count one request for `key` and return the decision."""

    @abstractmethod
    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or every key when `key` is None."""


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local store: a dict of window counters guarded by a lock."""

    def __init__(self, max_keys: int = 10000) -> None:
        self._entries: Dict[str, Tuple[WindowState, float]] = {}
        self._lock = Lock()
        self._max_keys = max_keys

    def hit(self, key: str, limit: int, window_s: float, now_s: float) -> Decision:
        with self._lock:
            entry = self._entries.get(key)
            state: Optional[WindowState] = None
            if entry is not None and entry[1] > now_s:
                state = entry[0]
            new_state, decision = fixed_window_decide(now_s, state, limit, window_s)
            self._entries[key] = (new_state, new_state.window_start_s + window_s)
            if len(self._entries) > self._max_keys:
                self._purge_expired(now_s)
            return decision

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def _purge_expired(self, now_s: float) -> None:
        # Caller holds the lock
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now_s]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        return len(self._entries)
