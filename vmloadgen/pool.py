"""
Shared pool of synthetic metric items.

Items are created once with sequential ids and handed out exactly once. The
pool is drained at startup by the orchestrator, one tier at a time, but the
dequeue is mutex-guarded so concurrent draining never duplicates or loses an
item.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List, Optional

from vmloadgen.domain.models import MetricItem


class ItemPool:
    """
    One-shot source of ``MetricItem`` objects with ids ``1..size``.

    There is no re-insertion: ownership of a taken item moves to the caller
    for good.
    """

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"Pool size must be >= 0, got {size}")
        self.size = size
        self._items: Deque[MetricItem] = deque(MetricItem(id=i) for i in range(1, size + 1))
        self._lock = threading.Lock()

    def take(self) -> Optional[MetricItem]:
        """Dequeue the next item, or return None when the pool is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def claim(self, count: int) -> List[MetricItem]:
        """
        Take up to ``count`` items.

        Returns ``min(count, remaining)`` items in id order. Each item is taken
        individually, so concurrent claimers interleave but never overlap.
        """
        if count < 0:
            raise ValueError(f"Claim count must be >= 0, got {count}")
        claimed: List[MetricItem] = []
        for _ in range(count):
            item = self.take()
            if item is None:
                break
            claimed.append(item)
        return claimed

    @property
    def remaining(self) -> int:
        with self._lock:
            return len(self._items)

    def __len__(self) -> int:
        return self.remaining


__all__ = ["ItemPool"]
