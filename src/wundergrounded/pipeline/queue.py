"""Ordered, duplicate-free queue of pending feature tokens."""

import threading


class FeatureQueue:
    """Features waiting for the next request.

    Insertion order is kept and is significant: it decides the order of the
    path segments in the request URL. Re-inserting a token already present
    is a no-op that leaves it in its original position.

    ``drain_all`` empties the queue atomically, so features added while a
    request is in flight go into the next batch.
    """

    def __init__(self) -> None:
        self._items: list[str] = []
        self._lock = threading.Lock()

    def enqueue(self, name: str) -> "FeatureQueue":
        with self._lock:
            if name not in self._items:
                self._items.append(name)
        return self

    def drain_all(self) -> list[str]:
        """Return the queued tokens in order and leave the queue empty."""
        with self._lock:
            items, self._items = self._items, []
        return items

    def snapshot(self) -> list[str]:
        """Copy of the current contents, without draining."""
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __repr__(self) -> str:
        return f"FeatureQueue({self._items!r})"
