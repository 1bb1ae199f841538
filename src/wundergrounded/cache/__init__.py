"""Response cache for wundergrounded.

In-memory TTL storage of parsed API responses, keyed by request URL.
"""

from wundergrounded.cache.memory_store import MemoryStore

__all__ = ["MemoryStore"]
