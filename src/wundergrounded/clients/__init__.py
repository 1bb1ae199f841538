"""API client layer for wundergrounded.

- base: async HTTP transport and token bucket rate limiter
- wunderground: the fluent Weather Underground client (import it from
  ``wundergrounded`` or ``wundergrounded.clients.wunderground``)
"""

from wundergrounded.clients.base import HttpTransport, RateLimiter

__all__ = [
    "HttpTransport",
    "RateLimiter",
]
