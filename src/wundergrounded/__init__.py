"""wundergrounded: batched, cached and rate-limited Weather Underground client.

Usage:
    from wundergrounded import WundergroundClient

    wu = WundergroundClient(api_key="your_key").cache().limit(10, "minute")
    outcome = await wu.conditions().forecast().execute("94107", on_weather)
"""

from wundergrounded.clients.wunderground import (
    DATED_FEATURES,
    FEATURES,
    WundergroundClient,
)
from wundergrounded.errors import (
    EmptyQueue,
    InvalidParameter,
    MissingAPIKey,
    MissingQuery,
    ProgrammingError,
    ProviderError,
    TransportError,
    WundergroundError,
)
from wundergrounded.pipeline import Outcome, RequestOrchestrator

__version__ = "0.3.0"

__all__ = [
    "DATED_FEATURES",
    "FEATURES",
    "EmptyQueue",
    "InvalidParameter",
    "MissingAPIKey",
    "MissingQuery",
    "Outcome",
    "ProgrammingError",
    "ProviderError",
    "RequestOrchestrator",
    "TransportError",
    "WundergroundClient",
    "WundergroundError",
]
