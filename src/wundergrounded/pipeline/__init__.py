"""Request pipeline: feature queue -> URL -> cache -> limiter -> transport.

Components:
- FeatureQueue: ordered, duplicate-free pending features
- RequestOrchestrator: one request cycle per ``request()`` call
"""

from wundergrounded.pipeline.orchestrator import (
    Outcome,
    OrchestratorConfig,
    RequestOrchestrator,
    ResolvedRequest,
    build_url,
)
from wundergrounded.pipeline.queue import FeatureQueue

__all__ = [
    "FeatureQueue",
    "Outcome",
    "OrchestratorConfig",
    "RequestOrchestrator",
    "ResolvedRequest",
    "build_url",
]
