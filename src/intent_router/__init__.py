"""Intent routing and dispatch engine."""

from .config import MediaConfig, RoutingConfig, Settings
from .types import Decision, ResultEnvelope, Worker

__all__ = ["Decision", "MediaConfig", "ResultEnvelope", "RoutingConfig", "Settings", "Worker"]
