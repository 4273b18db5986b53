"""Persisted application state."""

from gitscope.state.schema import (
    MAX_SNAPSHOTS,
    SCHEMA_VERSION,
    AppState,
    NotificationRecord,
    Snapshot,
    StateMeta,
    TrackedRepository,
)
from gitscope.state.store import StateStore

__all__ = [
    "MAX_SNAPSHOTS",
    "SCHEMA_VERSION",
    "AppState",
    "NotificationRecord",
    "Snapshot",
    "StateMeta",
    "StateStore",
    "TrackedRepository",
]
