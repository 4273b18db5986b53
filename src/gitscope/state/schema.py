"""Pydantic models for the persisted application state.

The state file is a single JSON document::

    {
      "meta": {"version": 1, "lastCycleAt": "2026-01-01T00:00:00Z"},
      "repos": {"owner/name": {..., "snapshots": [...]}},
      "notifications": {"owner/name": {"lastAlertAt": "..."}}
    }

Validation is strict: a document whose fields have the wrong types is
rejected as a whole rather than coerced. Timestamps must carry a timezone
offset; naive values are rejected.
"""

from __future__ import annotations

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1

# Snapshot history retained per repository, independent of polling cadence
MAX_SNAPSHOTS = 48


class _StateModel(BaseModel):
    model_config = ConfigDict(
        strict=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Snapshot(_StateModel):
    """A point-in-time observation of a repository's counts."""

    model_config = ConfigDict(frozen=True)

    timestamp: AwareDatetime
    stars: int
    forks: int


class TrackedRepository(_StateModel):
    """A repository and its recent snapshot history."""

    owner: str
    name: str
    description: str | None
    language: str | None
    topics: list[str] = Field(default_factory=list)
    added_at: AwareDatetime
    snapshots: list[Snapshot] = Field(default_factory=list)

    @property
    def last_snapshot(self) -> Snapshot | None:
        """Most recent snapshot, if any."""
        return self.snapshots[-1] if self.snapshots else None

    def add_snapshot(self, snapshot: Snapshot, limit: int = MAX_SNAPSHOTS) -> None:
        """Append a snapshot, evicting the oldest entries beyond ``limit``."""
        self.snapshots.append(snapshot)
        if len(self.snapshots) > limit:
            del self.snapshots[: len(self.snapshots) - limit]


class NotificationRecord(_StateModel):
    """When a repository was last successfully alerted."""

    last_alert_at: AwareDatetime


class StateMeta(_StateModel):
    """State file metadata."""

    version: int
    last_cycle_at: AwareDatetime | None = None


class AppState(_StateModel):
    """Everything GitScope persists between runs."""

    meta: StateMeta
    repos: dict[str, TrackedRepository] = Field(default_factory=dict)
    notifications: dict[str, NotificationRecord] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> AppState:
        """Create a fresh, empty state."""
        return cls(meta=StateMeta(version=SCHEMA_VERSION, last_cycle_at=None))
