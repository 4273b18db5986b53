"""Data models for GitHub search results."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _parse_timestamp(val: str) -> datetime:
    parsed = datetime.fromisoformat(val.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class RepositoryRecord:
    """A repository as returned by one search."""

    owner: str
    name: str
    stars: int
    forks: int
    created_at: datetime
    description: str | None = None
    language: str | None = None
    topics: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        """State key, ``owner/name``."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepositoryRecord":
        """Create from a GitHub search API item."""
        owner = data.get("owner") or {}
        return cls(
            owner=owner.get("login", "") if isinstance(owner, dict) else str(owner),
            name=data["name"],
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            created_at=_parse_timestamp(data["created_at"]),
            description=data.get("description") or None,
            language=data.get("language") or None,
            topics=list(data.get("topics") or []),
        )
