"""Star velocity calculation from successive snapshots."""

from dataclasses import dataclass
from datetime import UTC, datetime

from gitscope.state.schema import Snapshot

SECONDS_PER_HOUR = 3600.0
SECONDS_PER_DAY = 86400.0

# Below this interval two observations are treated as the same sample
MIN_INTERVAL_HOURS = 0.1


@dataclass(frozen=True)
class VelocityResult:
    """Growth estimate for one repository at one point in time."""

    stars_per_day: float
    is_new: bool
    repo_age_days: float
    current_stars: int
    previous_stars: int


def compute_velocity(
    current_stars: int,
    created_at: datetime,
    last_snapshot: Snapshot | None,
    now: datetime | None = None,
) -> VelocityResult:
    """Compute the daily star growth rate of a repository.

    Args:
        current_stars: Star count reported by the latest search.
        created_at: Repository creation time.
        last_snapshot: Most recent stored snapshot, or None on first sighting.
        now: Evaluation time (defaults to the current UTC time).

    Returns:
        The velocity estimate. A first sighting is reported as new with a
        rate of zero since growth cannot be inferred from a single sample.
    """
    now = now or datetime.now(UTC)
    repo_age_days = max(0.0, (now - created_at).total_seconds() / SECONDS_PER_DAY)

    if last_snapshot is None:
        return VelocityResult(
            stars_per_day=0.0,
            is_new=True,
            repo_age_days=repo_age_days,
            current_stars=current_stars,
            previous_stars=0,
        )

    hours_since_snapshot = (now - last_snapshot.timestamp).total_seconds() / SECONDS_PER_HOUR

    if hours_since_snapshot < MIN_INTERVAL_HOURS:
        return VelocityResult(
            stars_per_day=0.0,
            is_new=False,
            repo_age_days=repo_age_days,
            current_stars=current_stars,
            previous_stars=last_snapshot.stars,
        )

    stars_per_day = (current_stars - last_snapshot.stars) / hours_since_snapshot * 24

    return VelocityResult(
        stars_per_day=stars_per_day,
        is_new=False,
        repo_age_days=repo_age_days,
        current_stars=current_stars,
        previous_stars=last_snapshot.stars,
    )
