"""Severity classification of repository growth."""

from dataclasses import dataclass
from enum import Enum


class AlertTier(Enum):
    """Alert tiers, from first sighting up to viral growth."""

    NEW = "new"
    NOTABLE = "notable"
    HOT = "hot"
    VIRAL = "viral"


# Ordering of velocity tiers; "no alert" ranks below all of them
TIER_RANK = {
    AlertTier.NOTABLE: 1,
    AlertTier.HOT: 2,
    AlertTier.VIRAL: 3,
}


@dataclass(frozen=True)
class ThresholdConfig:
    """Thresholds for velocity and new-repository alerts."""

    # Repos younger than this use the young-repo velocity bar
    young_repo_max_age_days: float = 30
    young_repo_min_velocity: float = 5
    old_repo_min_velocity: float = 10

    # Absolute star count needed to alert on a first sighting
    new_repo_min_stars: int = 20

    # Multiples of the baseline velocity
    hot_multiplier: float = 3
    viral_multiplier: float = 10


DEFAULT_THRESHOLDS = ThresholdConfig()


def classify_severity(
    stars_per_day: float,
    repo_age_days: float,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> AlertTier | None:
    """Classify a growth rate into a velocity tier.

    Args:
        stars_per_day: Growth rate from the velocity calculator.
        repo_age_days: Repository age in days.
        thresholds: Threshold configuration.

    Returns:
        NOTABLE, HOT or VIRAL, or None when the rate is below the baseline.
    """
    if repo_age_days < thresholds.young_repo_max_age_days:
        baseline = thresholds.young_repo_min_velocity
    else:
        baseline = thresholds.old_repo_min_velocity

    if stars_per_day < baseline:
        return None

    if stars_per_day >= baseline * thresholds.viral_multiplier:
        return AlertTier.VIRAL

    if stars_per_day >= baseline * thresholds.hot_multiplier:
        return AlertTier.HOT

    return AlertTier.NOTABLE


def should_alert_new_repo(stars: int, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> bool:
    """Whether a first-sighting repository has enough stars to alert on."""
    return stars >= thresholds.new_repo_min_stars
