"""Tests for severity classification."""

import pytest

from gitscope.monitor.classifier import (
    DEFAULT_THRESHOLDS,
    TIER_RANK,
    AlertTier,
    ThresholdConfig,
    classify_severity,
    should_alert_new_repo,
)


class TestThresholdConfig:
    """Tests for ThresholdConfig defaults."""

    def test_default_values(self) -> None:
        """Defaults match the documented thresholds."""
        config = ThresholdConfig()
        assert config.young_repo_max_age_days == 30
        assert config.young_repo_min_velocity == 5
        assert config.old_repo_min_velocity == 10
        assert config.new_repo_min_stars == 20
        assert config.hot_multiplier == 3
        assert config.viral_multiplier == 10


class TestClassifySeverity:
    """Tests for classify_severity."""

    def test_below_young_baseline(self) -> None:
        """A young repo under 5 stars/day does not alert."""
        assert classify_severity(4.9, repo_age_days=10) is None

    def test_young_notable(self) -> None:
        """A young repo at the baseline is notable."""
        assert classify_severity(5, repo_age_days=10) is AlertTier.NOTABLE

    def test_old_repo_uses_higher_baseline(self) -> None:
        """5 stars/day is not enough for a repo older than 30 days."""
        assert classify_severity(5, repo_age_days=30) is None
        assert classify_severity(10, repo_age_days=30) is AlertTier.NOTABLE

    def test_hot_boundary_is_inclusive(self) -> None:
        """Exactly baseline * hot multiplier is hot."""
        assert classify_severity(14.99, repo_age_days=10) is AlertTier.NOTABLE
        assert classify_severity(15, repo_age_days=10) is AlertTier.HOT

    def test_viral_boundary_is_inclusive(self) -> None:
        """Exactly baseline * viral multiplier is viral."""
        assert classify_severity(49.99, repo_age_days=10) is AlertTier.HOT
        assert classify_severity(50, repo_age_days=10) is AlertTier.VIRAL

    def test_fast_young_repo_is_viral(self) -> None:
        """100 stars/day on a 10-day-old repo is viral."""
        assert classify_severity(100, repo_age_days=10) is AlertTier.VIRAL

    def test_negative_velocity(self) -> None:
        """Negative growth never alerts."""
        assert classify_severity(-50, repo_age_days=1) is None

    def test_custom_thresholds(self) -> None:
        """Injected thresholds replace the defaults."""
        thresholds = ThresholdConfig(
            young_repo_max_age_days=7,
            young_repo_min_velocity=1,
            old_repo_min_velocity=2,
            hot_multiplier=2,
            viral_multiplier=4,
        )
        assert classify_severity(1, repo_age_days=3, thresholds=thresholds) is AlertTier.NOTABLE
        assert classify_severity(2, repo_age_days=3, thresholds=thresholds) is AlertTier.HOT
        assert classify_severity(4, repo_age_days=3, thresholds=thresholds) is AlertTier.VIRAL
        assert classify_severity(1, repo_age_days=7, thresholds=thresholds) is None

    @pytest.mark.parametrize("age", [0.5, 10, 29.9, 30, 400])
    def test_monotonic_in_velocity(self, age: float) -> None:
        """For a fixed age, a higher rate never yields a lower tier."""
        ranks = []
        for rate in [x * 0.5 for x in range(0, 300)]:
            tier = classify_severity(rate, repo_age_days=age)
            ranks.append(TIER_RANK[tier] if tier else 0)
        assert ranks == sorted(ranks)
        assert ranks[-1] == TIER_RANK[AlertTier.VIRAL]


class TestShouldAlertNewRepo:
    """Tests for should_alert_new_repo."""

    def test_at_minimum(self) -> None:
        """Exactly the minimum star count alerts."""
        assert should_alert_new_repo(20) is True

    def test_above_minimum(self) -> None:
        """25 stars alerts with the default minimum of 20."""
        assert should_alert_new_repo(25, DEFAULT_THRESHOLDS) is True

    def test_below_minimum(self) -> None:
        """19 stars does not alert."""
        assert should_alert_new_repo(19) is False

    def test_custom_minimum(self) -> None:
        """Injected minimum is honoured."""
        assert should_alert_new_repo(25, ThresholdConfig(new_repo_min_stars=50)) is False
