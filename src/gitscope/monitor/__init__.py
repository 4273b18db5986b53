"""Growth detection.

This package provides:
- compute_velocity: Star growth rate from successive snapshots
- classify_severity / should_alert_new_repo: Alert tier decisions
- MonitorCycle (in ``gitscope.monitor.cycle``): The per-cycle pipeline
"""

from gitscope.monitor.classifier import (
    DEFAULT_THRESHOLDS,
    AlertTier,
    ThresholdConfig,
    classify_severity,
    should_alert_new_repo,
)
from gitscope.monitor.velocity import VelocityResult, compute_velocity

__all__ = [
    # Velocity
    "VelocityResult",
    "compute_velocity",
    # Classification
    "AlertTier",
    "DEFAULT_THRESHOLDS",
    "ThresholdConfig",
    "classify_severity",
    "should_alert_new_repo",
]
