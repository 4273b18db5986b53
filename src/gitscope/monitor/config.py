"""Configuration values for the monitoring cycle."""

from dataclasses import dataclass, field
from enum import Enum

# Telegram's limit on one message text
DEFAULT_MAX_MESSAGE_LENGTH = 4096


class DispatchMode(Enum):
    """How queued alerts are delivered."""

    # Individually up to the batch threshold, one digest above it
    BATCHED = "batched"
    # Always one combined message per cycle
    COMBINED = "combined"


@dataclass(frozen=True)
class MonitorConfig:
    """Configuration for the monitoring cycle."""

    keywords: list[str] = field(default_factory=list)
    cooldown_days: int = 7
    batch_threshold: int = 5
    dispatch_mode: DispatchMode = DispatchMode.BATCHED
    # Repositories above this star count never alert
    max_stars: int | None = None
    # Digest and combined messages are cut to fit; the rest wait for the next cycle
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH
