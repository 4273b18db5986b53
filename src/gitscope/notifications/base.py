"""Notification channel interface and delivery failure values."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class FailureKind(Enum):
    """Why a message could not be delivered."""

    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    MARKUP_REJECTED = "markup_rejected"
    API = "api"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SendFailure:
    """A failed delivery attempt, tagged by ``kind``."""

    kind: FailureKind
    detail: str = ""
    retry_after: float | None = None

    @property
    def retryable(self) -> bool:
        """Whether another attempt might succeed."""
        return self.kind in (FailureKind.RATE_LIMITED, FailureKind.NETWORK)


class NotificationChannel(ABC):
    """Abstract base class for notification channels."""

    @abstractmethod
    async def send(self, message: str) -> bool:
        """Send a formatted message.

        Args:
            message: The message to send.

        Returns:
            True if delivery was confirmed, False otherwise.
        """
        pass
