"""Alert formatting and delivery."""

from gitscope.notifications.base import FailureKind, NotificationChannel, SendFailure
from gitscope.notifications.formatter import (
    AlertData,
    DigestEntry,
    format_alert,
    format_digest,
    format_new_repo_alert,
)
from gitscope.notifications.telegram import TelegramNotifier

__all__ = [
    "AlertData",
    "DigestEntry",
    "FailureKind",
    "NotificationChannel",
    "SendFailure",
    "TelegramNotifier",
    "format_alert",
    "format_digest",
    "format_new_repo_alert",
]
