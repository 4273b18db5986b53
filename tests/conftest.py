"""Pytest fixtures for GitScope tests."""

import os
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from gitscope.github.models import RepositoryRecord

# Fixed "now" so velocity and cooldown arithmetic is deterministic
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables before any imports.

    Ensures Settings can be constructed without validation errors.
    """
    os.environ.setdefault("GITHUB_TOKEN", "test-github-token-placeholder")
    os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test-telegram-token-placeholder")
    os.environ.setdefault("TELEGRAM_CHAT_ID", "-1001234567890")

    from gitscope.config import get_settings

    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def make_repo():
    """Factory for RepositoryRecord instances."""

    def _create(
        owner: str = "alice",
        name: str = "newlib",
        stars: int = 25,
        forks: int = 3,
        age_days: float = 2,
        description: str | None = "A new library",
        language: str | None = "Python",
        topics: list[str] | None = None,
    ) -> RepositoryRecord:
        return RepositoryRecord(
            owner=owner,
            name=name,
            stars=stars,
            forks=forks,
            created_at=NOW - timedelta(days=age_days),
            description=description,
            language=language,
            topics=topics or [],
        )

    return _create


@pytest.fixture
def mock_searcher():
    """Mock repository search collaborator returning no results."""
    searcher = AsyncMock()
    searcher.search = AsyncMock(return_value=[])
    return searcher


@pytest.fixture
def mock_notifier():
    """Mock notification channel that confirms every delivery."""
    notifier = AsyncMock()
    notifier.send = AsyncMock(return_value=True)
    return notifier
