"""GitHub repository search.

Async client for the GitHub REST API plus the keyword search that feeds
each monitoring cycle.
"""

from gitscope.github.client import (
    GitHubAPIError,
    GitHubAuthError,
    GitHubClient,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubValidationError,
)
from gitscope.github.models import RepositoryRecord
from gitscope.github.search import RepositorySearcher, build_search_query

__all__ = [
    # Client
    "GitHubClient",
    "GitHubAPIError",
    "GitHubAuthError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubValidationError",
    # Search
    "RepositoryRecord",
    "RepositorySearcher",
    "build_search_query",
]
