"""Keyword search for candidate repositories."""

from gitscope.github.client import MAX_PER_PAGE, GitHubClient
from gitscope.github.models import RepositoryRecord
from gitscope.logging import get_logger

log = get_logger("gitscope.github.search")

QUALIFIERS = "in:name,description,topics,readme"


def build_search_query(keywords: list[str]) -> str:
    """Build a GitHub search query matching any of the keywords.

    Multi-word keywords are quoted so they match as phrases.
    """
    terms = [f'"{k}"' if " " in k else k for k in keywords]
    return f"{' OR '.join(terms)} {QUALIFIERS}"


class RepositorySearcher:
    """Finds repositories matching the monitored keywords."""

    def __init__(self, client: GitHubClient, max_pages: int = 1):
        self._client = client
        self._max_pages = max_pages

    async def search(self, keywords: list[str]) -> list[RepositoryRecord]:
        """Search GitHub for repositories matching any keyword.

        Args:
            keywords: Keywords to search for.

        Returns:
            Repositories in search order, without duplicates.

        Raises:
            GitHubAPIError: The search failed.
        """
        query = build_search_query(keywords)
        records: dict[str, RepositoryRecord] = {}
        total_count = 0

        for page in range(1, self._max_pages + 1):
            data = await self._client.search_repositories(query, page=page)
            total_count = data.get("total_count", 0)
            items = data.get("items", [])

            if data.get("incomplete_results"):
                log.warning("github_search_incomplete", page=page)

            for item in items:
                record = RepositoryRecord.from_api(item)
                if not record.owner:
                    log.debug("github_search_item_skipped", name=record.name, reason="no owner")
                    continue
                records.setdefault(record.key, record)

            if len(items) < MAX_PER_PAGE:
                break

        log.info(
            "github_search_completed",
            total_count=total_count,
            returned=len(records),
        )
        return list(records.values())
