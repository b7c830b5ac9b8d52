"""Pull request source interface and lazy page iteration."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable

from branch_pruner.models.pr import PullRequest, PullRequestRef, Reference

PageCursor = str | None
PageFetcher = Callable[[PageCursor], Awaitable[tuple[list[PullRequest], PageCursor]]]


class PullRequestPages:
    """
    Pull-based iterator over paginated pull requests.

    Nothing is fetched until the first call to `fetch_next_page` (or the first
    `async for` step); each later page is fetched only once the previous one
    has been consumed, so at most one page is held in memory.
    """

    def __init__(self, fetch_page: PageFetcher):
        self._fetch_page = fetch_page
        self._cursor: PageCursor = None
        self._started = False
        self._exhausted = False
        self.pages_fetched = 0

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    async def fetch_next_page(self) -> list[PullRequest] | None:
        """Fetch the next page, or return None once the source is exhausted."""
        if self._exhausted:
            return None
        if self._started and self._cursor is None:
            self._exhausted = True
            return None

        self._started = True
        items, self._cursor = await self._fetch_page(self._cursor)
        self.pages_fetched += 1
        if self._cursor is None:
            self._exhausted = True
        return items

    async def _iterate(self) -> AsyncIterator[PullRequest]:
        while True:
            page = await self.fetch_next_page()
            if page is None:
                return
            for pr in page:
                yield pr

    def __aiter__(self) -> AsyncIterator[PullRequest]:
        return self._iterate()


class PullRequestSource(ABC):
    """Read access to closed pull requests plus ref lookup and deletion."""

    @abstractmethod
    def stream_closed_pull_requests(
        self,
        owner: str,
        repo: str,
        sort: str = "updated",
        per_page: int = 100,
    ) -> PullRequestPages:
        """
        Lazily stream closed pull requests, most recent first.

        Args:
            owner: Repository owner
            repo: Repository name
            sort: Sort key (created, updated)
            per_page: Page size requested from the server

        Returns:
            PullRequestPages iterator
        """
        pass

    @abstractmethod
    async def get_ref(self, head: PullRequestRef) -> Reference | None:
        """
        Look up the live state of a PR's head branch.

        Returns:
            Reference, or None when the exact ref no longer exists
        """
        pass

    @abstractmethod
    async def delete_ref(self, head: PullRequestRef) -> None:
        """Delete a PR's head branch from its repository."""
        pass
