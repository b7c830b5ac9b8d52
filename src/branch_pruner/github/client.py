"""GitHub API client for pull requests and branch refs."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from branch_pruner.exceptions import GitHubAuthError, PullRequestSourceError
from branch_pruner.github.base import PageCursor, PullRequestPages, PullRequestSource
from branch_pruner.models.pr import PullRequest, PullRequestRef, Reference

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

AUTH_REMEDIATION = (
    "Check that your token is valid and has the 'repo' scope.\n"
    "  - Set GITHUB_TOKEN or pass --token, or\n"
    "  - run: gh auth login"
)


class GitHubClient(PullRequestSource):
    """Pull request source backed by the GitHub REST API."""

    def __init__(
        self,
        token: str | None,
        base_url: str = DEFAULT_API_URL,
        timeout_sec: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub API token
            base_url: API root, https://HOST/api/v3 for GitHub Enterprise
            timeout_sec: Timeout for each request
            transport: Optional httpx transport (used by tests)
        """
        if not token:
            raise GitHubAuthError(f"No GitHub token available.\n{AUTH_REMEDIATION}")

        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"Bearer {token}",
        }
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GitHubClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout_sec,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not self._client:
            raise RuntimeError("GitHubClient used outside of 'async with'")

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise PullRequestSourceError(f"GitHub request timed out: {method} {url}") from e
        except httpx.TransportError as e:
            raise PullRequestSourceError(f"GitHub request failed: {e}") from e

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        status = response.status_code
        message = _error_message(response)

        if status == 403 and response.headers.get("x-ratelimit-remaining") == "0":
            raise PullRequestSourceError(f"GitHub API rate limit exceeded: {message}", status)
        if status in (401, 403):
            raise GitHubAuthError(
                f"GitHub authentication failed ({status}): {message}\n{AUTH_REMEDIATION}",
                status,
            )
        if status == 404:
            raise PullRequestSourceError(
                f"Not found: {response.request.url} (check owner/repo and token access)",
                status,
            )
        raise PullRequestSourceError(f"GitHub API error ({status}): {message}", status)

    def stream_closed_pull_requests(
        self,
        owner: str,
        repo: str,
        sort: str = "updated",
        per_page: int = 100,
    ) -> PullRequestPages:
        params = {"state": "closed", "sort": sort, "direction": "desc", "per_page": per_page}

        async def fetch_page(cursor: PageCursor) -> tuple[list[PullRequest], PageCursor]:
            if cursor is None:
                response = await self._request("GET", f"/repos/{owner}/{repo}/pulls", params=params)
            else:
                response = await self._request("GET", cursor)
            self._raise_for_status(response)

            try:
                items = [PullRequest.from_api(item) for item in response.json()]
            except (ValueError, KeyError, TypeError) as e:
                raise _malformed(response, e) from e
            next_link = response.links.get("next", {}).get("url")
            return items, next_link

        return PullRequestPages(fetch_page)

    def _ref_url(self, head: PullRequestRef) -> str:
        if head.repo is None:
            raise PullRequestSourceError(f"Pull request ref {head.ref} has no repository")
        return f"/repos/{head.repo.owner}/{head.repo.name}/git/refs/heads/{quote(head.ref, safe='/')}"

    async def get_ref(self, head: PullRequestRef) -> Reference | None:
        response = await self._request("GET", self._ref_url(head))
        if response.status_code == 404:
            return None
        self._raise_for_status(response)

        try:
            data = response.json()
            # A missing ref that prefixes other refs comes back as a list of those refs
            if isinstance(data, list):
                return None
            return Reference.from_api(data)
        except (ValueError, KeyError, TypeError) as e:
            raise _malformed(response, e) from e

    async def delete_ref(self, head: PullRequestRef) -> None:
        response = await self._request("DELETE", self._ref_url(head))
        self._raise_for_status(response)


def _malformed(response: httpx.Response, error: Exception) -> PullRequestSourceError:
    logger.debug("Unparseable response from %s: %r", response.request.url, response.text[:200])
    return PullRequestSourceError(
        f"Malformed GitHub response from {response.request.url.path}: {error}", response.status_code
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return response.text
