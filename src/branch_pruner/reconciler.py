"""Match branches against merged pull request history."""

import logging
from dataclasses import dataclass, field
from typing import AsyncIterable, AsyncIterator, Callable

from branch_pruner.exceptions import GitHubAuthError, PullRequestSourceError
from branch_pruner.github.base import PullRequestSource
from branch_pruner.models.pr import PullRequest, Reference

logger = logging.getLogger(__name__)


@dataclass
class MergedPullRequests:
    """Head-ref keyed map of merged PRs built from a PR stream."""

    by_head_ref: dict[str, PullRequest] = field(default_factory=dict)
    consumed: int = 0
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.by_head_ref)


@dataclass
class RemoteCandidate:
    """A remote branch eligible for deletion and the PR that merged it."""

    pull_request: PullRequest
    reference: Reference


@dataclass
class RemoteScanStats:
    """Counters collected while scanning for remote candidates."""

    scanned: int = 0
    pages: int = 0
    lookup_errors: int = 0
    mismatched: int = 0
    min_number: int | None = None
    max_number: int | None = None


async def build_merged_pr_map(
    stream: AsyncIterable[PullRequest],
    limit: int | None = None,
    on_progress: Callable[[int], None] | None = None,
) -> MergedPullRequests:
    """
    Collect merged PRs keyed by head ref.

    The first PR seen for a head ref wins, so the stream should be ordered
    most recent first. When `limit` is reached the stream is abandoned and
    `truncated` is set: older merged PRs are then invisible to the caller.
    """
    result = MergedPullRequests()

    async for pr in stream:
        if limit is not None and result.consumed >= limit:
            result.truncated = True
            break

        result.consumed += 1
        if on_progress:
            on_progress(result.consumed)

        if not pr.is_merged:
            continue
        if pr.head_ref in result.by_head_ref:
            continue
        result.by_head_ref[pr.head_ref] = pr

    logger.debug(
        "Consumed %d PRs, %d merged head refs (truncated=%s)",
        result.consumed,
        len(result),
        result.truncated,
    )
    return result


async def find_remote_candidates(
    stream: AsyncIterable[PullRequest],
    source: PullRequestSource,
    stats: RemoteScanStats | None = None,
    log: Callable[[str], None] | None = None,
) -> AsyncIterator[RemoteCandidate]:
    """
    Yield remote head refs that may be deleted.

    A PR qualifies when it was merged, was not opened from a fork, and its
    head ref still exists and still points at the SHA recorded on the PR.
    Each head ref is yielded at most once.
    """
    stats = stats if stats is not None else RemoteScanStats()
    seen_refs: set[str] = set()

    async for pr in stream:
        stats.scanned += 1
        stats.max_number = max(pr.number, stats.max_number or pr.number)
        stats.min_number = min(pr.number, stats.min_number or pr.number)

        if not pr.is_merged or not pr.head.same_repository(pr.base):
            continue
        if pr.head_ref in seen_refs:
            continue

        try:
            reference = await source.get_ref(pr.head)
        except GitHubAuthError:
            raise
        except PullRequestSourceError as e:
            stats.lookup_errors += 1
            logger.warning("Could not look up heads/%s for #%d: %s", pr.head_ref, pr.number, e)
            continue

        if reference is None:
            continue

        if reference.sha != pr.head_sha:
            stats.mismatched += 1
            if log:
                log(f"{f'#{pr.number}':>6} - Skipping remote: heads/{pr.head_ref} (mismatched refs)")
            continue

        seen_refs.add(pr.head_ref)
        yield RemoteCandidate(pull_request=pr, reference=reference)
