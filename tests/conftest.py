"""
Pytest fixtures shared by the branch-pruner tests.

Provides in-memory stand-ins for the git runner and the pull request source,
plus factories for branches and pull requests.
"""

from typing import Iterable

import pytest
from rich.console import Console

from branch_pruner.exceptions import GitCommandError, PullRequestSourceError
from branch_pruner.git.base import BaseGitRunner
from branch_pruner.github.base import PullRequestPages, PullRequestSource
from branch_pruner.models.branch import AheadBehind, Branch, RemoteInfo
from branch_pruner.models.pr import PullRequest, PullRequestRef, Reference, RepoIdentity
from branch_pruner.output import OutputFormatter
from branch_pruner.prompts import BranchSelectionPrompt
from branch_pruner.safety.protected import resolve_protected_branches

# ============================================================================
# Factories
# ============================================================================


def make_pr(
    number: int,
    head_ref: str,
    head_sha: str,
    merged: bool = True,
    owner: str = "acme",
    repo: str = "widgets",
    head_owner: str | None = None,
    head_repo_missing: bool = False,
) -> PullRequest:
    base_repo = RepoIdentity(owner=owner, name=repo)
    head_repo = None if head_repo_missing else RepoIdentity(owner=head_owner or owner, name=repo)
    return PullRequest(
        number=number,
        id=number * 1000,
        title=f"PR {number}",
        head=PullRequestRef(ref=head_ref, sha=head_sha, repo=head_repo),
        base=PullRequestRef(ref="main", sha="base-sha", repo=base_repo),
        merge_commit_sha=f"merge-{number}" if merged else None,
    )


def make_branch(name: str, sha: str, is_current: bool = False) -> Branch:
    return Branch(name=name, sha=sha, is_current=is_current)


# ============================================================================
# Fakes
# ============================================================================


class FakeGitRunner(BaseGitRunner):
    """Git runner backed by a dict of branches."""

    def __init__(
        self,
        branches: Iterable[Branch] = (),
        current: str = "",
        ahead: dict[str, int] | None = None,
        fail_delete: set[str] | None = None,
        repository: bool = True,
        remote: RemoteInfo | None = None,
    ):
        self.branches = {branch.name: branch for branch in branches}
        self.current = current
        self.ahead = ahead or {}
        self.fail_delete = fail_delete or set()
        self.repository = repository
        self.remote = remote
        self.deleted: list[str] = []
        self.ahead_calls: list[str] = []

    def is_repository(self) -> bool:
        return self.repository

    def list_local_branches(self) -> list[Branch]:
        return list(self.branches.values())

    def current_branch_name(self) -> str:
        return self.current

    def ahead_behind(self, branch_name: str) -> AheadBehind | None:
        self.ahead_calls.append(branch_name)
        return AheadBehind(ahead=self.ahead.get(branch_name, 0))

    def delete_local_branch(self, branch_name: str, force: bool = False) -> None:
        if branch_name in self.fail_delete:
            raise GitCommandError(f"Failed to delete branch {branch_name}: not fully merged")
        self.branches.pop(branch_name)
        self.deleted.append(branch_name)

    def origin_remote(self) -> RemoteInfo | None:
        return self.remote


class FakePullRequestSource(PullRequestSource):
    """PR source serving a fixed list of PRs and a dict of live refs."""

    def __init__(
        self,
        pull_requests: list[PullRequest] | None = None,
        refs: dict[str, str] | None = None,
        page_size: int = 2,
        lookup_errors: set[str] | None = None,
        fail_stream: Exception | None = None,
    ):
        self.pull_requests = pull_requests or []
        self.refs = dict(refs or {})
        self.page_size = page_size
        self.lookup_errors = lookup_errors or set()
        self.fail_stream = fail_stream
        self.deleted: list[str] = []
        self.stream_calls: list[dict] = []
        self.pages_served = 0

    async def __aenter__(self) -> "FakePullRequestSource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    def stream_closed_pull_requests(self, owner, repo, sort="updated", per_page=100):
        self.stream_calls.append({"owner": owner, "repo": repo, "sort": sort, "per_page": per_page})

        async def fetch(cursor):
            if self.fail_stream:
                raise self.fail_stream
            start = int(cursor or 0)
            end = start + self.page_size
            self.pages_served += 1
            next_cursor = str(end) if end < len(self.pull_requests) else None
            return self.pull_requests[start:end], next_cursor

        return PullRequestPages(fetch)

    async def get_ref(self, head: PullRequestRef) -> Reference | None:
        if head.ref in self.lookup_errors:
            raise PullRequestSourceError("Service unavailable", status_code=503)
        sha = self.refs.get(head.ref)
        if sha is None:
            return None
        return Reference(ref=f"refs/heads/{head.ref}", sha=sha)

    async def delete_ref(self, head: PullRequestRef) -> None:
        self.refs.pop(head.ref, None)
        self.deleted.append(head.ref)


class ScriptedAsk:
    """Feeds canned answers to BranchSelectionPrompt."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200, force_terminal=False, color_system=None)


@pytest.fixture
def output(console) -> OutputFormatter:
    return OutputFormatter(console=console)


@pytest.fixture
def default_config():
    return resolve_protected_branches(None)


def scripted_prompt(console: Console, *answers) -> BranchSelectionPrompt:
    return BranchSelectionPrompt(console, ask=ScriptedAsk(*answers))


def lines(console: Console) -> list[str]:
    return [line.rstrip() for line in console.export_text().splitlines()]
