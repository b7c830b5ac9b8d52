"""Git runner backed by the git executable."""

import logging
import re
import subprocess
import time
from datetime import datetime
from pathlib import Path

from branch_pruner.exceptions import GitCommandError, GitOutputError
from branch_pruner.git.base import BaseGitRunner, GitResult
from branch_pruner.models.branch import AheadBehind, Branch, RemoteInfo

logger = logging.getLogger(__name__)

BRANCH_FORMAT = "%(refname:short)|%(objectname)|%(HEAD)|%(committerdate:iso-strict)"

_HTTPS_REMOTE = re.compile(r"^https://(?:[^@/]+@)?([^/]+)/([^/]+)/([^/]+?)(?:\.git)?/?$")
_SSH_REMOTE = re.compile(r"^(?:ssh://)?git@([^:/]+)[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")


def parse_remote_url(url: str) -> RemoteInfo | None:
    """
    Parse a GitHub remote URL.

    Supports HTTPS (https://github.com/owner/repo.git) and SSH
    (git@github.com:owner/repo.git) forms, including Enterprise hosts.
    """
    url = url.strip()
    for pattern in (_HTTPS_REMOTE, _SSH_REMOTE):
        match = pattern.match(url)
        if match:
            host, owner, repo = match.groups()
            return RemoteInfo(owner=owner, repo=repo, host=host)
    return None


def parse_branch_line(line: str) -> Branch:
    # Only the name field may itself contain "|"
    parts = line.rsplit("|", 3)
    if len(parts) not in (3, 4):
        raise GitOutputError(f"Unexpected git branch output format: {line}")

    last_commit_date = None
    if len(parts) == 4 and parts[3].strip():
        try:
            last_commit_date = datetime.fromisoformat(parts[3].strip())
        except ValueError:
            logger.debug("Unparseable commit date for %s: %s", parts[0], parts[3])

    return Branch(
        name=parts[0].strip(),
        sha=parts[1].strip(),
        is_current=parts[2].strip() == "*",
        last_commit_date=last_commit_date,
    )


class SubprocessGitRunner(BaseGitRunner):
    """Run git commands as blocking subprocesses."""

    def __init__(self, cwd: Path | None = None, timeout_sec: float = 10.0):
        """
        Initialize git runner.

        Args:
            cwd: Working directory, defaults to the process cwd
            timeout_sec: Timeout applied to every git command
        """
        self.cwd = cwd
        self.timeout_sec = timeout_sec

    def _run(self, *args: str, timeout_sec: float | None = None) -> GitResult:
        cmd = ["git", *args]
        start_time = time.time()
        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=timeout_sec or self.timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(
                f"git {' '.join(args)} timed out after {e.timeout}s", command=cmd
            ) from e
        except FileNotFoundError as e:
            raise GitCommandError("git executable not found", command=cmd) from e

        logger.debug("%s -> %s", " ".join(cmd), result.returncode)
        return GitResult(
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            return_code=result.returncode,
            duration_sec=time.time() - start_time,
        )

    def is_repository(self) -> bool:
        try:
            result = self._run("rev-parse", "--git-dir", timeout_sec=5)
        except GitCommandError:
            return False
        return result.return_code == 0

    def list_local_branches(self) -> list[Branch]:
        result = self._run("branch", f"--format={BRANCH_FORMAT}")
        if result.return_code != 0:
            raise GitCommandError(
                f"Failed to get local branches: {result.stderr.strip()}",
                command=["git", "branch"],
                return_code=result.return_code,
                stderr=result.stderr,
            )

        return [
            parse_branch_line(line)
            for line in result.stdout.splitlines()
            if line.strip()
        ]

    def current_branch_name(self) -> str:
        result = self._run("branch", "--show-current", timeout_sec=5)
        if result.return_code != 0:
            raise GitCommandError(
                f"Failed to get current branch: {result.stderr.strip()}",
                command=["git", "branch", "--show-current"],
                return_code=result.return_code,
                stderr=result.stderr,
            )
        return result.stdout.strip()

    def ahead_behind(self, branch_name: str) -> AheadBehind | None:
        try:
            upstream = self._run(
                "rev-parse", "--abbrev-ref", f"{branch_name}@{{upstream}}", timeout_sec=5
            )
            if upstream.return_code != 0 or not upstream.stdout.strip():
                # No upstream configured
                return AheadBehind(ahead=0, behind=0)

            counts = self._run(
                "rev-list",
                "--count",
                "--left-right",
                f"{upstream.stdout.strip()}...{branch_name}",
                timeout_sec=5,
            )
        except GitCommandError as e:
            logger.debug("Could not determine status of %s: %s", branch_name, e)
            return None

        parts = counts.stdout.strip().split("\t")
        if counts.return_code != 0 or len(parts) != 2:
            return None

        try:
            return AheadBehind(behind=int(parts[0]), ahead=int(parts[1]))
        except ValueError:
            return None

    def delete_local_branch(self, branch_name: str, force: bool = False) -> None:
        result = self._run("branch", "-D" if force else "-d", branch_name)
        if result.return_code != 0:
            raise GitCommandError(
                f"Failed to delete branch {branch_name}: {result.stderr.strip()}",
                command=["git", "branch", "-D" if force else "-d", branch_name],
                return_code=result.return_code,
                stderr=result.stderr,
            )

    def origin_remote(self) -> RemoteInfo | None:
        try:
            result = self._run("remote", "get-url", "origin", timeout_sec=5)
        except GitCommandError:
            return None
        if result.return_code != 0:
            return None
        return parse_remote_url(result.stdout)
