"""Local git access."""

from branch_pruner.git.base import BaseGitRunner, GitResult
from branch_pruner.git.runner import SubprocessGitRunner, parse_remote_url

__all__ = ["BaseGitRunner", "GitResult", "SubprocessGitRunner", "parse_remote_url"]
