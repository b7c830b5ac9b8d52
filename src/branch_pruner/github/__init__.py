"""Pull request source implementations."""

from branch_pruner.github.base import PullRequestPages, PullRequestSource
from branch_pruner.github.client import DEFAULT_API_URL, GitHubClient

__all__ = ["DEFAULT_API_URL", "GitHubClient", "PullRequestPages", "PullRequestSource"]
