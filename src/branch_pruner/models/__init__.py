"""Data models for branch-pruner."""

from branch_pruner.models.branch import AheadBehind, Branch, RemoteInfo
from branch_pruner.models.config import SafetyConfig
from branch_pruner.models.plan import DeletionCandidate, PruneSummary, SafetyVerdict
from branch_pruner.models.pr import PullRequest, PullRequestRef, Reference, RepoIdentity

__all__ = [
    "AheadBehind",
    "Branch",
    "DeletionCandidate",
    "PruneSummary",
    "PullRequest",
    "PullRequestRef",
    "Reference",
    "RemoteInfo",
    "RepoIdentity",
    "SafetyConfig",
    "SafetyVerdict",
]
