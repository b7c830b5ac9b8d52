"""Pull request and git reference models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RepoIdentity(BaseModel):
    """Repository a pull request ref lives in."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Repository owner login")
    name: str = Field(..., description="Repository name")
    fork: bool = Field(default=False, description="Is the repository a fork")

    @classmethod
    def from_api(cls, payload: dict[str, Any] | None) -> "RepoIdentity | None":
        if not payload:
            return None
        return cls(
            owner=payload["owner"]["login"],
            name=payload["name"],
            fork=bool(payload.get("fork", False)),
        )


class PullRequestRef(BaseModel):
    """Head or base side of a pull request."""

    model_config = ConfigDict(frozen=True)

    ref: str = Field(..., description="Branch name")
    sha: str = Field(..., description="Commit SHA recorded on the PR")
    repo: RepoIdentity | None = Field(
        default=None, description="Repository, None when the fork was deleted"
    )

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "PullRequestRef":
        return cls(
            ref=payload["ref"],
            sha=payload["sha"],
            repo=RepoIdentity.from_api(payload.get("repo")),
        )

    def same_repository(self, other: "PullRequestRef") -> bool:
        """True when both refs live in the same owner/name repository."""
        if self.repo is None or other.repo is None:
            return False
        return self.repo.owner == other.repo.owner and self.repo.name == other.repo.name


class PullRequest(BaseModel):
    """A closed pull request as reported by GitHub."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., description="PR number")
    id: int = Field(..., description="PR id")
    title: str = Field(default="", description="PR title")
    head: PullRequestRef = Field(..., description="Branch under review")
    base: PullRequestRef = Field(..., description="Target branch")
    merge_commit_sha: str | None = Field(
        default=None, description="Merge commit SHA, set only when merged"
    )
    merged_at: datetime | None = Field(default=None, description="Merge time")
    updated_at: datetime | None = Field(default=None, description="Last update time")

    @property
    def head_ref(self) -> str:
        return self.head.ref

    @property
    def head_sha(self) -> str:
        return self.head.sha

    @property
    def is_merged(self) -> bool:
        return bool(self.merge_commit_sha)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "PullRequest":
        """Build from a GitHub REST `pulls` item."""
        return cls(
            number=payload["number"],
            id=payload["id"],
            title=payload.get("title") or "",
            head=PullRequestRef.from_api(payload["head"]),
            base=PullRequestRef.from_api(payload["base"]),
            merge_commit_sha=payload.get("merge_commit_sha"),
            merged_at=payload.get("merged_at"),
            updated_at=payload.get("updated_at"),
        )


class Reference(BaseModel):
    """Live state of a git ref on the remote."""

    ref: str = Field(..., description="Fully qualified ref, e.g. refs/heads/x")
    sha: str = Field(..., description="Object SHA the ref points to")

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Reference":
        return cls(ref=payload["ref"], sha=payload["object"]["sha"])
