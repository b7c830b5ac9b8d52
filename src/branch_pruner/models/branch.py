"""Branch models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Branch(BaseModel):
    """A local or remote branch ref, snapshotted for one run."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Branch name (e.g., feature/x)")
    sha: str = Field(..., description="Commit SHA the ref points to")
    is_current: bool = Field(default=False, description="Checked-out branch (local only)")
    last_commit_date: datetime | None = Field(
        default=None, description="Committer date of the branch tip"
    )


class AheadBehind(BaseModel):
    """Commit counts relative to a branch's upstream."""

    ahead: int = Field(default=0, description="Commits on the branch missing upstream")
    behind: int = Field(default=0, description="Upstream commits missing on the branch")


class RemoteInfo(BaseModel):
    """GitHub repository coordinates parsed from a git remote URL."""

    owner: str = Field(..., description="Repository owner/organization")
    repo: str = Field(..., description="Repository name")
    host: str = Field(default="github.com", description="GitHub host")
