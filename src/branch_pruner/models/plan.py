"""Deletion plan and run summary models."""

from pydantic import BaseModel, Field, model_validator

from branch_pruner.models.branch import Branch
from branch_pruner.models.pr import PullRequest


class SafetyVerdict(BaseModel):
    """Outcome of evaluating one branch."""

    safe: bool = Field(..., description="May the branch be deleted")
    reason: str | None = Field(default=None, description="Why not, when unsafe")

    @model_validator(mode="after")
    def _reason_required_when_unsafe(self) -> "SafetyVerdict":
        if not self.safe and not self.reason:
            raise ValueError("an unsafe verdict needs a reason")
        return self

    @classmethod
    def ok(cls) -> "SafetyVerdict":
        return cls(safe=True)

    @classmethod
    def unsafe(cls, reason: str) -> "SafetyVerdict":
        return cls(safe=False, reason=reason)


class DeletionCandidate(BaseModel):
    """One entry of the deletion plan."""

    branch: Branch = Field(..., description="Branch under consideration")
    verdict: SafetyVerdict = Field(..., description="Safety verdict")
    pull_request: PullRequest | None = Field(
        default=None, description="Matching merged PR, if any"
    )

    @property
    def pr_label(self) -> str:
        return f"#{self.pull_request.number}" if self.pull_request else "no PR"


class PruneSummary(BaseModel):
    """Counts reported at the end of one pruning phase."""

    deleted: int = Field(default=0, description="Deleted (or would be, in dry run)")
    errors: int = Field(default=0, description="Failed deletions")
    skipped_unsafe: int = Field(default=0, description="Branches skipped as unsafe")
    lookup_errors: int = Field(default=0, description="Failed remote ref lookups")
    dry_run: bool = Field(default=False, description="No mutation was attempted")
    cancelled: bool = Field(default=False, description="User cancelled at confirmation")
    truncated_history: bool = Field(
        default=False, description="PR history was capped; older PRs were not seen"
    )
    candidates: list[str] = Field(
        default_factory=list, description="Branches deleted or that would be deleted"
    )
