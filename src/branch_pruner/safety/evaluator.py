"""Branch safety evaluation."""

import logging
from enum import Enum
from typing import Callable, Iterable, Mapping

from branch_pruner.models.branch import AheadBehind, Branch
from branch_pruner.models.config import SafetyConfig
from branch_pruner.models.plan import DeletionCandidate, SafetyVerdict
from branch_pruner.models.pr import PullRequest
from branch_pruner.safety.protected import ProtectedNameMatcher, ProtectionMatch

logger = logging.getLogger(__name__)

AheadLookup = Callable[[str], AheadBehind | None]


class SkipReason(str, Enum):
    """User-visible reasons a branch is not deleted."""

    CURRENT_BRANCH = "current branch"
    PROTECTED_BRANCH = "protected branch"
    RELEASE_BRANCH = "release/hotfix branch"
    SHA_MISMATCH = "SHA mismatch with PR head"
    NOT_MERGED = "PR was not merged"


def unpushed_reason(ahead: int) -> str:
    return f"{ahead} unpushed commit{'' if ahead == 1 else 's'}"


class BranchSafetyEvaluator:
    """
    Decide whether a single branch may be deleted.

    Rules run cheapest first and the first match wins:
    current branch, protected name, PR head SHA, PR merge state, unpushed
    commits. Evaluation has no side effects.
    """

    def __init__(self, config: SafetyConfig):
        self.config = config
        self.matcher = ProtectedNameMatcher(config)

    def evaluate(
        self,
        branch: Branch,
        current_branch_name: str,
        matching_pr: PullRequest | None = None,
        ahead_count: int | None = None,
    ) -> SafetyVerdict:
        """
        Classify a branch.

        Args:
            branch: Branch snapshot
            current_branch_name: Name of the checked-out branch
            matching_pr: Merged PR whose head ref is this branch, if any
            ahead_count: Unpushed commits (local mode); None counts as zero

        Returns:
            SafetyVerdict, with a reason when unsafe
        """
        verdict = self._check_static(branch, current_branch_name, matching_pr)
        if verdict is not None:
            return verdict

        if ahead_count and ahead_count > 0:
            return SafetyVerdict.unsafe(unpushed_reason(ahead_count))

        return SafetyVerdict.ok()

    def _check_static(
        self,
        branch: Branch,
        current_branch_name: str,
        matching_pr: PullRequest | None,
    ) -> SafetyVerdict | None:
        if branch.is_current or branch.name == current_branch_name:
            return SafetyVerdict.unsafe(SkipReason.CURRENT_BRANCH.value)

        protection = self.matcher.match(branch.name)
        if protection is ProtectionMatch.CONFIGURED:
            return SafetyVerdict.unsafe(SkipReason.PROTECTED_BRANCH.value)
        if protection is ProtectionMatch.CONVENTION:
            return SafetyVerdict.unsafe(SkipReason.RELEASE_BRANCH.value)

        if matching_pr is not None:
            if branch.sha != matching_pr.head_sha:
                return SafetyVerdict.unsafe(SkipReason.SHA_MISMATCH.value)
            if not matching_pr.is_merged:
                return SafetyVerdict.unsafe(SkipReason.NOT_MERGED.value)

        return None

    def evaluate_branches(
        self,
        branches: Iterable[Branch],
        current_branch_name: str,
        merged_prs: Mapping[str, PullRequest] | None = None,
        ahead_lookup: AheadLookup | None = None,
    ) -> list[DeletionCandidate]:
        """
        Build the deletion plan for a set of branches.

        `ahead_lookup` is only consulted for branches that pass every other
        rule, so no git status call is made for branches already disqualified.
        """
        merged_prs = merged_prs or {}
        plan: list[DeletionCandidate] = []

        for branch in branches:
            matching_pr = merged_prs.get(branch.name)
            verdict = self._check_static(branch, current_branch_name, matching_pr)

            if verdict is None:
                status = ahead_lookup(branch.name) if ahead_lookup else None
                verdict = self.evaluate(
                    branch,
                    current_branch_name,
                    matching_pr,
                    ahead_count=status.ahead if status else None,
                )

            if not verdict.safe:
                logger.debug("Skipping %s: %s", branch.name, verdict.reason)

            plan.append(
                DeletionCandidate(branch=branch, verdict=verdict, pull_request=matching_pr)
            )

        return plan
