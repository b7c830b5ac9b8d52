"""Branch safety rules."""

from branch_pruner.safety.evaluator import BranchSafetyEvaluator, SkipReason, unpushed_reason
from branch_pruner.safety.protected import (
    DEFAULT_PLACEHOLDER,
    DEFAULT_PROTECTED_BRANCHES,
    ProtectedNameMatcher,
    ProtectionMatch,
    expand_default_placeholder,
    resolve_protected_branches,
)

__all__ = [
    "BranchSafetyEvaluator",
    "DEFAULT_PLACEHOLDER",
    "DEFAULT_PROTECTED_BRANCHES",
    "ProtectedNameMatcher",
    "ProtectionMatch",
    "SkipReason",
    "expand_default_placeholder",
    "resolve_protected_branches",
    "unpushed_reason",
]
