"""Deletion orchestration for remote and local branches."""

from branch_pruner.orchestrator.combined import prune_all
from branch_pruner.orchestrator.local import LocalBranchPruner
from branch_pruner.orchestrator.performance import (
    ProcessingPlan,
    create_processing_plan,
    get_performance_recommendations,
)
from branch_pruner.orchestrator.remote import RemoteBranchPruner

__all__ = [
    "LocalBranchPruner",
    "ProcessingPlan",
    "RemoteBranchPruner",
    "create_processing_plan",
    "get_performance_recommendations",
    "prune_all",
]
