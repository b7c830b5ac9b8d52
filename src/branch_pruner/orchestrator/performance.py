"""Processing plan for repositories with many branches."""

import math
from dataclasses import dataclass
from enum import Enum

DEFAULT_BATCH_SIZE = 50
DEFAULT_PR_FETCH_LIMIT = 1000


class FetchStrategy(str, Enum):
    STANDARD = "standard"
    BATCHED = "batched"
    LIMITED = "limited-with-batching"


class MemoryRating(str, Enum):
    OPTIMAL = "optimal"
    HIGH = "high-memory"
    CONSTRAINED = "memory-constrained"


@dataclass
class MemoryEstimate:
    estimated_mb: int
    rating: MemoryRating


@dataclass
class ProcessingPlan:
    """How a run over `branch_count` branches should be carried out."""

    branch_count: int
    strategy: FetchStrategy
    batch_size: int
    pr_fetch_limit: int | None
    memory_optimized: bool
    estimated_seconds: int

    @property
    def limit_pr_fetch(self) -> bool:
        return self.pr_fetch_limit is not None

    @property
    def estimated_duration(self) -> str:
        if self.estimated_seconds > 60:
            return f"{math.ceil(self.estimated_seconds / 60)} minutes"
        return f"{self.estimated_seconds} seconds"


def choose_fetch_strategy(
    branch_count: int, pr_fetch_limit: int = DEFAULT_PR_FETCH_LIMIT
) -> tuple[FetchStrategy, int | None]:
    """Pick the PR fetch strategy and cap for a branch count."""
    if branch_count <= 50:
        return FetchStrategy.STANDARD, None
    if branch_count <= 200:
        return FetchStrategy.BATCHED, 500
    return FetchStrategy.LIMITED, pr_fetch_limit


def estimate_memory(branch_count: int, pr_count: int) -> MemoryEstimate:
    # ~2KB per branch, ~5KB per PR
    total_mb = (branch_count * 2 + pr_count * 5) / 1024

    rating = MemoryRating.OPTIMAL
    if total_mb > 2:
        rating = MemoryRating.HIGH
    if total_mb > 10:
        rating = MemoryRating.CONSTRAINED

    return MemoryEstimate(estimated_mb=round(total_mb), rating=rating)


def create_processing_plan(
    branch_count: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    pr_fetch_limit: int = DEFAULT_PR_FETCH_LIMIT,
) -> ProcessingPlan:
    """
    Build a processing plan sized to the number of branches.

    Args:
        branch_count: Number of branches to process
        batch_size: Base batch size, raised for large branch counts
        pr_fetch_limit: PR cap applied above 200 branches

    Returns:
        ProcessingPlan
    """
    strategy, limit = choose_fetch_strategy(branch_count, pr_fetch_limit)
    pr_count = limit or branch_count
    memory = estimate_memory(branch_count, pr_count)

    if branch_count > 500:
        batch_size = min(100, math.ceil(branch_count / 10))
    elif branch_count > 200:
        batch_size = 75

    return ProcessingPlan(
        branch_count=branch_count,
        strategy=strategy,
        batch_size=batch_size,
        pr_fetch_limit=limit,
        memory_optimized=memory.rating is not MemoryRating.OPTIMAL,
        estimated_seconds=math.ceil(branch_count * 0.1 + pr_count * 0.05),
    )


def get_performance_recommendations(branch_count: int) -> list[str]:
    """User-facing hints for large branch counts."""
    recommendations = []

    if branch_count > 100:
        recommendations.append("📊 Large dataset detected - using optimized processing")

    if branch_count > 300:
        recommendations.append("🔍 Consider using search/filtering to narrow down results")
        recommendations.append("⚡ Use --force flag to skip interactive mode for faster processing")

    if branch_count > 500:
        recommendations.append("🏃 Processing may take a few minutes - progress will be shown")
        recommendations.append(
            f"💾 Limited PR fetching to most recent {DEFAULT_PR_FETCH_LIMIT} PRs for performance"
        )

    if branch_count > 1000:
        recommendations.append(
            "🚀 Very large repository detected - consider running in off-peak hours"
        )
        recommendations.append(
            "📈 Consider using git cleanup commands first to reduce branch count"
        )

    return recommendations
