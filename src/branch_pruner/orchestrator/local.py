"""Local branch pruning."""

import logging

from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from branch_pruner.exceptions import GitCommandError
from branch_pruner.git.base import BaseGitRunner
from branch_pruner.github.base import PullRequestSource
from branch_pruner.models.config import SafetyConfig
from branch_pruner.models.plan import DeletionCandidate, PruneSummary
from branch_pruner.orchestrator.batch import process_batches
from branch_pruner.orchestrator.performance import (
    ProcessingPlan,
    create_processing_plan,
    get_performance_recommendations,
)
from branch_pruner.output import OutputFormatter
from branch_pruner.prompts import BranchSelectionPrompt, Choice
from branch_pruner.reconciler import MergedPullRequests, build_merged_pr_map
from branch_pruner.safety.evaluator import BranchSafetyEvaluator

logger = logging.getLogger(__name__)

UNSAFE_LIST_THRESHOLD = 20
UNSAFE_LIST_SHOWN = 10


def pluralize_branches(count: int) -> str:
    return f"{count} branch{'' if count == 1 else 'es'}"


class LocalBranchPruner:
    """
    Delete local branches whose pull requests were merged.

    The run moves through scanning, reconciling against PR history,
    partitioning into safe and unsafe branches, an optional interactive
    confirmation, deletion and a final summary.
    """

    def __init__(
        self,
        git: BaseGitRunner,
        source: PullRequestSource,
        owner: str,
        repo: str,
        safety_config: SafetyConfig,
        output: OutputFormatter,
        dry_run: bool = False,
        force: bool = False,
        prompt: BranchSelectionPrompt | None = None,
    ):
        self.git = git
        self.source = source
        self.owner = owner
        self.repo = repo
        self.evaluator = BranchSafetyEvaluator(safety_config)
        self.output = output
        self.dry_run = dry_run
        self.force = force
        self.prompt = prompt or BranchSelectionPrompt(output.console)

    async def perform(self) -> PruneSummary:
        """
        Run local pruning end to end.

        Returns:
            PruneSummary for this run

        Raises:
            GitCommandError: If branches cannot be listed
            PullRequestSourceError: If PR history cannot be read
        """
        summary = PruneSummary(dry_run=self.dry_run)

        self.output.output("\nScanning for local branches that can be safely deleted...")
        branches = self.git.list_local_branches()
        current_branch = self.git.current_branch_name()
        self.output.output(f"Found {len(branches)} local branches")

        if not branches:
            self.output.output("No local branches found.")
            return summary

        plan = create_processing_plan(len(branches))
        recommendations = get_performance_recommendations(len(branches))
        if recommendations:
            self.output.output("\n" + "\n".join(recommendations))
        if plan.memory_optimized:
            self.output.output(
                f"\n🔧 Using memory-optimized processing "
                f"(estimated duration: {plan.estimated_duration})"
            )

        self.output.output("Fetching merged pull requests from GitHub...")
        merged = await self._fetch_merged_prs(plan)
        self.output.output(f"Found {len(merged)} merged pull requests")
        summary.truncated_history = merged.truncated
        if merged.truncated:
            self.output.warning(
                f"Limited to {plan.pr_fetch_limit} most recent PRs for performance; "
                "branches merged through older PRs are treated as having no PR"
            )

        candidates = self.evaluator.evaluate_branches(
            branches,
            current_branch,
            merged.by_head_ref,
            ahead_lookup=self.git.ahead_behind,
        )
        safe = [c for c in candidates if c.verdict.safe]
        unsafe = [c for c in candidates if not c.verdict.safe]
        summary.skipped_unsafe = len(unsafe)

        self._report_partition(safe, unsafe)

        if not safe:
            self.output.output("\nNo branches are safe to delete.")
            return summary

        to_delete = safe
        if not self.force and not self.dry_run:
            selected = self.prompt.run(self._choices(safe), "Select branches to delete:")
            if selected is None:
                self.output.output("\nOperation cancelled.")
                summary.cancelled = True
                return summary
            if not selected:
                self.output.output("\nNo branches selected for deletion.")
                return summary
            chosen = set(selected)
            to_delete = [c for c in safe if c.branch.name in chosen]

        verb = "Would delete" if self.dry_run else "Deleting"
        self.output.output(f"\n{verb} {pluralize_branches(len(to_delete))}:")

        if len(to_delete) > plan.batch_size:
            await self._delete_in_batches(to_delete, plan, summary)
        else:
            self._delete_sequentially(to_delete, summary)

        self._print_summary(summary)
        return summary

    async def _fetch_merged_prs(self, plan: ProcessingPlan) -> MergedPullRequests:
        stream = self.source.stream_closed_pull_requests(
            self.owner, self.repo, sort="updated", per_page=100
        )
        console = self.output.console

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
            disable=not (plan.limit_pr_fetch and console.is_terminal),
        ) as progress:
            task = progress.add_task("[cyan]Fetching PRs...", total=plan.pr_fetch_limit)
            merged = await build_merged_pr_map(
                stream,
                limit=plan.pr_fetch_limit,
                on_progress=lambda count: progress.update(task, completed=count),
            )

        logger.debug("Read %d PRs from %d pages", merged.consumed, stream.pages_fetched)
        return merged

    def _report_partition(
        self, safe: list[DeletionCandidate], unsafe: list[DeletionCandidate]
    ) -> None:
        self.output.output("\nBranch Analysis:")
        self.output.output(f"  Safe to delete: {len(safe)}")
        self.output.output(f"  Unsafe to delete: {len(unsafe)}")

        if not unsafe:
            return

        self.output.output("\nSkipping unsafe branches:")
        shown = UNSAFE_LIST_SHOWN if len(unsafe) > UNSAFE_LIST_THRESHOLD else len(unsafe)
        for candidate in unsafe[:shown]:
            self.output.output(f"  - {candidate.branch.name} ({candidate.verdict.reason})")
        if len(unsafe) > shown:
            self.output.output(f"  ... and {len(unsafe) - shown} more")

    def _choices(self, safe: list[DeletionCandidate]) -> list[Choice]:
        choices = []
        for candidate in safe:
            pr_info = (
                f"PR #{candidate.pull_request.number}" if candidate.pull_request else "no PR"
            )
            last_commit = candidate.branch.last_commit_date
            last_commit_text = last_commit.date().isoformat() if last_commit else "unknown"
            choices.append(
                Choice(
                    value=candidate.branch.name,
                    label=f"{candidate.branch.name} ({pr_info}, last commit: {last_commit_text})",
                )
            )
        return choices

    def _delete_one(self, candidate: DeletionCandidate, summary: PruneSummary) -> bool:
        name = candidate.branch.name
        try:
            if self.dry_run:
                self.output.output(f"[DRY RUN] Would delete: {name} ({candidate.pr_label})")
            else:
                self.git.delete_local_branch(name)
                self.output.output(f"Deleted: {name} ({candidate.pr_label})")
        except GitCommandError as e:
            self.output.output(f"Error deleting {name}: {e}")
            summary.errors += 1
            return False

        summary.deleted += 1
        summary.candidates.append(name)
        return True

    def _delete_sequentially(
        self, to_delete: list[DeletionCandidate], summary: PruneSummary
    ) -> None:
        console = self.output.console
        with Progress(
            BarColumn(),
            TextColumn("{task.description}"),
            MofNCompleteColumn(),
            console=console,
            transient=True,
            disable=not console.is_terminal,
        ) as progress:
            task = progress.add_task("", total=len(to_delete))
            for candidate in to_delete:
                progress.update(
                    task, description=f"{candidate.branch.name} ({candidate.pr_label})"
                )
                self._delete_one(candidate, summary)
                progress.advance(task)

    async def _delete_in_batches(
        self,
        to_delete: list[DeletionCandidate],
        plan: ProcessingPlan,
        summary: PruneSummary,
    ) -> None:
        self.output.output(
            f"🔧 Processing {len(to_delete)} branches in batches of {plan.batch_size}"
        )

        # Handled branches; item-by-item retries skip them
        done: set[str] = set()

        async def delete_batch(batch: list[DeletionCandidate]) -> list[bool]:
            results = []
            for candidate in batch:
                if candidate.branch.name in done:
                    continue
                results.append(self._delete_one(candidate, summary))
                done.add(candidate.branch.name)
            return results

        result = await process_batches(
            to_delete,
            delete_batch,
            batch_size=plan.batch_size,
            on_batch=lambda number, total, size: self.output.output(
                f"Processing batch {number}/{total} ({size} items)..."
            ),
        )
        for candidate, error in result.errors:
            logger.warning("Unexpected failure deleting %s: %s", candidate.branch.name, error)
            self.output.output(f"Error deleting {candidate.branch.name}: {error}")
            summary.errors += 1

    def _print_summary(self, summary: PruneSummary) -> None:
        items = []
        if self.dry_run:
            items.append(f"Would delete: {pluralize_branches(summary.deleted)}")
        else:
            items.append(f"Successfully deleted: {pluralize_branches(summary.deleted)}")
        if summary.errors > 0:
            items.append(f"Errors: {summary.errors}")
        if summary.skipped_unsafe > 0:
            items.append(f"Skipped (unsafe): {summary.skipped_unsafe}")
        self.output.summary(items)
