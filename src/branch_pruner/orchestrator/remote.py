"""Remote branch pruning."""

import logging

from rich.progress import Progress, SpinnerColumn, TextColumn

from branch_pruner.exceptions import GitHubAuthError, PullRequestSourceError
from branch_pruner.github.base import PullRequestSource
from branch_pruner.models.branch import Branch
from branch_pruner.models.config import SafetyConfig
from branch_pruner.models.plan import DeletionCandidate, PruneSummary
from branch_pruner.orchestrator.local import pluralize_branches
from branch_pruner.output import OutputFormatter
from branch_pruner.prompts import BranchSelectionPrompt, Choice
from branch_pruner.reconciler import RemoteCandidate, RemoteScanStats, find_remote_candidates
from branch_pruner.safety.evaluator import BranchSafetyEvaluator

logger = logging.getLogger(__name__)


def pr_prefix(number: int) -> str:
    """Right-align `#N` to a fixed width so PR lines line up."""
    return f"{f'#{number}':>6}"


class RemoteBranchPruner:
    """Delete remote head branches of merged pull requests."""

    def __init__(
        self,
        source: PullRequestSource,
        owner: str,
        repo: str,
        safety_config: SafetyConfig,
        output: OutputFormatter,
        dry_run: bool = False,
        force: bool = False,
        prompt: BranchSelectionPrompt | None = None,
        per_page: int = 100,
    ):
        self.source = source
        self.owner = owner
        self.repo = repo
        self.evaluator = BranchSafetyEvaluator(safety_config)
        self.output = output
        self.dry_run = dry_run
        self.force = force
        self.prompt = prompt or BranchSelectionPrompt(output.console)
        self.per_page = per_page

    async def perform(self) -> PruneSummary:
        """
        Run remote pruning end to end.

        Returns:
            PruneSummary for this run

        Raises:
            GitHubAuthError: If the token is rejected
            PullRequestSourceError: If PR history cannot be read
        """
        summary = PruneSummary(dry_run=self.dry_run)

        self.output.output(f"\nScanning merged pull requests in {self.owner}/{self.repo}...")
        stats = RemoteScanStats()
        found = await self._collect(stats)
        summary.lookup_errors = stats.lookup_errors

        self.output.verbose_output(
            f"Scanned {stats.scanned} closed PRs in {stats.pages} pages, "
            f"{stats.mismatched} with mismatched refs"
        )

        safe: list[tuple[DeletionCandidate, RemoteCandidate]] = []
        for remote in found:
            pr = remote.pull_request
            branch = Branch(name=pr.head_ref, sha=remote.reference.sha)
            verdict = self.evaluator.evaluate(branch, "", matching_pr=pr)
            if not verdict.safe:
                summary.skipped_unsafe += 1
                self.output.verbose_output(
                    f"{pr_prefix(pr.number)} - Skipping remote: heads/{pr.head_ref} ({verdict.reason})"
                )
                continue
            candidate = DeletionCandidate(branch=branch, verdict=verdict, pull_request=pr)
            safe.append((candidate, remote))

        if not safe:
            self.output.output("No remote branches are safe to delete.")
            self._print_summary(summary)
            return summary

        if not self.force and not self.dry_run:
            choices = [
                Choice(
                    value=candidate.branch.name,
                    label=f"{candidate.branch.name} (PR #{remote.pull_request.number})",
                )
                for candidate, remote in safe
            ]
            selected = self.prompt.run(choices, "Select remote branches to delete:")
            if selected is None:
                self.output.output("\nOperation cancelled.")
                summary.cancelled = True
                return summary
            if not selected:
                self.output.output("\nNo branches selected for deletion.")
                return summary
            chosen = set(selected)
            safe = [(c, r) for c, r in safe if c.branch.name in chosen]

        for _, remote in safe:
            await self._delete_one(remote, summary)

        self._print_summary(summary)
        return summary

    async def _collect(self, stats: RemoteScanStats) -> list[RemoteCandidate]:
        stream = self.source.stream_closed_pull_requests(
            self.owner, self.repo, sort="created", per_page=self.per_page
        )
        found: list[RemoteCandidate] = []
        console = self.output.console

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
            disable=not console.is_terminal,
        ) as progress:
            task = progress.add_task("[cyan]Scanning pull requests...", total=None)
            async for remote in find_remote_candidates(
                stream, self.source, stats=stats, log=self.output.verbose_output
            ):
                found.append(remote)
                progress.update(
                    task, description=f"[cyan]Scanning pull requests... #{stats.min_number}"
                )

        stats.pages = stream.pages_fetched
        return found

    async def _delete_one(self, remote: RemoteCandidate, summary: PruneSummary) -> None:
        pr = remote.pull_request
        prefix = "[DRY RUN] " if self.dry_run else ""
        self.output.output(f"{prefix}{pr_prefix(pr.number)} - Deleting remote: heads/{pr.head_ref}")

        if not self.dry_run:
            try:
                await self.source.delete_ref(pr.head)
            except GitHubAuthError:
                raise
            except PullRequestSourceError as e:
                self.output.output(f"Error deleting heads/{pr.head_ref}: {e}")
                summary.errors += 1
                return
            logger.debug("Deleted heads/%s (#%d)", pr.head_ref, pr.number)

        summary.deleted += 1
        summary.candidates.append(pr.head_ref)

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
        if summary.lookup_errors > 0:
            items.append(f"Lookup errors: {summary.lookup_errors}")
        self.output.summary(items)
