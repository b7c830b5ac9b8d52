import asyncio

import pytest

from branch_pruner.exceptions import GitHubAuthError, PullRequestSourceError
from branch_pruner.orchestrator.remote import RemoteBranchPruner, pr_prefix
from branch_pruner.output import OutputFormatter

from conftest import FakePullRequestSource, lines, make_pr, scripted_prompt


def pruner(source, output, config, dry_run=False, force=True, prompt=None):
    return RemoteBranchPruner(
        source=source,
        owner="acme",
        repo="widgets",
        safety_config=config,
        output=output,
        dry_run=dry_run,
        force=force,
        prompt=prompt,
    )


def run(pruner_instance):
    return asyncio.run(pruner_instance.perform())


class TestRemotePruner:

    def test_missing_ref_is_excluded_without_error(self, output, console, default_config):
        source = FakePullRequestSource([make_pr(3, "old-feature", "abc")], refs={})
        summary = run(pruner(source, output, default_config))
        assert source.deleted == []
        assert summary.deleted == 0
        assert summary.errors == 0
        assert "No remote branches are safe to delete." in lines(console)

    def test_matching_ref_is_deleted(self, output, console, default_config):
        source = FakePullRequestSource([make_pr(1, "feature-1", "abc123")], refs={"feature-1": "abc123"})
        summary = run(pruner(source, output, default_config))
        assert source.deleted == ["feature-1"]
        assert summary.candidates == ["feature-1"]
        text = lines(console)
        assert "    #1 - Deleting remote: heads/feature-1" in text
        assert "  Successfully deleted: 1 branch" in text

    def test_prs_requested_newest_first_by_creation(self, output, default_config):
        source = FakePullRequestSource()
        run(pruner(source, output, default_config))
        assert source.stream_calls[0]["sort"] == "created"

    def test_dry_run(self, output, console, default_config):
        source = FakePullRequestSource([make_pr(42, "feature-1", "abc")], refs={"feature-1": "abc"})
        summary = run(pruner(source, output, default_config, dry_run=True, force=False))
        assert source.deleted == []
        assert summary.deleted == 1
        text = lines(console)
        assert "[DRY RUN]    #42 - Deleting remote: heads/feature-1" in text
        assert "  Would delete: 1 branch" in text

    def test_repeated_dry_runs_agree(self, output, default_config):
        source = FakePullRequestSource(
            [make_pr(2, "b", "s"), make_pr(1, "a", "s")], refs={"a": "s", "b": "s"}
        )
        first = run(pruner(source, output, default_config, dry_run=True))
        second = run(pruner(source, output, default_config, dry_run=True))
        assert first.candidates == second.candidates == ["b", "a"]

    def test_protected_remote_branch_is_kept(self, console, default_config):
        output = OutputFormatter(verbose=True, console=console)
        source = FakePullRequestSource(
            [make_pr(8, "develop", "s"), make_pr(9, "release/1.2", "r")],
            refs={"develop": "s", "release/1.2": "r"},
        )
        summary = run(pruner(source, output, default_config))
        assert source.deleted == []
        assert summary.skipped_unsafe == 2
        assert "    #8 - Skipping remote: heads/develop (protected branch)" in lines(console)

    def test_mismatch_only_reported_when_verbose(self, console, default_config):
        source = FakePullRequestSource([make_pr(5, "moved", "old")], refs={"moved": "new"})

        run(pruner(source, OutputFormatter(console=console), default_config))
        assert not any("mismatched refs" in line for line in lines(console))

        run(pruner(source, OutputFormatter(verbose=True, console=console), default_config))
        assert "    #5 - Skipping remote: heads/moved (mismatched refs)" in lines(console)

    def test_delete_failure_is_counted(self, output, console, default_config):
        class Flaky(FakePullRequestSource):
            async def delete_ref(self, head):
                if head.ref == "a":
                    raise PullRequestSourceError("Reference does not exist", status_code=422)
                await super().delete_ref(head)

        source = Flaky([make_pr(2, "a", "s"), make_pr(1, "b", "s")], refs={"a": "s", "b": "s"})
        summary = run(pruner(source, output, default_config))
        assert source.deleted == ["b"]
        assert summary.errors == 1
        assert "  Errors: 1" in lines(console)

    def test_auth_failure_on_delete_is_fatal(self, output, default_config):
        class Forbidden(FakePullRequestSource):
            async def delete_ref(self, head):
                raise GitHubAuthError("Forbidden", status_code=403)

        source = Forbidden([make_pr(1, "a", "s")], refs={"a": "s"})
        with pytest.raises(GitHubAuthError):
            run(pruner(source, output, default_config))

    def test_lookup_errors_are_summarized(self, output, console, default_config):
        source = FakePullRequestSource(
            [make_pr(1, "a", "s")], refs={"a": "s"}, lookup_errors={"a"}
        )
        summary = run(pruner(source, output, default_config))
        assert summary.lookup_errors == 1
        assert "  Lookup errors: 1" in lines(console)

    def test_interactive_cancel(self, output, console, default_config):
        source = FakePullRequestSource([make_pr(1, "a", "s")], refs={"a": "s"})
        summary = run(pruner(source, output, default_config, force=False, prompt=scripted_prompt(console, "q")))
        assert summary.cancelled
        assert source.deleted == []

    def test_interactive_selection(self, output, console, default_config):
        source = FakePullRequestSource(
            [make_pr(2, "a", "s"), make_pr(1, "b", "s")], refs={"a": "s", "b": "s"}
        )
        run(pruner(source, output, default_config, force=False, prompt=scripted_prompt(console, "1", "")))
        assert source.deleted == ["b"]

    def test_pr_prefix_width(self):
        assert pr_prefix(7) == "    #7"
        assert pr_prefix(123456) == "#123456"

    def test_verbose_scan_reports_pages_read(self, console, default_config):
        output = OutputFormatter(verbose=True, console=console)
        source = FakePullRequestSource([make_pr(n, f"topic-{n}", "s") for n in (3, 2, 1)], page_size=2)
        run(pruner(source, output, default_config))
        assert "Scanned 3 closed PRs in 2 pages, 0 with mismatched refs" in lines(console)
