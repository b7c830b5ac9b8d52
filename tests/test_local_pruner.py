import asyncio

import pytest

from branch_pruner.exceptions import GitCommandError, GitOutputError
from branch_pruner.models.config import SafetyConfig
from branch_pruner.orchestrator.local import LocalBranchPruner, pluralize_branches

from conftest import FakeGitRunner, FakePullRequestSource, lines, make_branch, make_pr, scripted_prompt


def pruner(git, source, output, config, dry_run=False, force=True, prompt=None):
    return LocalBranchPruner(
        git=git,
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


@pytest.fixture
def scenario_git():
    return FakeGitRunner(
        [
            make_branch("main", "m0", is_current=True),
            make_branch("feature-1", "abc123"),
            make_branch("feature-2", "def456"),
        ],
        current="main",
    )


@pytest.fixture
def scenario_source():
    return FakePullRequestSource(
        [make_pr(1, "feature-1", "abc123"), make_pr(2, "feature-2", "zzz999")]
    )


# =============================================================================
# Core scenarios
# =============================================================================


class TestScenarios:

    def test_merged_branch_is_deleted_once(self, scenario_git, scenario_source, output, console, default_config):
        summary = run(pruner(scenario_git, scenario_source, output, default_config))

        assert scenario_git.deleted == ["feature-1"]
        assert summary.deleted == 1
        assert summary.skipped_unsafe == 2
        assert summary.candidates == ["feature-1"]
        text = lines(console)
        assert "Deleted: feature-1 (#1)" in text
        assert "  - main (current branch)" in text
        assert "  - feature-2 (SHA mismatch with PR head)" in text
        assert "  Successfully deleted: 1 branch" in text
        assert "  Skipped (unsafe): 2" in text

    def test_current_branch_never_deleted(self, output, default_config):
        git = FakeGitRunner([make_branch("main", "abc", is_current=True)], current="main")
        source = FakePullRequestSource([make_pr(7, "main", "abc")])
        summary = run(pruner(git, source, output, default_config))
        assert git.deleted == []
        assert summary.deleted == 0

    def test_prs_requested_most_recently_updated_first(self, scenario_git, scenario_source, output, default_config):
        run(pruner(scenario_git, scenario_source, output, default_config))
        assert scenario_source.stream_calls == [
            {"owner": "acme", "repo": "widgets", "sort": "updated", "per_page": 100}
        ]

    def test_unpushed_commits_are_skipped(self, output, console, default_config):
        git = FakeGitRunner([make_branch("wip", "a")], ahead={"wip": 2})
        summary = run(pruner(git, FakePullRequestSource(), output, default_config))
        assert git.deleted == []
        assert summary.skipped_unsafe == 1
        assert "  - wip (2 unpushed commits)" in lines(console)

    def test_branch_without_pr_is_labelled(self, output, console, default_config):
        git = FakeGitRunner([make_branch("scratch", "a")])
        run(pruner(git, FakePullRequestSource(), output, default_config))
        assert "Deleted: scratch (no PR)" in lines(console)


# =============================================================================
# Dry run
# =============================================================================


class TestDryRun:

    def test_nothing_is_deleted(self, scenario_git, scenario_source, output, console, default_config):
        summary = run(pruner(scenario_git, scenario_source, output, default_config, dry_run=True, force=False))

        assert scenario_git.deleted == []
        assert summary.dry_run
        assert summary.deleted == 1
        text = lines(console)
        assert "[DRY RUN] Would delete: feature-1 (#1)" in text
        assert "  Would delete: 1 branch" in text

    def test_repeated_dry_runs_agree(self, scenario_git, scenario_source, output, default_config):
        first = run(pruner(scenario_git, scenario_source, output, default_config, dry_run=True))
        second = run(pruner(scenario_git, scenario_source, output, default_config, dry_run=True))
        assert first.candidates == second.candidates == ["feature-1"]
        assert first.deleted == second.deleted

    def test_dry_run_never_prompts(self, scenario_git, scenario_source, output, console, default_config):
        prompt = scripted_prompt(console, "q")
        summary = run(pruner(scenario_git, scenario_source, output, default_config, dry_run=True, force=False, prompt=prompt))
        assert not summary.cancelled
        assert prompt._ask.prompts == []


# =============================================================================
# Interactive selection
# =============================================================================


class TestInteractive:

    @pytest.fixture
    def git(self):
        return FakeGitRunner([make_branch("a", "1"), make_branch("b", "2"), make_branch("c", "3")])

    def test_cancel(self, git, output, console, default_config):
        prompt = scripted_prompt(console, "q")
        summary = run(pruner(git, FakePullRequestSource(), output, default_config, force=False, prompt=prompt))
        assert summary.cancelled
        assert git.deleted == []
        assert "Operation cancelled." in lines(console)

    def test_empty_selection(self, git, output, console, default_config):
        prompt = scripted_prompt(console, "n", "")
        summary = run(pruner(git, FakePullRequestSource(), output, default_config, force=False, prompt=prompt))
        assert not summary.cancelled
        assert git.deleted == []
        assert "No branches selected for deletion." in lines(console)

    def test_partial_selection(self, git, output, default_config, console):
        prompt = scripted_prompt(console, "2", "")
        run(pruner(git, FakePullRequestSource(), output, default_config, force=False, prompt=prompt))
        assert git.deleted == ["a", "c"]


# =============================================================================
# Reporting and failures
# =============================================================================


class TestReporting:

    def test_no_branches(self, output, console, default_config):
        summary = run(pruner(FakeGitRunner(), FakePullRequestSource(), output, default_config))
        assert summary.deleted == 0
        assert "No local branches found." in lines(console)

    def test_nothing_safe(self, output, console, default_config):
        git = FakeGitRunner([make_branch("main", "a", is_current=True)], current="main")
        run(pruner(git, FakePullRequestSource(), output, default_config))
        assert "No branches are safe to delete." in lines(console)

    def test_unsafe_list_is_capped(self, output, console):
        git = FakeGitRunner([make_branch(f"keep-{i:02d}", "s") for i in range(25)])
        config = SafetyConfig(protected_branches=["keep-*"])
        run(pruner(git, FakePullRequestSource(), output, config))
        text = lines(console)
        assert sum(1 for line in text if line.startswith("  - keep-")) == 10
        assert "  ... and 15 more" in text

    def test_delete_failure_is_counted_and_run_continues(self, output, console, default_config):
        git = FakeGitRunner([make_branch("a", "1"), make_branch("b", "2")], fail_delete={"a"})
        summary = run(pruner(git, FakePullRequestSource(), output, default_config))
        assert git.deleted == ["b"]
        assert summary.errors == 1
        text = lines(console)
        assert "Error deleting a: Failed to delete branch a: not fully merged" in text
        assert "  Errors: 1" in text

    def test_git_failure_while_scanning_is_fatal(self, output, default_config):
        class Broken(FakeGitRunner):
            def list_local_branches(self):
                raise GitOutputError("Unexpected git branch output format: x")

        with pytest.raises(GitCommandError):
            run(pruner(Broken(), FakePullRequestSource(), output, default_config))

    def test_large_sets_are_batched(self, output, console, default_config):
        git = FakeGitRunner([make_branch(f"topic-{i}", "s") for i in range(60)])
        summary = run(pruner(git, FakePullRequestSource(), output, default_config))
        assert summary.deleted == 60
        text = lines(console)
        assert "Processing batch 1/2 (50 items)..." in text
        assert "Processing batch 2/2 (10 items)..." in text

    def test_unexpected_failure_inside_a_batch_is_counted_once(self, output, console, default_config):
        class Flaky(FakeGitRunner):
            def delete_local_branch(self, branch_name, force=False):
                if branch_name == "topic-2":
                    raise PermissionError("cannot lock ref")
                super().delete_local_branch(branch_name, force)

        git = Flaky([make_branch(f"topic-{i}", "s") for i in range(60)])
        summary = run(pruner(git, FakePullRequestSource(), output, default_config))

        assert len(git.deleted) == 59
        assert len(set(git.deleted)) == 59
        assert summary.deleted == 59
        assert summary.errors == 1
        text = lines(console)
        assert "Error deleting topic-2: cannot lock ref" in text
        assert not any(line.startswith("Error deleting topic-0") for line in text)
        assert text.count("Deleted: topic-0 (no PR)") == 1

    def test_pr_history_cap_is_reported(self, output, console, default_config):
        git = FakeGitRunner([make_branch(f"topic-{i}", "s") for i in range(60)])
        source = FakePullRequestSource([make_pr(n, f"old-{n}", "s") for n in range(501, 0, -1)], page_size=100)
        summary = run(pruner(git, source, output, default_config, dry_run=True))
        assert summary.truncated_history
        assert any("Limited to 500 most recent PRs" in line for line in lines(console))

    @pytest.mark.parametrize("count, text", [(0, "0 branches"), (1, "1 branch"), (2, "2 branches")])
    def test_pluralize(self, count, text):
        assert pluralize_branches(count) == text
