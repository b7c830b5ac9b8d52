"""Main CLI entry point."""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from branch_pruner.config import describe_config_files, find_config_files, load_safety_config
from branch_pruner.exceptions import BranchPrunerError, RepositoryNotFoundError
from branch_pruner.git import BaseGitRunner, SubprocessGitRunner
from branch_pruner.github import GitHubClient
from branch_pruner.github.gh_cli import api_url_for_host, get_gh_token
from branch_pruner.models.config import SafetyConfig
from branch_pruner.orchestrator import LocalBranchPruner, RemoteBranchPruner, prune_all
from branch_pruner.output import OutputFormatter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="branch-pruner",
    help="Delete remote and local git branches whose pull requests were merged",
)
console = Console()

OWNER_PATTERN = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")
REPO_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")

NO_REPO_DETECTED = (
    "No repo specified and unable to detect from git remote. "
    "Please run from a git repository or specify owner/repo."
)


@dataclass
class RunContext:
    """Everything a pruning command needs once inputs are resolved."""

    owner: str
    repo: str
    token: str
    api_url: str
    safety_config: SafetyConfig
    git: BaseGitRunner
    output: OutputFormatter


def parse_repo_slug(value: str) -> tuple[str, str]:
    """
    Split and validate an `owner/repo` argument.

    Raises:
        ValueError: With a user-facing message when the value is malformed
    """
    parts = value.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError("Repository must be in the format 'owner/repo'")

    owner, repo = parts
    if not OWNER_PATTERN.match(owner):
        raise ValueError(
            "Invalid owner name. Must contain only alphanumeric characters and hyphens, "
            "and cannot start or end with a hyphen."
        )
    if not REPO_PATTERN.match(repo):
        raise ValueError(
            "Invalid repository name. Must contain only alphanumeric characters, dots, "
            "underscores, and hyphens."
        )
    return owner, repo


def _validate_repo(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        parse_repo_slug(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    return value


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def make_git_runner() -> BaseGitRunner:
    return SubprocessGitRunner()


def make_source(token: str, api_url: str) -> GitHubClient:
    return GitHubClient(token=token, base_url=api_url)


def _resolve_context(
    repo: str | None,
    token: str | None,
    api_url: str | None,
    config_path: Path | None,
    output: OutputFormatter,
) -> RunContext:
    git = make_git_runner()
    remote = git.origin_remote() if git.is_repository() else None

    if repo:
        owner, name = parse_repo_slug(repo)
        host = remote.host if remote and (remote.owner, remote.repo) == (owner, name) else None
    elif remote:
        owner, name, host = remote.owner, remote.repo, remote.host
    else:
        raise RepositoryNotFoundError(NO_REPO_DETECTED)

    if not token:
        token = get_gh_token(host)
        logger.debug("Using token from gh CLI")

    safety_config = load_safety_config(find_config_files(explicit_path=config_path))
    logger.debug("Protected branches: %s", ", ".join(safety_config.protected_branches))

    return RunContext(
        owner=owner,
        repo=name,
        token=token,
        api_url=api_url or api_url_for_host(host),
        safety_config=safety_config,
        git=git,
        output=output,
    )


def _local_pruner(ctx: RunContext, source: GitHubClient, dry_run: bool, force: bool) -> LocalBranchPruner:
    return LocalBranchPruner(
        git=ctx.git,
        source=source,
        owner=ctx.owner,
        repo=ctx.repo,
        safety_config=ctx.safety_config,
        output=ctx.output,
        dry_run=dry_run,
        force=force,
    )


def _remote_pruner(ctx: RunContext, source: GitHubClient, dry_run: bool, force: bool) -> RemoteBranchPruner:
    return RemoteBranchPruner(
        source=source,
        owner=ctx.owner,
        repo=ctx.repo,
        safety_config=ctx.safety_config,
        output=ctx.output,
        dry_run=dry_run,
        force=force,
    )


async def _run_remote(ctx: RunContext, dry_run: bool, force: bool) -> None:
    async with make_source(ctx.token, ctx.api_url) as source:
        await _remote_pruner(ctx, source, dry_run, force).perform()


async def _run_local(ctx: RunContext, dry_run: bool, force: bool) -> None:
    async with make_source(ctx.token, ctx.api_url) as source:
        await _local_pruner(ctx, source, dry_run, force).perform()


async def _run_all(ctx: RunContext, dry_run: bool, force: bool) -> int:
    async with make_source(ctx.token, ctx.api_url) as source:

        async def local_phase():
            if not ctx.git.is_repository():
                raise RepositoryNotFoundError(
                    "This command must be run from within a git repository."
                )
            return await _local_pruner(ctx, source, dry_run, force).perform()

        return await prune_all(
            _remote_pruner(ctx, source, dry_run, force).perform,
            local_phase,
            ctx.output,
        )


@app.command()
def remote(
    repo: str = typer.Argument(
        None, callback=_validate_repo, help="Repository as owner/repo (default: origin remote)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be deleted"),
    force: bool = typer.Option(
        False, "--force", help="Skip interactive selection and delete all safe branches"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show skipped branches and debug logs"),
    token: str = typer.Option(None, "--token", envvar="GITHUB_TOKEN", help="GitHub API token"),
    api_url: str = typer.Option(None, "--api-url", envvar="GITHUB_API_URL", help="GitHub API root URL"),
    config: Path = typer.Option(
        None, "--config", envvar="BRANCH_PRUNER_CONFIG", help="Configuration file path"
    ),
):
    """
    Delete remote branches whose pull requests were merged.

    Example:
        branch-pruner remote owner/repo --dry-run
    """
    _setup_logging(verbose)
    output = OutputFormatter(verbose=verbose)
    try:
        ctx = _resolve_context(repo, token, api_url, config, output)
        asyncio.run(_run_remote(ctx, dry_run, force))
    except BranchPrunerError as e:
        output.error(f"Error: {e}")
        raise typer.Exit(1)


@app.command()
def local(
    repo: str = typer.Argument(
        None, callback=_validate_repo, help="Repository as owner/repo (default: origin remote)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be deleted"),
    force: bool = typer.Option(
        False, "--force", help="Skip interactive selection and delete all safe branches"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show skipped branches and debug logs"),
    token: str = typer.Option(None, "--token", envvar="GITHUB_TOKEN", help="GitHub API token"),
    api_url: str = typer.Option(None, "--api-url", envvar="GITHUB_API_URL", help="GitHub API root URL"),
    config: Path = typer.Option(
        None, "--config", envvar="BRANCH_PRUNER_CONFIG", help="Configuration file path"
    ),
):
    """
    Delete local branches whose pull requests were merged.

    Example:
        branch-pruner local --dry-run
    """
    _setup_logging(verbose)
    output = OutputFormatter(verbose=verbose)
    try:
        if not make_git_runner().is_repository():
            raise RepositoryNotFoundError("This command must be run from within a git repository.")
        ctx = _resolve_context(repo, token, api_url, config, output)
        asyncio.run(_run_local(ctx, dry_run, force))
    except BranchPrunerError as e:
        output.error(f"Error: {e}")
        raise typer.Exit(1)


@app.command(name="all")
def all_branches(
    repo: str = typer.Argument(
        None, callback=_validate_repo, help="Repository as owner/repo (default: origin remote)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be deleted"),
    force: bool = typer.Option(
        False, "--force", help="Skip interactive selection and delete all safe branches"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show skipped branches and debug logs"),
    token: str = typer.Option(None, "--token", envvar="GITHUB_TOKEN", help="GitHub API token"),
    api_url: str = typer.Option(None, "--api-url", envvar="GITHUB_API_URL", help="GitHub API root URL"),
    config: Path = typer.Option(
        None, "--config", envvar="BRANCH_PRUNER_CONFIG", help="Configuration file path"
    ),
):
    """
    Delete merged remote branches, then merged local branches.

    Exits non-zero only when both phases fail.
    """
    _setup_logging(verbose)
    output = OutputFormatter(verbose=verbose)
    try:
        if not repo and not make_git_runner().is_repository():
            raise RepositoryNotFoundError(
                "This command must be run from within a git repository or specify owner/repo."
            )
        ctx = _resolve_context(repo, token, api_url, config, output)
        exit_code = asyncio.run(_run_all(ctx, dry_run, force))
    except BranchPrunerError as e:
        output.error(f"Error: {e}")
        raise typer.Exit(1)

    if exit_code:
        raise typer.Exit(exit_code)


@app.command(name="config-paths")
def config_paths(
    config: Path = typer.Option(
        None, "--config", envvar="BRANCH_PRUNER_CONFIG", help="Configuration file path"
    ),
):
    """Show where configuration is looked up and what was found."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Path", style="cyan")
    table.add_column("Exists")
    table.add_column("Loaded")
    table.add_column("Error", style="red")

    for status in describe_config_files(find_config_files(explicit_path=config)):
        table.add_row(
            str(status.path),
            "✓" if status.exists else "-",
            "✓" if status.loaded else "-",
            Text(status.error or ""),
        )

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from branch_pruner import __version__

    console.print(f"branch-pruner version {__version__}")


if __name__ == "__main__":
    app()
