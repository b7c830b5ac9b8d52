"""Exception hierarchy for branch-pruner."""


class BranchPrunerError(Exception):
    """Base class for every error the CLI reports to the user."""


class RepositoryNotFoundError(BranchPrunerError):
    """Raised when no git repository or GitHub repository can be determined."""


class GitCommandError(BranchPrunerError):
    """A git subprocess failed or timed out."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        return_code: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command or []
        self.return_code = return_code
        self.stderr = stderr


class GitOutputError(GitCommandError):
    """Git produced output that could not be parsed."""


class PullRequestSourceError(BranchPrunerError):
    """The pull-request source (GitHub API) returned an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(PullRequestSourceError):
    """Authentication or authorization against the GitHub API failed."""


class GhCliError(BranchPrunerError):
    """The GitHub CLI is missing or not authenticated."""

    def __init__(self, kind: str, message: str, instructions: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.instructions = instructions

    def __str__(self) -> str:
        return self.instructions or super().__str__()


class ConfigLoadError(BranchPrunerError):
    """A configuration file could not be loaded or failed validation."""

    def __init__(
        self,
        message: str,
        path: str,
        validation_errors: list[str] | None = None,
    ):
        super().__init__(message)
        self.path = path
        self.validation_errors = validation_errors or []


class InvalidProtectedPatternError(BranchPrunerError):
    """A protected-branch entry is not a usable branch name or glob."""

    def __init__(self, pattern: str, problem: str):
        super().__init__(f"Invalid protected branch entry {pattern!r}: {problem}")
        self.pattern = pattern
        self.problem = problem
