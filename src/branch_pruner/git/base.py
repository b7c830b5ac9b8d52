"""Base git runner interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from branch_pruner.models.branch import AheadBehind, Branch, RemoteInfo


@dataclass
class GitResult:
    """Result of a git command."""

    stdout: str
    stderr: str
    return_code: int
    duration_sec: float = 0.0


class BaseGitRunner(ABC):
    """Operations the pruner needs from a local git checkout."""

    @abstractmethod
    def is_repository(self) -> bool:
        """Whether the working directory is inside a git repository."""
        pass

    @abstractmethod
    def list_local_branches(self) -> list[Branch]:
        """
        List local branches.

        Raises:
            GitCommandError: If git fails
            GitOutputError: If git output cannot be parsed
        """
        pass

    @abstractmethod
    def current_branch_name(self) -> str:
        """Name of the checked-out branch, empty when HEAD is detached."""
        pass

    @abstractmethod
    def ahead_behind(self, branch_name: str) -> AheadBehind | None:
        """
        Commit counts relative to the branch's upstream.

        Returns:
            AheadBehind(0, 0) when no upstream is configured, None when unknown
        """
        pass

    @abstractmethod
    def delete_local_branch(self, branch_name: str, force: bool = False) -> None:
        """
        Delete a local branch.

        Raises:
            GitCommandError: If git refuses or fails
        """
        pass

    @abstractmethod
    def origin_remote(self) -> RemoteInfo | None:
        """GitHub coordinates of the `origin` remote, if it points at GitHub."""
        pass
