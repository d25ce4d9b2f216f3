"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
workflow testable without a real repository.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess (git/real.py)
- FakeGit: In-memory implementation for tests (tests/fakes/git.py)

Operations with expected failure modes (creating or removing a worktree,
fetching) return result records instead of raising. Only unexpected failures
propagate as exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a single git worktree."""

    path: Path
    branch: str | None
    is_main: bool = False


@dataclass(frozen=True)
class BranchExistence:
    """Where a branch name is known: in local heads and/or on origin."""

    local: bool
    remote: bool


@dataclass(frozen=True)
class RemoteRef:
    """A branch explicitly scoped to a remote, e.g. origin/feature-x."""

    remote: str
    branch: str

    def __str__(self) -> str:
        return f"{self.remote}/{self.branch}"


@dataclass(frozen=True)
class GitResult:
    """Outcome of a git command that is allowed to fail."""

    success: bool
    error: str | None = None


@dataclass(frozen=True)
class OriginAhead:
    """Whether origin/<branch> exists and how many commits it is ahead."""

    exists: bool
    ahead_count: int = 0


def linked_worktrees(worktrees: list[WorktreeInfo]) -> list[WorktreeInfo]:
    """Return every worktree except the main one."""
    return [wt for wt in worktrees if not wt.is_main]


def find_worktree_at(worktrees: list[WorktreeInfo], path: Path) -> WorktreeInfo | None:
    """Find the registered worktree whose directory is `path`.

    Args:
        worktrees: List of worktrees to search
        path: Directory to look up

    Returns:
        The matching WorktreeInfo, or None if git does not track that path
    """
    resolved = path.resolve()
    for wt in worktrees:
        if wt.path.resolve() == resolved:
            return wt
    return None


# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def is_inside_git_repo(self, cwd: Path) -> bool:
        """Check whether cwd is inside a git work tree."""
        ...

    @abstractmethod
    def is_inside_worktree(self, cwd: Path) -> bool:
        """Check whether cwd is inside a linked (non-main) worktree.

        A linked worktree has a git dir that differs from the common dir.
        """
        ...

    @abstractmethod
    def get_main_repo_path(self, cwd: Path) -> Path:
        """Get the root directory of the main worktree."""
        ...

    @abstractmethod
    def get_current_worktree_path(self, cwd: Path) -> Path:
        """Get the top-level directory of the worktree containing cwd."""
        ...

    @abstractmethod
    def get_repo_name(self, repo_root: Path) -> str:
        """Get the repository name used to name sibling worktree directories."""
        ...

    @abstractmethod
    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository, main worktree first."""
        ...

    @abstractmethod
    def branch_exists(self, repo_root: Path, branch: str) -> BranchExistence:
        """Check whether a branch exists locally and on origin.

        Query failures are reported as "does not exist".
        """
        ...

    @abstractmethod
    def list_remotes(self, repo_root: Path) -> list[str]:
        """List configured remote names."""
        ...

    @abstractmethod
    def remote_branch_exists(self, repo_root: Path, remote: str, branch: str) -> bool:
        """Check whether `branch` exists on `remote`."""
        ...

    @abstractmethod
    def create_worktree(
        self,
        repo_root: Path,
        path: Path,
        branch: str,
        *,
        create_new: bool,
        base_branch: str | None,
    ) -> GitResult:
        """Add a worktree at `path`.

        Args:
            repo_root: Path to the main repository
            path: Directory for the new worktree
            branch: Branch to check out (or create)
            create_new: Create `branch` instead of checking out an existing one
            base_branch: Start point for a new branch (e.g. origin/main)

        Returns:
            GitResult describing success or the git error output
        """
        ...

    @abstractmethod
    def remove_worktree(self, repo_root: Path, path: Path) -> GitResult:
        """Force-remove the worktree at `path`."""
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None when detached."""
        ...

    @abstractmethod
    def get_default_branch(self, repo_root: Path) -> str:
        """Detect the default branch (origin HEAD, then main or master)."""
        ...

    @abstractmethod
    def is_origin_ahead(self, repo_root: Path, branch: str) -> OriginAhead:
        """Count commits on origin/<branch> that are not on <branch>."""
        ...

    @abstractmethod
    def fetch(self, repo_root: Path) -> GitResult:
        """Fetch from origin."""
        ...
