"""Fake implementation of Git for testing.

All repository state is passed to the constructor; mutating operations
(create_worktree, remove_worktree, fetch) update the in-memory worktree list
and are recorded for assertions.
"""

from pathlib import Path

from worktree_manager.core.git.abc import (
    BranchExistence,
    Git,
    GitResult,
    OriginAhead,
    WorktreeInfo,
    find_worktree_at,
)


class FakeGit(Git):
    """In-memory fake of git operations.

    Examples:
        >>> git = FakeGit(repo_root=Path("/code/app"), local_branches={"main"})
        >>> git.branch_exists(Path("/code/app"), "main")
        BranchExistence(local=True, remote=False)
    """

    def __init__(
        self,
        *,
        repo_root: Path,
        inside_repo: bool = True,
        current_worktree: Path | None = None,
        current_branch: str | None = "main",
        default_branch: str = "main",
        local_branches: set[str] | None = None,
        remote_branches: dict[str, set[str]] | None = None,
        worktrees: list[WorktreeInfo] | None = None,
        origin_ahead: int = 0,
        create_error: str | None = None,
        remove_error: str | None = None,
        fetch_error: str | None = None,
        branch_lookup_error: str | None = None,
    ) -> None:
        """Initialize fake with predetermined repository state.

        Args:
            repo_root: Main repository path
            inside_repo: Whether cwd is inside a git repository at all
            current_worktree: Linked worktree the user is in (None = main repo)
            current_branch: Branch checked out at cwd (None = detached HEAD)
            default_branch: Repository default branch
            local_branches: Branches under refs/heads
            remote_branches: Branches per remote name, e.g. {"origin": {"main"}}
            worktrees: Linked worktrees (the main worktree is added automatically)
            origin_ahead: Commits origin/<default> is ahead of the local default
            create_error: When set, create_worktree fails with this message
            remove_error: When set, remove_worktree fails with this message
            fetch_error: When set, fetch fails with this message
            branch_lookup_error: When set, branch_exists raises RuntimeError
        """
        self._repo_root = repo_root
        self._inside_repo = inside_repo
        self._current_worktree = current_worktree
        self._current_branch = current_branch
        self._default_branch = default_branch
        self._local_branches = set(local_branches or set())
        self._remote_branches = {k: set(v) for k, v in (remote_branches or {}).items()}
        self._worktrees = [WorktreeInfo(path=repo_root, branch=default_branch, is_main=True)]
        self._worktrees.extend(worktrees or [])
        self._origin_ahead = origin_ahead
        self._create_error = create_error
        self._remove_error = remove_error
        self._fetch_error = fetch_error
        self._branch_lookup_error = branch_lookup_error

        self._created: list[tuple[Path, str, bool, str | None]] = []
        self._removed: list[Path] = []
        self._fetch_count = 0

    def is_inside_git_repo(self, cwd: Path) -> bool:
        return self._inside_repo

    def is_inside_worktree(self, cwd: Path) -> bool:
        return self._current_worktree is not None

    def get_main_repo_path(self, cwd: Path) -> Path:
        return self._repo_root

    def get_current_worktree_path(self, cwd: Path) -> Path:
        return self._current_worktree or self._repo_root

    def get_repo_name(self, repo_root: Path) -> str:
        return repo_root.name

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        return list(self._worktrees)

    def branch_exists(self, repo_root: Path, branch: str) -> BranchExistence:
        if self._branch_lookup_error is not None:
            raise RuntimeError(self._branch_lookup_error)
        return BranchExistence(
            local=branch in self._local_branches,
            remote=branch in self._remote_branches.get("origin", set()),
        )

    def list_remotes(self, repo_root: Path) -> list[str]:
        return sorted(self._remote_branches)

    def remote_branch_exists(self, repo_root: Path, remote: str, branch: str) -> bool:
        return branch in self._remote_branches.get(remote, set())

    def create_worktree(
        self,
        repo_root: Path,
        path: Path,
        branch: str,
        *,
        create_new: bool,
        base_branch: str | None,
    ) -> GitResult:
        self._created.append((path, branch, create_new, base_branch))
        if self._create_error is not None:
            return GitResult(success=False, error=self._create_error)
        if create_new:
            self._local_branches.add(branch)
        self._worktrees.append(WorktreeInfo(path=path, branch=branch))
        return GitResult(success=True)

    def remove_worktree(self, repo_root: Path, path: Path) -> GitResult:
        self._removed.append(path)
        if self._remove_error is not None:
            return GitResult(success=False, error=self._remove_error)
        existing = find_worktree_at(self._worktrees, path)
        if existing is not None:
            self._worktrees.remove(existing)
        return GitResult(success=True)

    def get_current_branch(self, cwd: Path) -> str | None:
        return self._current_branch

    def get_default_branch(self, repo_root: Path) -> str:
        return self._default_branch

    def is_origin_ahead(self, repo_root: Path, branch: str) -> OriginAhead:
        return OriginAhead(exists=self._origin_ahead > 0, ahead_count=self._origin_ahead)

    def fetch(self, repo_root: Path) -> GitResult:
        self._fetch_count += 1
        if self._fetch_error is not None:
            return GitResult(success=False, error=self._fetch_error)
        return GitResult(success=True)

    @property
    def created_worktrees(self) -> list[tuple[Path, str, bool, str | None]]:
        """(path, branch, create_new, base_branch) for every create_worktree call."""
        return list(self._created)

    @property
    def removed_worktrees(self) -> list[Path]:
        return list(self._removed)

    @property
    def fetch_count(self) -> int:
        return self._fetch_count
