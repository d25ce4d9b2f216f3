"""Branch name validation and worktree path computation."""

from pathlib import Path


def validate_branch_name(value: str) -> str | None:
    """Validate a branch name typed by the user.

    Returns:
        An error message, or None when the name is usable
    """
    if not value.strip():
        return "Worktree name is required"
    if " " in value.strip():
        return "Worktree name cannot contain spaces"
    return None


def worktree_dir_name(repo_name: str, branch_name: str) -> str:
    """Directory name for a branch's worktree: `<repo>-<branch>` with / as -."""
    return f"{repo_name}-{branch_name.replace('/', '-')}"


def compute_worktree_path(main_repo_path: Path, repo_name: str, branch_name: str) -> Path:
    """Worktrees live next to the main repository.

    Example:
        >>> compute_worktree_path(Path("/code/app"), "app", "feature/login")
        PosixPath('/code/app-feature-login')
    """
    return main_repo_path.parent / worktree_dir_name(repo_name, branch_name)
