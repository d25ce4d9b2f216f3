"""Conflict handling when the target worktree directory already exists.

The user chooses to open, replace, delete or leave the existing directory.
Deleting always goes through `git worktree remove` first so git's worktree
registry stays consistent; a raw recursive delete is only the fallback for
directories git does not track (or refuses to remove).
"""

import logging
from pathlib import Path

from worktree_manager.cli.commands.create.types import ExistingAction
from worktree_manager.cli.prompts import CANCELLED, Cancelled, Choice, Prompter, is_cancelled
from worktree_manager.core.file_ops import FileOps
from worktree_manager.core.git.abc import Git, find_worktree_at
from worktree_manager.core.operations import OperationResult

logger = logging.getLogger(__name__)

EXISTING_PATH_CHOICES: list[Choice[ExistingAction | None]] = [
    Choice(value="open", label="Open", hint="open existing in editor"),
    Choice(value="replace", label="Replace", hint="delete and recreate worktree"),
    Choice(value="delete", label="Delete", hint="remove worktree"),
    Choice(value=None, label="Cancel", hint="abort operation"),
]


def prompt_existing_path_action(
    prompter: Prompter,
    path: Path,
    *,
    title: str = "Worktree already exists",
    branch: str | None = None,
    allow_replace: bool = True,
    allow_delete: bool = True,
) -> ExistingAction | Cancelled:
    """Ask what to do with an existing worktree directory.

    Choosing "Cancel" is the same as cancelling the prompt. Replace is hidden
    when there is no branch to recreate the worktree from. Delete is hidden
    for the main worktree.
    """
    details = f"Path: {path}"
    if branch is not None:
        details += f"\nBranch: {branch}"
    prompter.note(details, title=title)

    hidden: set[ExistingAction] = set()
    if not allow_replace:
        hidden.add("replace")
    if not allow_delete:
        hidden.add("delete")
    choices = [choice for choice in EXISTING_PATH_CHOICES if choice.value not in hidden]
    answer = prompter.select("What would you like to do?", choices, default="open")
    if is_cancelled(answer) or answer is None:
        return CANCELLED
    return answer


def remove_existing_worktree(
    git: Git, file_ops: FileOps, repo_root: Path, path: Path
) -> OperationResult:
    """Remove a worktree directory, git-aware first.

    Args:
        git: Git operations
        file_ops: Filesystem operations for the fallback delete
        repo_root: Main repository path
        path: Directory to remove

    Returns:
        OperationResult describing what happened

    Raises:
        RuntimeError: If the directory still exists after every attempt
    """
    registered = find_worktree_at(git.list_worktrees(repo_root), path) is not None

    if registered:
        result = git.remove_worktree(repo_root, path)
        if result.success and not file_ops.path_exists(path):
            return OperationResult(success=True, message="Removed")
        logger.debug("git worktree remove did not clean %s: %s", path, result.error)
    else:
        logger.debug("%s is not a registered worktree, deleting directory", path)

    if file_ops.path_exists(path):
        file_ops.remove_tree(path)
    if file_ops.path_exists(path):
        raise RuntimeError(f"Failed to remove {path}")
    return OperationResult(success=True, message="Removed")
