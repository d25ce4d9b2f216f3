"""Decide how the worktree's branch is obtained.

Resolution order:
1. A qualified `remote/branch` reference that exists on that remote is
   tracked (a local `branch` is created from `remote/branch`).
2. An existing local branch is checked out as is.
3. A branch only on origin is tracked if the user agrees, else created fresh.
4. Anything else is created. When the user is on the default branch and
   origin is ahead of it, origin's tip is offered as the start point.

Git query failures count as "not found", so resolution always falls through
to creating a branch rather than aborting.
"""

import logging
from pathlib import Path

from worktree_manager.cli.commands.create.types import BranchResolution
from worktree_manager.cli.prompts import CANCELLED, Cancelled, Prompter, is_cancelled
from worktree_manager.core.git.abc import BranchExistence, Git, OriginAhead, RemoteRef

logger = logging.getLogger(__name__)


def parse_qualified_remote_ref(branch_name: str, remotes: list[str]) -> RemoteRef | None:
    """Split `remote/branch` when the prefix names a configured remote.

    Args:
        branch_name: Name as typed by the user
        remotes: Configured remote names

    Returns:
        RemoteRef, or None when the name is not qualified by a known remote
    """
    remote, sep, branch = branch_name.partition("/")
    if not sep or not branch or remote not in remotes:
        return None
    return RemoteRef(remote=remote, branch=branch)


def _safe_branch_exists(git: Git, repo_root: Path, branch_name: str) -> BranchExistence:
    try:
        return git.branch_exists(repo_root, branch_name)
    except RuntimeError as e:
        logger.debug("Branch lookup for %s failed, treating as new: %s", branch_name, e)
        return BranchExistence(local=False, remote=False)


def _find_qualified_ref(git: Git, repo_root: Path, branch_name: str) -> RemoteRef | None:
    try:
        remote_ref = parse_qualified_remote_ref(branch_name, git.list_remotes(repo_root))
        if remote_ref is None:
            return None
        if git.remote_branch_exists(repo_root, remote_ref.remote, remote_ref.branch):
            return remote_ref
    except RuntimeError as e:
        logger.debug("Remote lookup for %s failed: %s", branch_name, e)
        return None
    logger.debug("%s looks qualified but does not exist on its remote", branch_name)
    return None


def prompt_origin_base(
    git: Git, prompter: Prompter, repo_root: Path, cwd: Path
) -> str | None | Cancelled:
    """Offer origin/<default> as start point when origin is ahead of it.

    Only asked when the current branch is the default branch.

    Returns:
        "origin/<default>" if accepted, None if not offered or declined
    """
    try:
        current = git.get_current_branch(cwd)
        default = git.get_default_branch(repo_root)
        if current is None or current != default:
            return None
        ahead = git.is_origin_ahead(repo_root, default)
    except RuntimeError as e:
        logger.debug("Default branch check failed: %s", e)
        return None

    if not ahead.exists:
        return None

    answer = prompter.confirm(
        f"Create from origin/{default}? ({_describe_ahead(ahead)})", default=True
    )
    if is_cancelled(answer):
        return CANCELLED
    return f"origin/{default}" if answer else None


def _describe_ahead(ahead: OriginAhead) -> str:
    if ahead.ahead_count == 1:
        return "origin is 1 commit ahead"
    return f"origin is {ahead.ahead_count} commits ahead"


def resolve_branch(
    git: Git,
    prompter: Prompter,
    repo_root: Path,
    cwd: Path,
    branch_name: str,
    *,
    base_override: str | None = None,
) -> BranchResolution | Cancelled:
    """Resolve `branch_name` into a creation strategy.

    Args:
        git: Git operations
        prompter: Used for the track-remote and origin-base questions
        repo_root: Main repository path
        cwd: Directory the tool was started in (for the current branch)
        branch_name: Requested branch
        base_override: Start point chosen earlier for new branches; skips the
            origin-base question

    Returns:
        BranchResolution, or CANCELLED if the user backed out of a question
    """
    remote_ref = _find_qualified_ref(git, repo_root, branch_name)
    if remote_ref is not None:
        logger.debug("Tracking qualified ref %s", remote_ref)
        return BranchResolution(
            action="track-qualified",
            branch_name=remote_ref.branch,
            create_new_branch=True,
            base_branch=str(remote_ref),
            remote_ref=remote_ref,
        )

    existence = _safe_branch_exists(git, repo_root, branch_name)
    if existence.local:
        prompter.note(f'Branch "{branch_name}" already exists locally.', title="Branch found")
        return BranchResolution(
            action="use-existing", branch_name=branch_name, create_new_branch=False
        )

    if existence.remote:
        track = prompter.confirm(
            f'Branch "{branch_name}" exists on remote. Track it?', default=True
        )
        if is_cancelled(track):
            return CANCELLED
        if track:
            return BranchResolution(
                action="track",
                branch_name=branch_name,
                create_new_branch=True,
                base_branch=f"origin/{branch_name}",
            )

    if base_override is not None:
        base: str | None = base_override
    else:
        offered = prompt_origin_base(git, prompter, repo_root, cwd)
        if is_cancelled(offered):
            return CANCELLED
        base = offered

    return BranchResolution(
        action="create", branch_name=branch_name, create_new_branch=True, base_branch=base
    )
