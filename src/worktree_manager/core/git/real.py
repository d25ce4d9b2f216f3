"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import logging
from pathlib import Path

from worktree_manager.core.git.abc import (
    BranchExistence,
    Git,
    GitResult,
    OriginAhead,
    WorktreeInfo,
)
from worktree_manager.core.subprocess import (
    command_output,
    command_succeeds,
    run_subprocess_with_context,
)

logger = logging.getLogger(__name__)


def _absolute(cwd: Path, raw: str) -> Path:
    path = Path(raw)
    if not path.is_absolute():
        path = cwd / path
    return path.resolve()


def parse_worktree_porcelain(output: str) -> list[WorktreeInfo]:
    """Parse `git worktree list --porcelain` output.

    The first entry is always the main worktree.

    Args:
        output: Raw stdout of the porcelain listing

    Returns:
        Worktrees in git's order, the first one marked as main
    """
    worktrees: list[WorktreeInfo] = []
    current_path: Path | None = None
    current_branch: str | None = None

    for line in output.splitlines():
        line = line.strip()
        if line.startswith("worktree "):
            current_path = Path(line.split(maxsplit=1)[1])
            current_branch = None
        elif line.startswith("branch "):
            if current_path is None:
                continue
            branch_ref = line.split(maxsplit=1)[1]
            current_branch = branch_ref.removeprefix("refs/heads/")
        elif line == "" and current_path is not None:
            worktrees.append(WorktreeInfo(path=current_path, branch=current_branch))
            current_path = None
            current_branch = None

    if current_path is not None:
        worktrees.append(WorktreeInfo(path=current_path, branch=current_branch))

    # Mark first worktree as main (git guarantees this ordering)
    if worktrees:
        first = worktrees[0]
        worktrees[0] = WorktreeInfo(path=first.path, branch=first.branch, is_main=True)

    return worktrees


# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def is_inside_git_repo(self, cwd: Path) -> bool:
        """Check whether cwd is inside a git work tree."""
        return command_output(["git", "rev-parse", "--is-inside-work-tree"], cwd=cwd) == "true"

    def is_inside_worktree(self, cwd: Path) -> bool:
        """Check whether cwd is inside a linked worktree."""
        git_dir = command_output(["git", "rev-parse", "--git-dir"], cwd=cwd)
        common_dir = command_output(["git", "rev-parse", "--git-common-dir"], cwd=cwd)
        if git_dir is None or common_dir is None:
            return False
        return _absolute(cwd, git_dir) != _absolute(cwd, common_dir)

    def get_main_repo_path(self, cwd: Path) -> Path:
        """Get the main worktree root: the parent of the common git dir."""
        result = run_subprocess_with_context(
            ["git", "rev-parse", "--git-common-dir"],
            operation_context="locate the main repository",
            cwd=cwd,
        )
        return _absolute(cwd, result.stdout.strip()).parent

    def get_current_worktree_path(self, cwd: Path) -> Path:
        """Get the top-level directory of the worktree containing cwd."""
        result = run_subprocess_with_context(
            ["git", "rev-parse", "--show-toplevel"],
            operation_context="locate the current worktree",
            cwd=cwd,
        )
        return Path(result.stdout.strip())

    def get_repo_name(self, repo_root: Path) -> str:
        """Use the main repository's directory name."""
        return repo_root.name

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository."""
        result = run_subprocess_with_context(
            ["git", "worktree", "list", "--porcelain"],
            operation_context="list worktrees",
            cwd=repo_root,
        )
        return parse_worktree_porcelain(result.stdout)

    def branch_exists(self, repo_root: Path, branch: str) -> BranchExistence:
        """Check local heads with show-ref and origin with ls-remote."""
        local = command_succeeds(
            ["git", "show-ref", "--verify", "--quiet", f"refs/heads/{branch}"],
            cwd=repo_root,
        )
        remote = self.remote_branch_exists(repo_root, "origin", branch)
        logger.debug("Branch %s exists: local=%s remote=%s", branch, local, remote)
        return BranchExistence(local=local, remote=remote)

    def list_remotes(self, repo_root: Path) -> list[str]:
        """List configured remote names."""
        output = command_output(["git", "remote"], cwd=repo_root)
        if output is None:
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    def remote_branch_exists(self, repo_root: Path, remote: str, branch: str) -> bool:
        """Ask the remote directly so the answer does not depend on a recent fetch."""
        return command_succeeds(
            ["git", "ls-remote", "--exit-code", "--heads", remote, branch],
            cwd=repo_root,
        )

    def create_worktree(
        self,
        repo_root: Path,
        path: Path,
        branch: str,
        *,
        create_new: bool,
        base_branch: str | None,
    ) -> GitResult:
        """Add a worktree, creating the branch when requested."""
        if create_new:
            cmd = ["git", "worktree", "add", "-b", branch, str(path)]
            if base_branch:
                cmd.append(base_branch)
        else:
            cmd = ["git", "worktree", "add", str(path), branch]

        try:
            run_subprocess_with_context(
                cmd, operation_context=f"create worktree for branch '{branch}'", cwd=repo_root
            )
            if create_new and base_branch is None:
                # New branch without a start point: point its upstream at origin
                # so the first push needs no extra flags.
                run_subprocess_with_context(
                    ["git", "config", f"branch.{branch}.remote", "origin"],
                    operation_context=f"configure upstream remote for '{branch}'",
                    cwd=repo_root,
                )
                run_subprocess_with_context(
                    ["git", "config", f"branch.{branch}.merge", f"refs/heads/{branch}"],
                    operation_context=f"configure upstream branch for '{branch}'",
                    cwd=repo_root,
                )
        except RuntimeError as e:
            return GitResult(success=False, error=str(e))
        return GitResult(success=True)

    def remove_worktree(self, repo_root: Path, path: Path) -> GitResult:
        """Force-remove the worktree at path."""
        try:
            run_subprocess_with_context(
                ["git", "worktree", "remove", str(path), "--force"],
                operation_context=f"remove worktree at {path}",
                cwd=repo_root,
            )
        except RuntimeError as e:
            return GitResult(success=False, error=str(e))
        return GitResult(success=True)

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        branch = command_output(["git", "branch", "--show-current"], cwd=cwd)
        if not branch:
            return None
        return branch

    def get_default_branch(self, repo_root: Path) -> str:
        """Detect the default branch, trying origin's HEAD first."""
        remote_head = command_output(
            ["git", "symbolic-ref", "refs/remotes/origin/HEAD"], cwd=repo_root
        )
        if remote_head and remote_head.startswith("refs/remotes/origin/"):
            return remote_head.removeprefix("refs/remotes/origin/")

        for candidate in ["main", "master"]:
            if command_succeeds(["git", "rev-parse", "--verify", candidate], cwd=repo_root):
                return candidate

        logger.debug("No default branch detected in %s, assuming main", repo_root)
        return "main"

    def is_origin_ahead(self, repo_root: Path, branch: str) -> OriginAhead:
        """Count commits in branch..origin/branch."""
        remote_ref = f"origin/{branch}"
        if not command_succeeds(["git", "rev-parse", "--verify", remote_ref], cwd=repo_root):
            return OriginAhead(exists=False)

        count = command_output(
            ["git", "rev-list", "--count", f"{branch}..{remote_ref}"], cwd=repo_root
        )
        if count is None or not count.isdigit():
            return OriginAhead(exists=False)

        ahead = int(count)
        return OriginAhead(exists=ahead > 0, ahead_count=ahead)

    def fetch(self, repo_root: Path) -> GitResult:
        """Fetch from origin."""
        try:
            run_subprocess_with_context(
                ["git", "fetch", "origin"], operation_context="fetch from origin", cwd=repo_root
            )
        except RuntimeError as e:
            return GitResult(success=False, error=str(e))
        return GitResult(success=True)
