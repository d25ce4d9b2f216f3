from worktree_manager.core.git.abc import (
    BranchExistence,
    Git,
    GitResult,
    OriginAhead,
    RemoteRef,
    WorktreeInfo,
)

__all__ = [
    "BranchExistence",
    "Git",
    "GitResult",
    "OriginAhead",
    "RemoteRef",
    "WorktreeInfo",
]
