"""Application context with dependency injection."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from worktree_manager.cli.prompts import ClickPrompter, Prompter
from worktree_manager.core.config_store import ConfigStore, RealConfigStore
from worktree_manager.core.file_ops import FileOps, RealFileOps
from worktree_manager.core.git.abc import Git
from worktree_manager.core.git.real import RealGit
from worktree_manager.core.host_ops import HostOps, RealHostOps


@dataclass(frozen=True)
class WorktreeManagerContext:
    """Immutable context holding all dependencies for a worktree session.

    Created at the CLI entry point and passed to the workflow. Tests build
    one from fakes (see tests/fakes/context.py).
    """

    git: Git
    file_ops: FileOps
    host_ops: HostOps
    config_store: ConfigStore
    prompter: Prompter
    cwd: Path  # Current working directory at CLI invocation
    env: Mapping[str, str]


def create_context(cwd: Path | None = None) -> WorktreeManagerContext:
    """Create the production context backed by real git, filesystem and terminal."""
    env = dict(os.environ)
    return WorktreeManagerContext(
        git=RealGit(),
        file_ops=RealFileOps(),
        host_ops=RealHostOps(env=env),
        config_store=RealConfigStore(),
        prompter=ClickPrompter(),
        cwd=cwd if cwd is not None else Path.cwd(),
        env=env,
    )
