"""Host integration: editors, terminals, package managers and user scripts.

Detection of the editor and terminal is exposed as a single
`detect_capabilities()` call so the workflow never reads environment
variables itself.
"""

import logging
import os
import shutil
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from worktree_manager.core.subprocess import command_succeeds
from worktree_manager.core.terminal import (
    TerminalInfo,
    build_terminal_commands,
    detect_terminal,
    terminal_from_name,
)

logger = logging.getLogger(__name__)

EDITOR_ENV_VAR = "WORKTREE_EDITOR"
KNOWN_EDITORS = ("cursor", "code", "zed")


@dataclass(frozen=True)
class HostCapabilities:
    """Editor and terminal available on this machine."""

    editor: str | None
    terminal: TerminalInfo


def detect_editor(env: Mapping[str, str], which: Callable[[str], str | None]) -> str | None:
    """Pick the editor command: WORKTREE_EDITOR, else the first known editor on PATH.

    Args:
        env: Environment mapping
        which: PATH lookup, shutil.which in production

    Returns:
        Editor command name, or None when nothing is available
    """
    override = env.get(EDITOR_ENV_VAR)
    if override:
        return override
    for editor in KNOWN_EDITORS:
        if which(editor) is not None:
            return editor
    return None


class HostOps(ABC):
    """Abstract interface for launching programs on the user's machine."""

    @abstractmethod
    def detect_capabilities(self, preferred_terminal: str | None = None) -> HostCapabilities:
        """Detect the editor and terminal.

        Args:
            preferred_terminal: Terminal name from the user config; overrides
                environment detection when set
        """
        ...

    @abstractmethod
    def open_in_editor(self, editor: str, path: Path) -> bool:
        """Open `path` in `editor`. Returns whether the launch succeeded."""
        ...

    @abstractmethod
    def open_in_terminal(self, terminal: TerminalInfo, path: Path, title: str | None) -> bool:
        """Open a new terminal tab or window at `path`."""
        ...

    @abstractmethod
    def install_dependencies(self, path: Path, package_manager: str) -> bool:
        """Run `<package_manager> install` in `path`."""
        ...

    @abstractmethod
    def run_script(self, script: str, cwd: Path) -> bool:
        """Run a shell snippet in `cwd`. Returns whether it exited with status 0."""
        ...


class RealHostOps(HostOps):
    """Production implementation that spawns real processes."""

    def __init__(self, env: Mapping[str, str] | None = None, platform: str | None = None) -> None:
        self._env = env if env is not None else os.environ
        self._platform = platform or sys.platform

    def detect_capabilities(self, preferred_terminal: str | None = None) -> HostCapabilities:
        editor = detect_editor(self._env, shutil.which)
        if preferred_terminal:
            terminal = terminal_from_name(preferred_terminal)
        else:
            terminal = detect_terminal(self._env)
        logger.debug("Detected editor=%s terminal=%s", editor, terminal.name)
        return HostCapabilities(editor=editor, terminal=terminal)

    def open_in_editor(self, editor: str, path: Path) -> bool:
        return command_succeeds([editor, str(path)])

    def open_in_terminal(self, terminal: TerminalInfo, path: Path, title: str | None) -> bool:
        for cmd in build_terminal_commands(terminal, str(path), title, self._platform):
            if command_succeeds(cmd):
                return True
            logger.debug("Terminal command failed: %s", cmd[0])
        return False

    def install_dependencies(self, path: Path, package_manager: str) -> bool:
        return command_succeeds([package_manager, "install"], cwd=path)

    def run_script(self, script: str, cwd: Path) -> bool:
        return command_succeeds(["sh", "-c", script], cwd=cwd)
