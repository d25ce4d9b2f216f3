"""Filesystem scanning and copying for new worktrees.

Finds the untracked `.env*` files and gitignored "generated" artifacts that a
fresh checkout would lack, detects JavaScript project layout for dependency
installation, and copies or symlinks files into the new worktree.
"""

import json
import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from worktree_manager.core.subprocess import command_output, run_subprocess_with_context

logger = logging.getLogger(__name__)

RepoStructureType = Literal["monorepo", "multi-project", "single-project"]

SKIPPED_DIRS = frozenset({"node_modules", ".git"})
PROJECT_SKIPPED_DIRS = frozenset({"node_modules", "dist", "build"})
MAX_PROJECT_DEPTH = 3
DEFAULT_PACKAGE_MANAGER = "npm"

# Checked in order; the first lockfile present wins.
LOCKFILES: tuple[tuple[str, str], ...] = (
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
)


@dataclass(frozen=True)
class ProjectInfo:
    """A directory holding a package.json, relative to the repository root."""

    relative_path: str
    package_manager: str


@dataclass(frozen=True)
class RepoStructure:
    """How dependencies are laid out in a repository."""

    type: RepoStructureType
    projects: list[ProjectInfo]
    root_package_manager: str | None = None


class FileOps(ABC):
    """Abstract interface for filesystem operations used by the workflow."""

    @abstractmethod
    def find_env_files(self, directory: Path) -> list[str]:
        """Find untracked files whose names start with `.env`.

        Returns:
            Paths relative to `directory`, sorted
        """
        ...

    @abstractmethod
    def find_generated_files(self, directory: Path) -> list[str]:
        """Find gitignored files or directories with "generated" in their name.

        A matching directory is returned as a whole; nothing nested inside it
        is listed separately.

        Returns:
            Paths relative to `directory`, sorted
        """
        ...

    @abstractmethod
    def detect_repo_structure(self, directory: Path) -> RepoStructure:
        """Classify the repository as monorepo, multi-project or single-project."""
        ...

    @abstractmethod
    def symlink_env_files(self, source: Path, target: Path, files: list[str]) -> None:
        """Create absolute symlinks in `target` pointing at files in `source`."""
        ...

    @abstractmethod
    def copy_env_files(self, source: Path, target: Path, files: list[str]) -> None:
        """Copy files from `source` into `target`, creating parent directories."""
        ...

    @abstractmethod
    def copy_generated_files(self, source: Path, target: Path, items: list[str]) -> None:
        """Copy files or whole directories from `source` into `target`."""
        ...

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Check whether anything exists at `path`."""
        ...

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Recursively delete `path` if it exists."""
        ...


def detect_package_manager(directory: Path) -> str:
    """Pick the package manager from the first lockfile found, default npm."""
    for lockfile, manager in LOCKFILES:
        if (directory / lockfile).is_file():
            return manager
    return DEFAULT_PACKAGE_MANAGER


def has_package_json(directory: Path) -> bool:
    """Check for a package.json file (a directory of that name does not count)."""
    return (directory / "package.json").is_file()


def detect_monorepo(directory: Path) -> bool:
    """Detect pnpm workspaces, lerna, or a package.json `workspaces` key."""
    if (directory / "pnpm-workspace.yaml").is_file() or (directory / "lerna.json").is_file():
        return True

    package_json = directory / "package.json"
    if not package_json.is_file():
        return False
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.debug("Unreadable package.json at %s", package_json)
        return False
    return isinstance(data, dict) and isinstance(data.get("workspaces"), (list, dict))


def find_project_directories(directory: Path, max_depth: int = MAX_PROJECT_DEPTH) -> list[Path]:
    """Find subdirectories containing a package.json.

    Skips node_modules, dist, build and hidden directories, and does not look
    deeper than `max_depth` levels below `directory`. The root itself is not
    included.
    """
    projects: list[Path] = []

    def walk(current: Path, depth: int) -> None:
        if depth > max_depth:
            return
        try:
            entries = sorted(current.iterdir())
        except OSError:
            return
        for entry in entries:
            if not entry.is_dir() or entry.is_symlink():
                continue
            if entry.name.startswith(".") or entry.name in PROJECT_SKIPPED_DIRS:
                continue
            if has_package_json(entry):
                projects.append(entry)
            walk(entry, depth + 1)

    walk(directory, 1)
    return projects


class RealFileOps(FileOps):
    """Production implementation backed by the local filesystem and git."""

    def find_env_files(self, directory: Path) -> list[str]:
        candidates: list[str] = []
        for root, dirs, files in os.walk(directory):
            dirs[:] = [d for d in dirs if d not in SKIPPED_DIRS]
            for name in files:
                if name.startswith(".env"):
                    candidates.append(Path(root, name).relative_to(directory).as_posix())

        if not candidates:
            return []

        tracked = self._tracked_files(directory)
        return sorted(path for path in candidates if path not in tracked)

    def find_generated_files(self, directory: Path) -> list[str]:
        found: list[str] = []
        for root, dirs, files in os.walk(directory):
            dirs[:] = [d for d in dirs if d not in SKIPPED_DIRS]
            root_path = Path(root)

            matching_dirs = [d for d in dirs if "generated" in d.lower()]
            matching_files = [f for f in files if "generated" in f.lower()]
            if not matching_dirs and not matching_files:
                continue

            candidates = [
                (root_path / name).relative_to(directory).as_posix()
                for name in matching_dirs + matching_files
            ]
            ignored = self._ignored_paths(directory, candidates)
            found.extend(path for path in candidates if path in ignored)

            # Ignored generated directories are taken whole; do not descend.
            dirs[:] = [
                d
                for d in dirs
                if (root_path / d).relative_to(directory).as_posix() not in ignored
            ]

        return sorted(found)

    def detect_repo_structure(self, directory: Path) -> RepoStructure:
        root_has_package = has_package_json(directory)
        root_manager = detect_package_manager(directory) if root_has_package else None

        if detect_monorepo(directory):
            root = ProjectInfo(relative_path=".", package_manager=detect_package_manager(directory))
            return RepoStructure(
                type="monorepo",
                projects=[root],
                root_package_manager=root_manager,
            )

        subprojects = [
            ProjectInfo(
                relative_path=project.relative_to(directory).as_posix(),
                package_manager=detect_package_manager(project),
            )
            for project in find_project_directories(directory)
        ]
        subprojects.sort(key=lambda project: project.relative_path)

        if not subprojects:
            projects = []
            if root_manager is not None:
                projects = [ProjectInfo(relative_path=".", package_manager=root_manager)]
            return RepoStructure(
                type="single-project", projects=projects, root_package_manager=root_manager
            )

        if root_manager is not None:
            subprojects.insert(0, ProjectInfo(relative_path=".", package_manager=root_manager))
        return RepoStructure(
            type="multi-project", projects=subprojects, root_package_manager=root_manager
        )

    def symlink_env_files(self, source: Path, target: Path, files: list[str]) -> None:
        for relative in files:
            destination = target / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            if destination.is_symlink() or destination.exists():
                destination.unlink()
            destination.symlink_to((source / relative).resolve())

    def copy_env_files(self, source: Path, target: Path, files: list[str]) -> None:
        for relative in files:
            destination = target / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source / relative, destination)

    def copy_generated_files(self, source: Path, target: Path, items: list[str]) -> None:
        for relative in items:
            origin = source / relative
            destination = target / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            if origin.is_dir():
                shutil.copytree(origin, destination, symlinks=True, dirs_exist_ok=True)
            else:
                shutil.copy2(origin, destination)

    def path_exists(self, path: Path) -> bool:
        return path.exists() or path.is_symlink()

    def remove_tree(self, path: Path) -> None:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.exists():
            shutil.rmtree(path)

    def _tracked_files(self, directory: Path) -> set[str]:
        # Paths are printed relative to cwd, matching the candidates.
        output = command_output(["git", "ls-files", "-z"], cwd=directory)
        if output is None:
            return set()
        return {entry for entry in output.split("\0") if entry}

    def _ignored_paths(self, directory: Path, candidates: list[str]) -> set[str]:
        # check-ignore exits 1 when nothing matches, which is not an error here.
        result = run_subprocess_with_context(
            ["git", "check-ignore", "--stdin"],
            operation_context="check gitignored paths",
            cwd=directory,
            check=False,
            input="\n".join(candidates) + "\n",
        )
        if result.returncode not in (0, 1):
            logger.debug("git check-ignore failed in %s: %s", directory, result.stderr.strip())
            return set()
        return {line.strip().rstrip("/") for line in result.stdout.splitlines() if line.strip()}
