"""Fake implementation of FileOps for testing."""

from pathlib import Path

from worktree_manager.core.file_ops import FileOps, RepoStructure

NO_PROJECTS = RepoStructure(type="single-project", projects=[])


class FakeFileOps(FileOps):
    """In-memory fake of filesystem operations.

    path_exists() answers from `existing_paths`; remove_tree() drops the path
    from it unless `stuck_paths` contains it.
    """

    def __init__(
        self,
        *,
        env_files: list[str] | None = None,
        generated_files: list[str] | None = None,
        repo_structure: RepoStructure = NO_PROJECTS,
        existing_paths: set[Path] | None = None,
        stuck_paths: set[Path] | None = None,
        copy_error: OSError | None = None,
    ) -> None:
        self._env_files = list(env_files or [])
        self._generated_files = list(generated_files or [])
        self._repo_structure = repo_structure
        self._existing_paths = set(existing_paths or set())
        self._stuck_paths = set(stuck_paths or set())
        self._copy_error = copy_error

        self._symlinked: list[tuple[Path, Path, list[str]]] = []
        self._copied_env: list[tuple[Path, Path, list[str]]] = []
        self._copied_generated: list[tuple[Path, Path, list[str]]] = []
        self._removed_trees: list[Path] = []
        self._scan_count = 0

    def find_env_files(self, directory: Path) -> list[str]:
        self._scan_count += 1
        return list(self._env_files)

    def find_generated_files(self, directory: Path) -> list[str]:
        return list(self._generated_files)

    def detect_repo_structure(self, directory: Path) -> RepoStructure:
        return self._repo_structure

    def symlink_env_files(self, source: Path, target: Path, files: list[str]) -> None:
        if self._copy_error is not None:
            raise self._copy_error
        self._symlinked.append((source, target, list(files)))

    def copy_env_files(self, source: Path, target: Path, files: list[str]) -> None:
        if self._copy_error is not None:
            raise self._copy_error
        self._copied_env.append((source, target, list(files)))

    def copy_generated_files(self, source: Path, target: Path, items: list[str]) -> None:
        if self._copy_error is not None:
            raise self._copy_error
        self._copied_generated.append((source, target, list(items)))

    def path_exists(self, path: Path) -> bool:
        return path in self._existing_paths

    def remove_tree(self, path: Path) -> None:
        self._removed_trees.append(path)
        if path not in self._stuck_paths:
            self._existing_paths.discard(path)

    @property
    def symlinked(self) -> list[tuple[Path, Path, list[str]]]:
        return list(self._symlinked)

    @property
    def copied_env(self) -> list[tuple[Path, Path, list[str]]]:
        return list(self._copied_env)

    @property
    def copied_generated(self) -> list[tuple[Path, Path, list[str]]]:
        return list(self._copied_generated)

    @property
    def removed_trees(self) -> list[Path]:
        return list(self._removed_trees)

    @property
    def scan_count(self) -> int:
        """Number of times the repository was scanned for env files."""
        return self._scan_count
