"""Tests for filesystem scanning and copying (real filesystem via tmp_path)."""

import json
from pathlib import Path
from unittest.mock import patch

from worktree_manager.core.file_ops import (
    ProjectInfo,
    RealFileOps,
    detect_monorepo,
    detect_package_manager,
    find_project_directories,
)


def _write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _package_json(directory: Path, data: dict | None = None) -> None:
    _write(directory / "package.json", json.dumps(data or {"name": directory.name}))


def test_package_manager_from_lockfile_priority(tmp_path: Path) -> None:
    assert detect_package_manager(tmp_path) == "npm"

    _write(tmp_path / "package-lock.json")
    assert detect_package_manager(tmp_path) == "npm"

    _write(tmp_path / "yarn.lock")
    assert detect_package_manager(tmp_path) == "yarn"

    _write(tmp_path / "pnpm-lock.yaml")
    assert detect_package_manager(tmp_path) == "pnpm"

    _write(tmp_path / "bun.lock")
    assert detect_package_manager(tmp_path) == "bun"


def test_monorepo_markers(tmp_path: Path) -> None:
    assert detect_monorepo(tmp_path) is False

    _package_json(tmp_path, {"name": "root"})
    assert detect_monorepo(tmp_path) is False

    _package_json(tmp_path, {"workspaces": ["packages/*"]})
    assert detect_monorepo(tmp_path) is True

    _package_json(tmp_path, {"workspaces": {"packages": ["apps/*"]}})
    assert detect_monorepo(tmp_path) is True


def test_pnpm_workspace_is_monorepo(tmp_path: Path) -> None:
    _write(tmp_path / "pnpm-workspace.yaml", "packages:\n  - apps/*\n")

    assert detect_monorepo(tmp_path) is True


def test_unreadable_package_json_is_not_monorepo(tmp_path: Path) -> None:
    _write(tmp_path / "package.json", "{broken")

    assert detect_monorepo(tmp_path) is False


def test_find_project_directories_skips_and_limits_depth(tmp_path: Path) -> None:
    _package_json(tmp_path / "web")
    _package_json(tmp_path / "services" / "api")
    _package_json(tmp_path / "a" / "b" / "c")
    _package_json(tmp_path / "a" / "b" / "c" / "d")
    _package_json(tmp_path / "node_modules" / "left-pad")
    _package_json(tmp_path / "dist" / "bundle")
    _package_json(tmp_path / ".cache" / "tool")

    found = [p.relative_to(tmp_path).as_posix() for p in find_project_directories(tmp_path)]

    assert sorted(found) == ["a/b/c", "services/api", "web"]


def test_structure_single_project_with_root_package(tmp_path: Path) -> None:
    _package_json(tmp_path)
    _write(tmp_path / "yarn.lock")

    structure = RealFileOps().detect_repo_structure(tmp_path)

    assert structure.type == "single-project"
    assert structure.projects == [ProjectInfo(relative_path=".", package_manager="yarn")]
    assert structure.root_package_manager == "yarn"


def test_structure_without_any_package_json(tmp_path: Path) -> None:
    structure = RealFileOps().detect_repo_structure(tmp_path)

    assert structure.type == "single-project"
    assert structure.projects == []
    assert structure.root_package_manager is None


def test_structure_multi_project_lists_root_first(tmp_path: Path) -> None:
    _package_json(tmp_path)
    _package_json(tmp_path / "web")
    _write(tmp_path / "web" / "pnpm-lock.yaml")
    _package_json(tmp_path / "api")

    structure = RealFileOps().detect_repo_structure(tmp_path)

    assert structure.type == "multi-project"
    assert structure.projects == [
        ProjectInfo(relative_path=".", package_manager="npm"),
        ProjectInfo(relative_path="api", package_manager="npm"),
        ProjectInfo(relative_path="web", package_manager="pnpm"),
    ]


def test_structure_monorepo_installs_once_at_root(tmp_path: Path) -> None:
    _package_json(tmp_path, {"workspaces": ["packages/*"]})
    _write(tmp_path / "bun.lockb")
    _package_json(tmp_path / "packages" / "ui")

    structure = RealFileOps().detect_repo_structure(tmp_path)

    assert structure.type == "monorepo"
    assert structure.projects == [ProjectInfo(relative_path=".", package_manager="bun")]


def test_find_env_files_excludes_tracked_and_node_modules(tmp_path: Path) -> None:
    _write(tmp_path / ".env")
    _write(tmp_path / ".env.example")
    _write(tmp_path / "web" / ".env.local")
    _write(tmp_path / "node_modules" / "pkg" / ".env")
    _write(tmp_path / "README.md")

    with patch(
        "worktree_manager.core.file_ops.command_output", return_value=".env.example\0README.md"
    ):
        found = RealFileOps().find_env_files(tmp_path)

    assert found == [".env", "web/.env.local"]


def test_find_env_files_without_candidates_skips_git(tmp_path: Path) -> None:
    _write(tmp_path / "README.md")

    with patch("worktree_manager.core.file_ops.command_output") as mock_output:
        assert RealFileOps().find_env_files(tmp_path) == []

    mock_output.assert_not_called()


def test_symlink_env_files_points_at_main_repo(tmp_path: Path) -> None:
    source = tmp_path / "app"
    target = tmp_path / "app-feature"
    _write(source / ".env", "A=1")
    _write(source / "web" / ".env.local", "B=2")
    _write(target / ".env", "stale")

    RealFileOps().symlink_env_files(source, target, [".env", "web/.env.local"])

    assert (target / ".env").is_symlink()
    assert (target / ".env").resolve() == (source / ".env").resolve()
    assert (target / "web" / ".env.local").read_text(encoding="utf-8") == "B=2"


def test_copy_env_files_makes_independent_copies(tmp_path: Path) -> None:
    source = tmp_path / "app"
    target = tmp_path / "app-feature"
    _write(source / ".env", "A=1")

    RealFileOps().copy_env_files(source, target, [".env"])
    (source / ".env").write_text("A=2", encoding="utf-8")

    assert not (target / ".env").is_symlink()
    assert (target / ".env").read_text(encoding="utf-8") == "A=1"


def test_copy_generated_files_handles_dirs_and_files(tmp_path: Path) -> None:
    source = tmp_path / "app"
    target = tmp_path / "app-feature"
    _write(source / "src" / "generated" / "schema.ts", "export {}")
    _write(source / "types.generated.d.ts", "declare")
    _write(target / "src" / "generated" / "old.ts", "old")

    RealFileOps().copy_generated_files(source, target, ["src/generated", "types.generated.d.ts"])

    assert (target / "src" / "generated" / "schema.ts").read_text(encoding="utf-8") == "export {}"
    assert (target / "src" / "generated" / "old.ts").exists()
    assert (target / "types.generated.d.ts").read_text(encoding="utf-8") == "declare"


def test_path_exists_and_remove_tree(tmp_path: Path) -> None:
    file_ops = RealFileOps()
    directory = tmp_path / "app-feature"
    _write(directory / "nested" / "file.txt")
    dangling = tmp_path / "dangling"
    dangling.symlink_to(tmp_path / "missing")

    assert file_ops.path_exists(directory) is True
    assert file_ops.path_exists(dangling) is True
    assert file_ops.path_exists(tmp_path / "nothing") is False

    file_ops.remove_tree(directory)
    file_ops.remove_tree(dangling)
    file_ops.remove_tree(tmp_path / "nothing")

    assert file_ops.path_exists(directory) is False
    assert file_ops.path_exists(dangling) is False
