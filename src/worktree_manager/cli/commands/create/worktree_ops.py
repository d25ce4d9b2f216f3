"""Operation builders for the worktree workflow.

Each builder returns an Operation whose run callable performs one side
effect. build_operation_queue() assembles them in the fixed order the
workflow needs; the queue is computed once and never changed while running.
"""

import logging
from pathlib import Path

from worktree_manager.cli.commands.create.existing_path import remove_existing_worktree
from worktree_manager.cli.commands.create.types import WorkflowContext
from worktree_manager.core.context import WorktreeManagerContext
from worktree_manager.core.file_ops import ProjectInfo
from worktree_manager.core.host_ops import HostCapabilities
from worktree_manager.core.operations import Operation, OperationResult

logger = logging.getLogger(__name__)


def _require_paths(wctx: WorkflowContext) -> tuple[Path, Path]:
    if wctx.main_repo_path is None or wctx.worktree_path is None:
        raise ValueError("Workflow context is missing the repository or worktree path")
    return wctx.main_repo_path, wctx.worktree_path


def remove_worktree_operation(
    ctx: WorktreeManagerContext, repo_root: Path, path: Path
) -> Operation:
    def run() -> OperationResult:
        return remove_existing_worktree(ctx.git, ctx.file_ops, repo_root, path)

    return Operation(id="remove", label="Removing worktree", run=run)


def fetch_origin_operation(ctx: WorktreeManagerContext, repo_root: Path) -> Operation:
    """Best-effort fetch; a failed fetch is reported but never fails the step."""

    def run() -> OperationResult:
        result = ctx.git.fetch(repo_root)
        if not result.success:
            logger.debug("Fetch failed: %s", result.error)
            return OperationResult(success=True, message="Skipped")
        return OperationResult(success=True, message="Done")

    return Operation(id="fetch", label="Fetching origin", run=run)


def create_worktree_operation(
    ctx: WorktreeManagerContext,
    repo_root: Path,
    path: Path,
    branch: str,
    *,
    create_new: bool,
    base_branch: str | None,
) -> Operation:
    """Create the worktree. A failure raises so the rest of the queue stops."""

    def run() -> OperationResult:
        result = ctx.git.create_worktree(
            repo_root, path, branch, create_new=create_new, base_branch=base_branch
        )
        if not result.success:
            raise RuntimeError(result.error or f"Failed to create worktree at {path}")
        if base_branch:
            return OperationResult(success=True, message=f"Created from {base_branch}")
        return OperationResult(success=True, message="Created")

    return Operation(id="create", label=f"Creating worktree for {branch}", run=run)


def env_files_operation(
    ctx: WorktreeManagerContext,
    source: Path,
    target: Path,
    files: list[str],
    *,
    symlink: bool,
) -> Operation:
    def run() -> OperationResult:
        try:
            if symlink:
                ctx.file_ops.symlink_env_files(source, target, files)
            else:
                ctx.file_ops.copy_env_files(source, target, files)
        except OSError as e:
            return OperationResult(success=False, message=str(e))
        noun = "file" if len(files) == 1 else "files"
        return OperationResult(success=True, message=f"{len(files)} {noun}")

    label = "Symlinking env files" if symlink else "Copying env files"
    return Operation(id="env", label=label, run=run)


def generated_files_operation(
    ctx: WorktreeManagerContext, source: Path, target: Path, items: list[str]
) -> Operation:
    def run() -> OperationResult:
        try:
            ctx.file_ops.copy_generated_files(source, target, items)
        except OSError as e:
            return OperationResult(success=False, message=str(e))
        noun = "item" if len(items) == 1 else "items"
        return OperationResult(success=True, message=f"{len(items)} {noun}")

    return Operation(id="generated", label="Copying generated files", run=run)


def install_dependencies_operation(
    ctx: WorktreeManagerContext, worktree_path: Path, projects: list[ProjectInfo]
) -> Operation:
    """Install in every project; any failing project turns the step into a warning."""

    def run() -> OperationResult:
        failed: list[str] = []
        for project in projects:
            project_dir = worktree_path / project.relative_path
            if not ctx.host_ops.install_dependencies(project_dir, project.package_manager):
                failed.append(project.relative_path)
        if failed:
            return OperationResult(success=False, message=f"Failed in {', '.join(failed)}")
        managers = sorted({project.package_manager for project in projects})
        return OperationResult(success=True, message=f"Installed with {', '.join(managers)}")

    return Operation(id="deps", label="Installing dependencies", run=run)


def open_editor_operation(
    ctx: WorktreeManagerContext, editor: str | None, path: Path
) -> Operation:
    """Open the editor; without a detected editor the step does nothing."""

    def run() -> OperationResult:
        if editor is None:
            return OperationResult(success=True, message="No editor found")
        if not ctx.host_ops.open_in_editor(editor, path):
            return OperationResult(success=False, message=f"Failed to launch {editor}")
        return OperationResult(success=True, message=f"Opened in {editor}")

    return Operation(id="editor", label="Opening in editor", run=run)


def open_terminal_operation(
    ctx: WorktreeManagerContext, capabilities: HostCapabilities, path: Path, title: str
) -> Operation:
    def run() -> OperationResult:
        if not ctx.host_ops.open_in_terminal(capabilities.terminal, path, title):
            return OperationResult(success=False, message="Failed to open terminal")
        return OperationResult(success=True, message="Opened")

    return Operation(id="terminal", label="Opening terminal", run=run)


def after_script_operation(
    ctx: WorktreeManagerContext, index: int, script: str, path: Path
) -> Operation:
    def run() -> OperationResult:
        if not ctx.host_ops.run_script(script, path):
            return OperationResult(success=False, message="Exited with an error")
        return OperationResult(success=True, message="Done")

    return Operation(id=f"script-{index}", label=f"Running {script}", run=run)


def build_operation_queue(
    ctx: WorktreeManagerContext, wctx: WorkflowContext, after_scripts: list[str]
) -> list[Operation]:
    """Assemble the operations for the current workflow state.

    Order: remove (when replacing), fetch (new worktrees only), create, env
    files, generated files, dependencies, editor, terminal, after scripts.
    Deleting or opening an existing worktree is a single operation.

    Args:
        ctx: Collaborators used by the operations
        wctx: Session state; read once here
        after_scripts: Scripts to run in the new worktree, in order

    Returns:
        Operations to hand to run_operations()
    """
    repo_root, path = _require_paths(wctx)
    capabilities = wctx.capabilities

    if wctx.action_on_existing == "delete":
        return [remove_worktree_operation(ctx, repo_root, path)]

    if wctx.action_on_existing == "open":
        editor = capabilities.editor if capabilities is not None else None
        return [open_editor_operation(ctx, editor, path)]

    operations: list[Operation] = []
    if wctx.action_on_existing == "replace":
        operations.append(remove_worktree_operation(ctx, repo_root, path))
    else:
        operations.append(fetch_origin_operation(ctx, repo_root))

    operations.append(
        create_worktree_operation(
            ctx,
            repo_root,
            path,
            wctx.branch_name,
            create_new=wctx.create_new_branch,
            base_branch=wctx.base_branch,
        )
    )

    if wctx.env_action != "nothing" and wctx.env_files:
        operations.append(
            env_files_operation(
                ctx, repo_root, path, wctx.env_files, symlink=wctx.env_action == "symlink"
            )
        )

    if wctx.generated_files:
        operations.append(generated_files_operation(ctx, repo_root, path, wctx.generated_files))

    if wctx.should_install_deps and wctx.repo_structure is not None:
        if wctx.repo_structure.projects:
            operations.append(
                install_dependencies_operation(ctx, path, wctx.repo_structure.projects)
            )

    if wctx.should_open_editor:
        editor = capabilities.editor if capabilities is not None else None
        operations.append(open_editor_operation(ctx, editor, path))

    if wctx.should_open_terminal and capabilities is not None:
        title = f"{wctx.repo_name}: {wctx.branch_name}"
        operations.append(open_terminal_operation(ctx, capabilities, path, title))

    for index, script in enumerate(after_scripts, start=1):
        operations.append(after_script_operation(ctx, index, script, path))

    return operations
