"""Workflow orchestrator for the interactive worktree flow.

The flow is an explicit state machine. Each state is a small dataclass and
each has one handler that performs the state's prompt or side effect and
returns the next state. The session's WorkflowContext is only written here,
between steps. Any cancelled prompt moves straight to the terminal
Finished state, so a run that is cancelled early performs no side effects.

    Loading -> InsideWorktree | SelectWorktree | ResolveBranch
    SelectWorktree -> EnterBranch | ManageWorktree
    EnterBranch -> ResolveBranch -> CheckPath
    CheckPath -> CollectOptions | RunOperations (open/delete, or branch held elsewhere)
    ManageWorktree -> CollectOptions (replace) | RunOperations
    CollectOptions -> RunOperations -> Finished
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import click

from worktree_manager.cli.commands.create.branch_resolution import resolve_branch
from worktree_manager.cli.commands.create.existing_path import prompt_existing_path_action
from worktree_manager.cli.commands.create.post_creation import collect_options
from worktree_manager.cli.commands.create.types import WorkflowContext, WorkflowOutcome
from worktree_manager.cli.commands.create.validation import (
    compute_worktree_path,
    validate_branch_name,
)
from worktree_manager.cli.commands.create.worktree_ops import build_operation_queue
from worktree_manager.cli.output import user_output
from worktree_manager.cli.prompts import Choice, is_cancelled
from worktree_manager.core.config_store import get_after_scripts, get_repo_config
from worktree_manager.core.context import WorktreeManagerContext
from worktree_manager.core.git.abc import WorktreeInfo, find_worktree_at, linked_worktrees
from worktree_manager.core.operations import OperationState, run_operations

logger = logging.getLogger(__name__)

NOT_A_REPO_MESSAGE = "Not a git repository. Run this command inside a git repository."


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class InsideWorktree:
    pass


@dataclass(frozen=True)
class SelectWorktree:
    pass


@dataclass(frozen=True)
class EnterBranch:
    pass


@dataclass(frozen=True)
class ResolveBranch:
    pass


@dataclass(frozen=True)
class CheckPath:
    pass


@dataclass(frozen=True)
class ManageWorktree:
    worktree: WorktreeInfo


@dataclass(frozen=True)
class CollectOptions:
    pass


@dataclass(frozen=True)
class RunOperations:
    pass


@dataclass(frozen=True)
class Finished:
    outcome: WorkflowOutcome


WorkflowState = (
    Loading
    | InsideWorktree
    | SelectWorktree
    | EnterBranch
    | ResolveBranch
    | CheckPath
    | ManageWorktree
    | CollectOptions
    | RunOperations
    | Finished
)

CANCELLED_OUTCOME = WorkflowOutcome(status="cancelled", message="Cancelled.")

_CREATE_NEW = "create"
_MANAGE_CURRENT = "manage"


class WorktreeWorkflow:
    """Drives one interactive session from repository detection to summary.

    Args:
        ctx: Collaborators (git, filesystem, host, config, prompter)
        branch_name: Branch passed on the command line; skips the name prompt
        on_update: Receives operation progress snapshots
    """

    def __init__(
        self,
        ctx: WorktreeManagerContext,
        branch_name: str | None = None,
        on_update: Callable[[list[OperationState]], None] | None = None,
    ) -> None:
        self._ctx = ctx
        self._initial_branch = branch_name
        self._on_update = on_update
        self.state: WorkflowState = Loading()
        self.wctx = WorkflowContext()

    def run(self) -> WorkflowOutcome:
        while not isinstance(self.state, Finished):
            logger.debug("Entering %s", type(self.state).__name__)
            self.state = self.step(self.state)
        return self.state.outcome

    def step(self, state: WorkflowState) -> WorkflowState:
        """Run one state's handler and return the next state."""
        if isinstance(state, Loading):
            return self._load()
        if isinstance(state, InsideWorktree):
            return self._inside_worktree()
        if isinstance(state, SelectWorktree):
            return self._select_worktree()
        if isinstance(state, EnterBranch):
            return self._enter_branch()
        if isinstance(state, ResolveBranch):
            return self._resolve_branch()
        if isinstance(state, CheckPath):
            return self._check_path()
        if isinstance(state, ManageWorktree):
            return self._manage_worktree(state.worktree)
        if isinstance(state, CollectOptions):
            return self._collect_options()
        if isinstance(state, RunOperations):
            return self._run_operations()
        return state

    def _main_repo_path(self) -> Path:
        if self.wctx.main_repo_path is None:
            raise ValueError("Main repository path is not known yet")
        return self.wctx.main_repo_path

    def _after_branch_known(self) -> WorkflowState:
        if self._initial_branch:
            self.wctx.branch_name = self._initial_branch
            return ResolveBranch()
        return EnterBranch()

    def _load(self) -> WorkflowState:
        git = self._ctx.git
        cwd = self._ctx.cwd
        if not git.is_inside_git_repo(cwd):
            return Finished(WorkflowOutcome(status="not-a-repo", message=NOT_A_REPO_MESSAGE))

        main_repo_path = git.get_main_repo_path(cwd)
        self.wctx.main_repo_path = main_repo_path
        self.wctx.repo_name = git.get_repo_name(main_repo_path)

        loaded = self._ctx.config_store.load()
        if not loaded.success:
            logger.debug("Ignoring unreadable config: %s", loaded.error)
            user_output(click.style(f"Warning: {loaded.error}", fg="yellow"))
        if loaded.config is not None:
            self.wctx.config = loaded.config
            self.wctx.saved_config = get_repo_config(loaded.config, self.wctx.repo_name)
            self.wctx.preferred_terminal = loaded.config.terminal

        if git.is_inside_worktree(cwd):
            return InsideWorktree()
        if self._initial_branch:
            return self._after_branch_known()
        return SelectWorktree()

    def _inside_worktree(self) -> WorkflowState:
        git = self._ctx.git
        prompter = self._ctx.prompter
        cwd = self._ctx.cwd
        current_path = git.get_current_worktree_path(cwd)
        current_branch = git.get_current_branch(cwd)

        prompter.note(
            f"Path: {current_path}\nBranch: {current_branch or '(detached)'}",
            title="You are inside a worktree",
        )
        action = prompter.select(
            "Create a new worktree or manage this one?",
            [
                Choice(value=_CREATE_NEW, label="Create new worktree"),
                Choice(value=_MANAGE_CURRENT, label="Manage this worktree"),
            ],
            default=_CREATE_NEW,
        )
        if is_cancelled(action):
            return Finished(CANCELLED_OUTCOME)
        if action == _MANAGE_CURRENT:
            return ManageWorktree(WorktreeInfo(path=current_path, branch=current_branch))

        default_branch = git.get_default_branch(self._main_repo_path())
        sources: list[Choice[str]] = []
        if current_branch:
            sources.append(
                Choice(value=current_branch, label="From current branch", hint=current_branch)
            )
        origin_base = f"origin/{default_branch}"
        sources.append(Choice(value=origin_base, label=f"From {origin_base}"))
        base = prompter.select(
            "Create worktree from which base?", sources, default=sources[0].value
        )
        if is_cancelled(base):
            return Finished(CANCELLED_OUTCOME)
        self.wctx.base_override = base
        return self._after_branch_known()

    def _select_worktree(self) -> WorkflowState:
        worktrees = linked_worktrees(self._ctx.git.list_worktrees(self._main_repo_path()))
        if not worktrees:
            return EnterBranch()

        choices: list[Choice[WorktreeInfo | None]] = [
            Choice(value=worktree, label=worktree.branch or "(detached)", hint=str(worktree.path))
            for worktree in worktrees
        ]
        choices.append(Choice(value=None, label="Create new worktree", hint="enter a branch name"))
        picked = self._ctx.prompter.select("Select a worktree", choices, default=None)
        if is_cancelled(picked):
            return Finished(CANCELLED_OUTCOME)
        if picked is None:
            return EnterBranch()
        return ManageWorktree(picked)

    def _enter_branch(self) -> WorkflowState:
        name = self._ctx.prompter.text("Enter worktree name:", validate=validate_branch_name)
        if is_cancelled(name):
            return Finished(CANCELLED_OUTCOME)
        self.wctx.branch_name = name.strip()
        return ResolveBranch()

    def _resolve_branch(self) -> WorkflowState:
        error = validate_branch_name(self.wctx.branch_name)
        if error is not None:
            return Finished(WorkflowOutcome(status="failed", message=error))

        main_repo_path = self._main_repo_path()
        resolution = resolve_branch(
            self._ctx.git,
            self._ctx.prompter,
            main_repo_path,
            self._ctx.cwd,
            self.wctx.branch_name,
            base_override=self.wctx.base_override,
        )
        if is_cancelled(resolution):
            return Finished(CANCELLED_OUTCOME)
        logger.debug("Resolved %s via %s", resolution.branch_name, resolution.action)
        self.wctx.apply_resolution(resolution)
        self.wctx.worktree_path = compute_worktree_path(
            main_repo_path, self.wctx.repo_name, self.wctx.branch_name
        )
        return CheckPath()

    def _check_path(self) -> WorkflowState:
        path = self.wctx.worktree_path
        holder = self._worktree_holding_branch()
        if holder is not None and (path is None or find_worktree_at([holder], path) is None):
            return self._branch_checked_out(holder)

        if path is None or not self._ctx.file_ops.path_exists(path):
            return CollectOptions()

        action = prompt_existing_path_action(self._ctx.prompter, path)
        if is_cancelled(action):
            return Finished(CANCELLED_OUTCOME)
        self.wctx.action_on_existing = action
        if action == "replace":
            return CollectOptions()
        return RunOperations()

    def _worktree_holding_branch(self) -> WorktreeInfo | None:
        worktrees = self._ctx.git.list_worktrees(self._main_repo_path())
        for worktree in worktrees:
            if worktree.branch is not None and worktree.branch == self.wctx.branch_name:
                return worktree
        return None

    def _branch_checked_out(self, holder: WorktreeInfo) -> WorkflowState:
        # git refuses a second checkout of the same branch, so only the
        # worktree that already has it can be opened or deleted.
        logger.debug("Branch %s is checked out at %s", holder.branch, holder.path)
        self.wctx.worktree_path = holder.path
        action = prompt_existing_path_action(
            self._ctx.prompter,
            holder.path,
            title="Worktree already exists for this branch",
            branch=holder.branch,
            allow_replace=False,
            allow_delete=not holder.is_main,
        )
        if is_cancelled(action):
            return Finished(CANCELLED_OUTCOME)
        self.wctx.action_on_existing = action
        return RunOperations()

    def _manage_worktree(self, worktree: WorktreeInfo) -> WorkflowState:
        self.wctx.worktree_path = worktree.path
        self.wctx.branch_name = worktree.branch or ""
        action = prompt_existing_path_action(
            self._ctx.prompter,
            worktree.path,
            title="Manage worktree",
            branch=worktree.branch or "(detached)",
            allow_replace=worktree.branch is not None,
        )
        if is_cancelled(action):
            return Finished(CANCELLED_OUTCOME)
        self.wctx.action_on_existing = action
        if action == "replace":
            # The branch outlives the worktree, so it is checked out again as is.
            self.wctx.create_new_branch = False
            self.wctx.base_branch = None
            return CollectOptions()
        return RunOperations()

    def _collect_options(self) -> WorkflowState:
        answers = collect_options(
            self._ctx.prompter,
            self._ctx.file_ops,
            self._ctx.host_ops,
            self._ctx.config_store,
            main_repo_path=self._main_repo_path(),
            repo_name=self.wctx.repo_name,
            saved_config=self.wctx.saved_config,
            preferred_terminal=self.wctx.preferred_terminal,
        )
        if is_cancelled(answers):
            return Finished(CANCELLED_OUTCOME)
        self.wctx.apply_options(answers)
        return RunOperations()

    def _run_operations(self) -> WorkflowState:
        if self.wctx.capabilities is None:
            self.wctx.capabilities = self._ctx.host_ops.detect_capabilities(
                self.wctx.preferred_terminal
            )

        after_scripts: list[str] = []
        if self.wctx.config is not None:
            after_scripts = get_after_scripts(self.wctx.config, self.wctx.repo_name)

        queue = build_operation_queue(self._ctx, self.wctx, after_scripts)
        result = run_operations(queue, on_update=self._on_update)
        if result.failed:
            return Finished(
                WorkflowOutcome(
                    status="failed", message=result.last_message, all_succeeded=False
                )
            )

        return Finished(
            WorkflowOutcome(
                status="done",
                message=self._done_message(),
                all_succeeded=result.all_succeeded,
            )
        )

    def _done_message(self) -> str:
        path = self.wctx.worktree_path
        if self.wctx.action_on_existing == "delete":
            return "Worktree deleted."
        if self.wctx.action_on_existing == "open":
            editor = self.wctx.capabilities.editor if self.wctx.capabilities else None
            if editor is None:
                return f"No editor found. Worktree is at: {path}"
            return f"Opened {path} in {editor}."
        return f"Worktree ready at: {path}"
