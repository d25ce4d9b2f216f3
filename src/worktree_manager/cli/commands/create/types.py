"""Data structures for the worktree workflow.

These structures carry data between the branch resolver, the existing-path
handler, the options collector, the operation builders and the orchestrator.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from worktree_manager.core.config_store import Config, EnvAction, RepoConfig
from worktree_manager.core.file_ops import RepoStructure
from worktree_manager.core.git.abc import RemoteRef
from worktree_manager.core.host_ops import HostCapabilities

BranchAction = Literal["track-qualified", "use-existing", "track", "create"]
ExistingAction = Literal["open", "delete", "replace"]


@dataclass(frozen=True)
class BranchResolution:
    """How the worktree's branch will be obtained.

    Attributes:
        action: Which resolution rule applied
        branch_name: Local branch to check out or create
        create_new_branch: Whether `git worktree add -b` is needed
        base_branch: Start point for a new branch
        remote_ref: The qualified remote ref for track-qualified
    """

    action: BranchAction
    branch_name: str
    create_new_branch: bool
    base_branch: str | None = None
    remote_ref: RemoteRef | None = None


@dataclass(frozen=True)
class OptionsAnswers:
    """Post-creation decisions, always self-consistent.

    env_files is empty when env_action is "nothing"; generated_files is empty
    when the user declined copying generated files.
    """

    env_action: EnvAction
    env_files: list[str]
    generated_files: list[str]
    install_dependencies: bool
    open_in_editor: bool
    open_in_terminal: bool
    repo_structure: RepoStructure
    capabilities: HostCapabilities
    using_defaults: bool


@dataclass
class WorkflowContext:
    """Mutable session state owned by the orchestrator.

    Created once per run with the defaults below and updated only by the
    orchestrator between steps.
    """

    repo_name: str = ""
    main_repo_path: Path | None = None
    branch_name: str = ""
    worktree_path: Path | None = None
    create_new_branch: bool = True
    base_branch: str | None = None
    base_override: str | None = None
    env_action: EnvAction = "nothing"
    env_files: list[str] = field(default_factory=list)
    generated_files: list[str] = field(default_factory=list)
    should_install_deps: bool = True
    should_open_editor: bool = True
    should_open_terminal: bool = True
    action_on_existing: ExistingAction | None = None
    config: Config | None = None
    saved_config: RepoConfig | None = None
    using_defaults: bool = False
    preferred_terminal: str | None = None
    repo_structure: RepoStructure | None = None
    capabilities: HostCapabilities | None = None

    def apply_resolution(self, resolution: BranchResolution) -> None:
        """Adopt the resolved branch strategy."""
        self.branch_name = resolution.branch_name
        self.create_new_branch = resolution.create_new_branch
        self.base_branch = resolution.base_branch

    def apply_options(self, answers: OptionsAnswers) -> None:
        """Adopt the collected post-creation options."""
        self.env_action = answers.env_action
        self.env_files = list(answers.env_files)
        self.generated_files = list(answers.generated_files)
        self.should_install_deps = answers.install_dependencies
        self.should_open_editor = answers.open_in_editor
        self.should_open_terminal = answers.open_in_terminal
        self.repo_structure = answers.repo_structure
        self.capabilities = answers.capabilities
        self.using_defaults = answers.using_defaults


WorkflowStatus = Literal["done", "cancelled", "not-a-repo", "failed"]


@dataclass(frozen=True)
class WorkflowOutcome:
    """How a workflow run ended.

    all_succeeded is False when the run completed but some operations ended
    with a warning.
    """

    status: WorkflowStatus
    message: str
    all_succeeded: bool = True

    @property
    def exit_code(self) -> int:
        if self.status in ("failed", "not-a-repo"):
            return 1
        return 0
