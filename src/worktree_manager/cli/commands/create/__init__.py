"""Interactive worktree workflow subpackage.

Handles every path through the workflow:
- Creating a worktree for a new, local, remote or remote-qualified branch
- Opening, replacing or deleting an existing worktree
- Post-creation setup (env files, generated files, dependencies, editor, terminal)
"""

from worktree_manager.cli.commands.create.orchestrator import WorktreeWorkflow as WorktreeWorkflow
from worktree_manager.cli.commands.create.types import WorkflowOutcome as WorkflowOutcome
