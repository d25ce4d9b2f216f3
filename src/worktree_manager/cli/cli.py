import logging
import os

import click

from worktree_manager.cli.commands.create.orchestrator import WorktreeWorkflow
from worktree_manager.cli.commands.create.types import WorkflowOutcome
from worktree_manager.cli.output import user_output
from worktree_manager.cli.rendering import OperationProgressPrinter, render_summary
from worktree_manager.core.context import WorktreeManagerContext, create_context
from worktree_manager.core.version_check import (
    BackgroundUpdateCheck,
    detect_installed_via,
    get_update_command,
)
from worktree_manager.version import PACKAGE_NAME, __version__

DEBUG_ENV_VAR = "WORKTREE_DEBUG"
UPDATE_CHECK_WAIT_SECONDS = 0.5

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


def _configure_logging() -> None:
    if os.getenv(DEBUG_ENV_VAR):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


def _render_outcome(outcome: WorkflowOutcome) -> None:
    if outcome.status == "failed" or outcome.status == "not-a-repo":
        render_summary(outcome.message, kind="error")
    elif outcome.status == "cancelled":
        render_summary(outcome.message, kind="info")
    elif outcome.all_succeeded:
        render_summary(outcome.message, kind="success")
    else:
        render_summary(f"{outcome.message} (some steps need attention)", kind="warning")


def _render_update_notice(update_check: BackgroundUpdateCheck) -> None:
    result = update_check.result(wait_seconds=UPDATE_CHECK_WAIT_SECONDS)
    if result is None or not result.update_available:
        return
    command = get_update_command(detect_installed_via())
    user_output(
        click.style(
            f"Update available: {result.current_version} -> {result.latest_version}. "
            f"Run: {command}",
            fg="yellow",
        )
    )


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument("branch", metavar="BRANCH", required=False)
@click.version_option(package_name=PACKAGE_NAME)
@click.pass_context
def cli(ctx: click.Context, branch: str | None) -> None:
    """Create, open, replace or delete git worktrees interactively.

    Worktrees are created next to the main repository as <repo>-<branch>.
    Pass BRANCH to skip the worktree selection and name prompt.
    """
    _configure_logging()
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()
    worktree_ctx: WorktreeManagerContext = ctx.obj

    update_check = BackgroundUpdateCheck(__version__, worktree_ctx.env)
    update_check.start()

    workflow = WorktreeWorkflow(
        worktree_ctx, branch_name=branch, on_update=OperationProgressPrinter()
    )
    outcome = workflow.run()
    _render_outcome(outcome)
    _render_update_notice(update_check)

    if outcome.exit_code != 0:
        raise SystemExit(outcome.exit_code)


def main() -> None:
    """CLI entry point used by the `worktree` console script."""
    cli()
