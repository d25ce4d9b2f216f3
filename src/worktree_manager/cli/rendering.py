"""Terminal rendering for workflow progress and results.

Output goes to stderr, like every other user-facing message.
"""

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from worktree_manager.cli.output import user_output
from worktree_manager.core.config_store import DefaultValues
from worktree_manager.core.operations import OperationState, OperationStatus

STATUS_ICONS: dict[OperationStatus, tuple[str, str | None]] = {
    "pending": ("○", None),
    "running": ("…", "cyan"),
    "success": ("✓", "green"),
    "warning": ("!", "yellow"),
    "error": ("✗", "red"),
}


def format_operation_line(state: OperationState) -> str:
    """One status line, e.g. "✓ Creating worktree: Created"."""
    icon, color = STATUS_ICONS[state.status]
    line = f"{click.style(icon, fg=color)} {state.label}"
    if state.message and state.status in ("success", "warning", "error"):
        line += f": {state.message}"
    return line


class OperationProgressPrinter:
    """Prints a line whenever an operation starts or finishes.

    Passed as the on_update callback of run_operations(). The full queue is
    listed once up front so the user sees every pending step.
    """

    def __init__(self) -> None:
        self._seen: dict[str, OperationStatus] = {}

    def __call__(self, states: list[OperationState]) -> None:
        if not self._seen:
            for state in states:
                user_output(format_operation_line(state))
                self._seen[state.id] = state.status
            return

        for state in states:
            if self._seen.get(state.id) == state.status:
                continue
            self._seen[state.id] = state.status
            user_output(format_operation_line(state))


def _describe_defaults(defaults: DefaultValues) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    if defaults.dot_env_action is not None:
        rows.append(("Env files", defaults.dot_env_action))
    if defaults.copy_generated_files is not None:
        rows.append(("Copy generated files", "yes" if defaults.copy_generated_files else "no"))
    if defaults.install_dependencies is not None:
        rows.append(("Install dependencies", "yes" if defaults.install_dependencies else "no"))
    if defaults.open_in_editor is not None:
        rows.append(("Open in editor", "yes" if defaults.open_in_editor else "no"))
    if defaults.open_in_terminal is not None:
        rows.append(("Open in terminal", "yes" if defaults.open_in_terminal else "no"))
    return rows


def render_saved_config(repo_name: str, defaults: DefaultValues) -> None:
    """Show the saved defaults for a repository in a panel."""
    lines = Text()
    for index, (label, value) in enumerate(_describe_defaults(defaults)):
        if index:
            lines.append("\n")
        lines.append(f"{label}: ", style="bold")
        lines.append(value)

    console = Console(stderr=True)
    panel = Panel(
        lines, title=f"Saved Configuration for {repo_name}", border_style="cyan", expand=False
    )
    console.print(panel)


def render_summary(message: str, *, kind: str) -> None:
    """Final one-line summary: kind is "success", "warning", "error" or "info"."""
    colors = {"success": "green", "warning": "yellow", "error": "red", "info": None}
    if kind == "error":
        user_output(click.style("Error: ", fg="red") + message)
        return
    user_output(click.style(message, fg=colors.get(kind), bold=kind == "success"))
