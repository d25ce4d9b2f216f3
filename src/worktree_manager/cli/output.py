"""Output utilities for CLI commands with clear intent."""

from typing import Any

import click


def user_output(message: Any = "", nl: bool = True) -> None:
    """Write a user-facing message to stderr.

    All human-readable progress and result text goes to stderr so stdout
    stays free for anything a caller might want to capture.
    """
    click.echo(message, err=True, nl=nl)
