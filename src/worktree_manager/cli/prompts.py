"""Prompt primitives used by the interactive workflow.

Every prompt returns either the answer or the CANCELLED sentinel. Callers
check for it explicitly with `is_cancelled()`; cancellation never surfaces
as an exception outside this module.

Architecture:
- Prompter: Abstract base class with text/confirm/select/multiselect
- ClickPrompter: Production implementation built on click.prompt/click.confirm
- ScriptedPrompter: Test implementation replaying canned answers (tests/fakes)
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Final, Generic, TypeGuard, TypeVar

import click

from worktree_manager.cli.output import user_output

T = TypeVar("T")


class Cancelled:
    """Sentinel type for a prompt the user backed out of."""

    _instance: "Cancelled | None" = None

    def __new__(cls) -> "Cancelled":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED: Final = Cancelled()


def is_cancelled(value: object) -> TypeGuard[Cancelled]:
    """Check whether a prompt result is the cancellation sentinel."""
    return value is CANCELLED


@dataclass(frozen=True)
class Choice(Generic[T]):
    """One option of a select or multiselect prompt."""

    value: T
    label: str
    hint: str | None = None


class Prompter(ABC):
    """Abstract interface for asking the user questions."""

    @abstractmethod
    def text(
        self,
        message: str,
        *,
        default: str | None = None,
        validate: Callable[[str], str | None] | None = None,
    ) -> str | Cancelled:
        """Ask for free text.

        Args:
            message: Question to show
            default: Value used when the user just presses enter
            validate: Returns an error message for invalid input, None if valid
        """
        ...

    @abstractmethod
    def confirm(self, message: str, *, default: bool) -> bool | Cancelled:
        """Ask a yes/no question."""
        ...

    @abstractmethod
    def select(
        self, message: str, choices: Sequence[Choice[T]], *, default: T | None = None
    ) -> T | Cancelled:
        """Ask the user to pick exactly one choice."""
        ...

    @abstractmethod
    def multiselect(
        self, message: str, choices: Sequence[Choice[T]], *, initial: Sequence[T] = ()
    ) -> list[T] | Cancelled:
        """Ask the user to pick any number of choices (possibly none)."""
        ...

    @abstractmethod
    def note(self, message: str, title: str | None = None) -> None:
        """Show information that needs no answer."""
        ...


def _format_choice(index: int, choice: Choice[Any], marker: str = "") -> str:
    line = f"  {index}) {marker}{choice.label}"
    if choice.hint:
        line += click.style(f"  ({choice.hint})", dim=True)
    return line


def parse_index_list(raw: str, count: int) -> list[int] | None:
    """Parse "1,3 4" into zero-based indices; None when any entry is invalid.

    "none" and "-" select nothing.
    """
    cleaned = raw.strip().lower()
    if cleaned in ("", "none", "-"):
        return []
    indices: list[int] = []
    for token in cleaned.replace(",", " ").split():
        if not token.isdigit():
            return None
        index = int(token) - 1
        if index < 0 or index >= count:
            return None
        if index not in indices:
            indices.append(index)
    return sorted(indices)


class ClickPrompter(Prompter):
    """Production prompter that reads answers from the terminal via click.

    Ctrl-C and end-of-input (click.Abort) become CANCELLED.
    """

    def text(
        self,
        message: str,
        *,
        default: str | None = None,
        validate: Callable[[str], str | None] | None = None,
    ) -> str | Cancelled:
        while True:
            try:
                value = click.prompt(
                    message, default=default or "", show_default=bool(default), err=True
                )
            except click.Abort:
                return CANCELLED
            value = str(value).strip()
            error = validate(value) if validate is not None else None
            if error is None:
                return value
            user_output(click.style("Error: ", fg="red") + error)

    def confirm(self, message: str, *, default: bool) -> bool | Cancelled:
        try:
            return click.confirm(message, default=default, err=True)
        except click.Abort:
            return CANCELLED

    def select(
        self, message: str, choices: Sequence[Choice[T]], *, default: T | None = None
    ) -> T | Cancelled:
        user_output(click.style(message, bold=True))
        for index, choice in enumerate(choices, start=1):
            user_output(_format_choice(index, choice))

        default_index = 1
        for index, choice in enumerate(choices, start=1):
            if choice.value == default:
                default_index = index
                break

        try:
            picked = click.prompt(
                "Choose",
                type=click.IntRange(1, len(choices)),
                default=default_index,
                err=True,
            )
        except click.Abort:
            return CANCELLED
        return choices[picked - 1].value

    def multiselect(
        self, message: str, choices: Sequence[Choice[T]], *, initial: Sequence[T] = ()
    ) -> list[T] | Cancelled:
        user_output(click.style(message, bold=True))
        for index, choice in enumerate(choices, start=1):
            marker = "[x] " if choice.value in initial else "[ ] "
            user_output(_format_choice(index, choice, marker))

        preselected = [str(i) for i, c in enumerate(choices, start=1) if c.value in initial]
        default = ",".join(preselected) if preselected else "none"

        while True:
            try:
                raw = click.prompt(
                    "Numbers to include (comma separated, 'none' for nothing)",
                    default=default,
                    err=True,
                )
            except click.Abort:
                return CANCELLED
            indices = parse_index_list(str(raw), len(choices))
            if indices is not None:
                return [choices[i].value for i in indices]
            error = f"Enter numbers between 1 and {len(choices)}"
            user_output(click.style("Error: ", fg="red") + error)

    def note(self, message: str, title: str | None = None) -> None:
        if title:
            user_output(click.style(title, bold=True))
        user_output(message)
