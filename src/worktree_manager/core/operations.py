"""Sequential execution of side-effecting workflow steps.

An Operation is a labelled callable returning an OperationResult. The runner
executes a queue strictly in order and tracks a status per operation:

    pending -> running -> success | warning | error

A result with success=False is a warning: the run continues but is no longer
fully successful. An exception is an error: it is recorded and nothing after
it runs. The runner itself never raises for operation failures.

Example:
    >>> outcome = run_operations([
    ...     Operation("fetch", "Fetching origin", lambda: OperationResult(True, "Done")),
    ...     Operation("create", "Creating worktree", create_worktree),
    ... ])
    >>> outcome.all_succeeded
    True
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Literal

logger = logging.getLogger(__name__)

OperationStatus = Literal["pending", "running", "success", "warning", "error"]


@dataclass(frozen=True)
class OperationResult:
    """What an operation reports back when it returns normally."""

    success: bool
    message: str | None = None


@dataclass(frozen=True)
class Operation:
    """Declarative step that the runner executes.

    Args:
        id: Stable identifier, e.g. "create" or "env"
        label: Human-readable description shown while running
        run: Performs the step; raising marks it as a hard error
    """

    id: str
    label: str
    run: Callable[[], OperationResult]


@dataclass(frozen=True)
class OperationState:
    """Snapshot of one operation's progress."""

    id: str
    label: str
    status: OperationStatus = "pending"
    message: str | None = None


@dataclass(frozen=True)
class RunOutcome:
    """Aggregate result of a run.

    Attributes:
        all_succeeded: False if any operation warned or errored
        last_message: Message of the last executed operation, or ""
        states: Final state of every operation in queue order
    """

    all_succeeded: bool
    last_message: str
    states: list[OperationState]

    @property
    def failed(self) -> bool:
        """True when an operation raised and the queue was cut short."""
        return any(state.status == "error" for state in self.states)


def run_operations(
    operations: Sequence[Operation],
    on_update: Callable[[list[OperationState]], None] | None = None,
) -> RunOutcome:
    """Execute `operations` one after another.

    Args:
        operations: Queue to run; not modified
        on_update: Called with a snapshot of all states after every transition

    Returns:
        RunOutcome with the aggregate success flag and final states
    """
    states = [OperationState(id=op.id, label=op.label) for op in operations]
    all_succeeded = True
    last_message = ""

    def publish() -> None:
        if on_update is not None:
            on_update(list(states))

    if states:
        publish()

    for index, operation in enumerate(operations):
        states[index] = replace(states[index], status="running")
        publish()

        try:
            result = operation.run()
        except Exception as e:
            logger.debug("Operation %s raised: %s", operation.id, e)
            message = str(e) or type(e).__name__
            states[index] = replace(states[index], status="error", message=message)
            publish()
            return RunOutcome(all_succeeded=False, last_message=message, states=list(states))

        status: OperationStatus = "success" if result.success else "warning"
        if not result.success:
            all_succeeded = False
        states[index] = replace(states[index], status=status, message=result.message)
        last_message = result.message or ""
        publish()

    return RunOutcome(all_succeeded=all_succeeded, last_message=last_message, states=list(states))
