"""Tests for the sequential operation runner."""

from worktree_manager.core.operations import (
    Operation,
    OperationResult,
    OperationState,
    run_operations,
)


def _ok(message: str = "Done") -> OperationResult:
    return OperationResult(success=True, message=message)


def test_all_successful_operations() -> None:
    outcome = run_operations(
        [
            Operation("fetch", "Fetching origin", lambda: _ok("Done")),
            Operation("create", "Creating worktree", lambda: _ok("Created")),
        ]
    )

    assert outcome.all_succeeded is True
    assert outcome.failed is False
    assert outcome.last_message == "Created"
    assert [state.status for state in outcome.states] == ["success", "success"]


def test_empty_queue_succeeds_with_empty_message() -> None:
    updates: list[list[OperationState]] = []

    outcome = run_operations([], on_update=updates.append)

    assert outcome.all_succeeded is True
    assert outcome.last_message == ""
    assert outcome.states == []
    assert updates == []


def test_soft_failure_continues_with_remaining_operations() -> None:
    ran: list[str] = []

    def record(op_id: str, result: OperationResult):
        def run() -> OperationResult:
            ran.append(op_id)
            return result

        return run

    outcome = run_operations(
        [
            Operation("deps", "Installing", record("deps", OperationResult(False, "Failed"))),
            Operation("editor", "Opening", record("editor", _ok("Opened"))),
        ]
    )

    assert ran == ["deps", "editor"]
    assert outcome.all_succeeded is False
    assert outcome.failed is False
    assert [state.status for state in outcome.states] == ["warning", "success"]
    assert outcome.last_message == "Opened"


def test_exception_stops_the_queue() -> None:
    ran: list[str] = []

    def boom() -> OperationResult:
        ran.append("create")
        raise RuntimeError("fatal: invalid reference: nope")

    def never() -> OperationResult:
        ran.append("env")
        return _ok()

    outcome = run_operations(
        [
            Operation("create", "Creating worktree", boom),
            Operation("env", "Symlinking env files", never),
        ]
    )

    assert ran == ["create"]
    assert outcome.failed is True
    assert outcome.all_succeeded is False
    assert outcome.last_message == "fatal: invalid reference: nope"
    assert outcome.states[0].status == "error"
    assert outcome.states[1].status == "pending"


def test_exception_without_message_uses_type_name() -> None:
    def boom() -> OperationResult:
        raise ValueError()

    outcome = run_operations([Operation("create", "Creating", boom)])

    assert outcome.last_message == "ValueError"


def test_updates_publish_every_transition_in_order() -> None:
    updates: list[list[OperationState]] = []

    run_operations(
        [
            Operation("a", "First", lambda: _ok()),
            Operation("b", "Second", lambda: OperationResult(False, "meh")),
        ],
        on_update=updates.append,
    )

    statuses = [[state.status for state in snapshot] for snapshot in updates]
    assert statuses == [
        ["pending", "pending"],
        ["running", "pending"],
        ["success", "pending"],
        ["success", "running"],
        ["success", "warning"],
    ]


def test_missing_message_becomes_empty_last_message() -> None:
    outcome = run_operations([Operation("a", "First", lambda: OperationResult(True))])

    assert outcome.last_message == ""
    assert outcome.states[0].message is None
