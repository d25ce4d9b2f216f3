"""Tests for collecting post-creation options."""

from pathlib import Path

from worktree_manager.cli.commands.create.post_creation import (
    collect_options,
    install_question,
)
from worktree_manager.cli.prompts import CANCELLED
from worktree_manager.core.config_store import InMemoryConfigStore, RepoConfig
from worktree_manager.core.file_ops import ProjectInfo, RepoStructure
from worktree_manager.core.terminal import terminal_from_name
from tests.fakes.file_ops import FakeFileOps
from tests.fakes.host_ops import FakeHostOps
from tests.fakes.prompter import ScriptedPrompter

REPO = Path("/code/app")
SINGLE = RepoStructure(
    type="single-project",
    projects=[ProjectInfo(relative_path=".", package_manager="pnpm")],
    root_package_manager="pnpm",
)
MULTI = RepoStructure(
    type="multi-project",
    projects=[
        ProjectInfo(relative_path="api", package_manager="npm"),
        ProjectInfo(relative_path="web", package_manager="yarn"),
    ],
)


def _saved(**defaults) -> RepoConfig:
    return RepoConfig.model_validate({"defaultValues": defaults})


def _collect(
    prompter: ScriptedPrompter,
    file_ops: FakeFileOps | None = None,
    host_ops: FakeHostOps | None = None,
    store: InMemoryConfigStore | None = None,
    saved: RepoConfig | None = None,
    preferred_terminal: str | None = None,
):
    return collect_options(
        prompter,
        file_ops or FakeFileOps(),
        host_ops or FakeHostOps(),
        store or InMemoryConfigStore(),
        main_repo_path=REPO,
        repo_name="app",
        saved_config=saved,
        preferred_terminal=preferred_terminal,
    )


def test_install_question_wording() -> None:
    assert install_question(SINGLE) == "Install dependencies (pnpm)?"
    assert install_question(MULTI) == "Install dependencies in all projects? (Found 2 projects)"


def test_irrelevant_questions_are_skipped() -> None:
    prompter = ScriptedPrompter(
        {"Open in editor": True, "Open in terminal": False, "Save these settings": False}
    )

    answers = _collect(prompter)

    assert prompter.asked_messages == [
        "Open in editor (code)?",
        "Open in terminal?",
        "Save these settings as defaults for app?",
    ]
    assert answers.env_action == "nothing"
    assert answers.env_files == []
    assert answers.generated_files == []
    assert answers.install_dependencies is False
    assert answers.open_in_editor is True
    assert answers.open_in_terminal is False
    assert answers.using_defaults is False


def test_full_question_sequence() -> None:
    file_ops = FakeFileOps(
        env_files=[".env", "web/.env.local"],
        generated_files=["dist", "src/generated"],
        repo_structure=MULTI,
    )
    host_ops = FakeHostOps(editor="cursor", terminal=terminal_from_name("iterm"))
    prompter = ScriptedPrompter(
        {
            "How should they be handled?": "copy",
            "Copy generated files?": ["src/generated"],
            "Install dependencies": True,
            "Open in editor": False,
            "Open in terminal": True,
            "Save these settings": False,
        }
    )

    answers = _collect(prompter, file_ops=file_ops, host_ops=host_ops)

    assert prompter.asked == [
        ("select", "Found 2 env file(s): .env, web/.env.local. How should they be handled?"),
        ("multiselect", "Copy generated files?"),
        ("confirm", "Install dependencies in all projects? (Found 2 projects)"),
        ("confirm", "Open in editor (cursor)?"),
        ("confirm", "Open in terminal (iTerm)?"),
        ("confirm", "Save these settings as defaults for app?"),
    ]
    assert answers.env_action == "copy"
    assert answers.env_files == [".env", "web/.env.local"]
    assert answers.generated_files == ["src/generated"]
    assert answers.install_dependencies is True
    assert answers.repo_structure == MULTI


def test_env_action_nothing_clears_env_files() -> None:
    file_ops = FakeFileOps(env_files=[".env"])
    prompter = ScriptedPrompter(
        {
            "How should they be handled?": "nothing",
            "Open in": False,
            "Save these settings": False,
        }
    )

    answers = _collect(prompter, file_ops=file_ops)

    assert answers.env_action == "nothing"
    assert answers.env_files == []


def test_accepting_saved_configuration_skips_questions() -> None:
    file_ops = FakeFileOps(env_files=[".env"], generated_files=["dist"], repo_structure=SINGLE)
    prompter = ScriptedPrompter({"Use saved configuration?": True})
    saved = _saved(
        dotEnvAction="copy",
        copyGeneratedFiles=True,
        installDependencies=False,
        openInEditor=True,
        openInTerminal=False,
    )

    answers = _collect(prompter, file_ops=file_ops, saved=saved)

    assert prompter.asked_messages == ["Use saved configuration?"]
    assert answers.env_action == "copy"
    assert answers.env_files == [".env"]
    assert answers.generated_files == ["dist"]
    assert answers.install_dependencies is False
    assert answers.open_in_terminal is False
    assert answers.using_defaults is True


def test_saved_copy_generated_false_copies_nothing() -> None:
    file_ops = FakeFileOps(generated_files=["dist"])
    prompter = ScriptedPrompter({"Use saved configuration?": True})

    answers = _collect(prompter, file_ops=file_ops, saved=_saved(copyGeneratedFiles=False))

    assert answers.generated_files == []
    assert answers.open_in_editor is True


def test_saved_env_action_without_env_files_is_nothing() -> None:
    prompter = ScriptedPrompter({"Use saved configuration?": True})

    answers = _collect(prompter, saved=_saved(dotEnvAction="symlink"))

    assert answers.env_action == "nothing"
    assert answers.env_files == []


def test_declining_saved_configuration_asks_and_offers_update() -> None:
    store = InMemoryConfigStore()
    file_ops = FakeFileOps(repo_structure=SINGLE)
    prompter = ScriptedPrompter(
        {
            "Use saved configuration?": False,
            "Install dependencies": False,
            "Open in editor": True,
            "Open in terminal": True,
            "Update saved defaults for app?": True,
        }
    )

    answers = _collect(
        prompter, file_ops=file_ops, store=store, saved=_saved(installDependencies=True)
    )

    assert answers.install_dependencies is False
    assert len(store.save_calls) == 1
    repo_name, defaults = store.save_calls[0]
    assert repo_name == "app"
    assert defaults.to_json_dict() == {
        "installDependencies": False,
        "openInEditor": True,
        "openInTerminal": True,
    }


def test_saving_keeps_defaults_for_questions_not_asked() -> None:
    saved_values = {"dotEnvAction": "copy", "copyGeneratedFiles": True, "openInEditor": True}
    store = InMemoryConfigStore({"repositories": {"app": {"defaultValues": saved_values}}})
    prompter = ScriptedPrompter(
        {
            "Use saved configuration?": False,
            "Open in editor": False,
            "Open in terminal": True,
            "Update saved defaults for app?": True,
        }
    )

    _collect(prompter, store=store, saved=_saved(**saved_values))

    assert store.data == {
        "repositories": {
            "app": {
                "defaultValues": {
                    "dotEnvAction": "copy",
                    "copyGeneratedFiles": True,
                    "openInEditor": False,
                    "openInTerminal": True,
                }
            }
        }
    }


def test_saved_values_that_are_empty_do_not_count() -> None:
    prompter = ScriptedPrompter({"Open in": True, "Save these settings": False})

    _collect(prompter, saved=_saved())

    assert "Use saved configuration?" not in prompter.asked_messages


def test_cancel_midway_saves_nothing() -> None:
    store = InMemoryConfigStore()
    prompter = ScriptedPrompter({"Open in editor": True, "Open in terminal": CANCELLED})

    assert _collect(prompter, store=store) is CANCELLED
    assert store.save_calls == []


def test_preferred_terminal_passed_to_detection() -> None:
    host_ops = FakeHostOps()
    prompter = ScriptedPrompter({"Open in": True, "Save these settings": False})

    _collect(prompter, host_ops=host_ops, preferred_terminal="kitty")

    assert host_ops.capability_requests == ["kitty"]
