"""Collect what should happen after the worktree is created.

Covers env file handling, generated file copying, dependency installation
and opening an editor or terminal. Questions are only asked when they are
relevant (no env files means no env question), saved per-repository
defaults can be accepted in one step, and the answers can be saved back.
"""

import logging
from pathlib import Path

import click

from worktree_manager.cli.commands.create.types import OptionsAnswers
from worktree_manager.cli.output import user_output
from worktree_manager.cli.prompts import CANCELLED, Cancelled, Choice, Prompter, is_cancelled
from worktree_manager.cli.rendering import render_saved_config
from worktree_manager.core.config_store import (
    ConfigStore,
    DefaultValues,
    EnvAction,
    RepoConfig,
)
from worktree_manager.core.file_ops import FileOps, RepoStructure
from worktree_manager.core.host_ops import HostCapabilities, HostOps
from worktree_manager.core.terminal import format_terminal_name

logger = logging.getLogger(__name__)

ENV_ACTION_CHOICES: list[Choice[EnvAction]] = [
    Choice(value="symlink", label="Symlink", hint="share the main repository's files"),
    Choice(value="copy", label="Copy", hint="independent copies"),
    Choice(value="nothing", label="Nothing", hint="leave them out"),
]


def install_question(structure: RepoStructure) -> str:
    """Wording of the dependency question for the detected layout."""
    if structure.type == "multi-project":
        count = len(structure.projects)
        return f"Install dependencies in all projects? (Found {count} projects)"
    manager = structure.projects[0].package_manager if structure.projects else "npm"
    return f"Install dependencies ({manager})?"


def editor_question(capabilities: HostCapabilities) -> str:
    if capabilities.editor:
        return f"Open in editor ({capabilities.editor})?"
    return "Open in editor?"


def terminal_question(capabilities: HostCapabilities) -> str:
    if capabilities.terminal.name != "unknown":
        return f"Open in terminal ({format_terminal_name(capabilities.terminal.name)})?"
    return "Open in terminal?"


def _saved_defaults(saved_config: RepoConfig | None) -> DefaultValues | None:
    if saved_config is None or not saved_config.default_values.has_any_value():
        return None
    return saved_config.default_values


def _consistent_answers(
    *,
    env_action: EnvAction,
    env_files: list[str],
    generated_files: list[str],
    install_dependencies: bool,
    open_in_editor: bool,
    open_in_terminal: bool,
    structure: RepoStructure,
    capabilities: HostCapabilities,
    using_defaults: bool,
) -> OptionsAnswers:
    if not env_files:
        env_action = "nothing"
    return OptionsAnswers(
        env_action=env_action,
        env_files=list(env_files) if env_action != "nothing" else [],
        generated_files=list(generated_files),
        install_dependencies=install_dependencies and bool(structure.projects),
        open_in_editor=open_in_editor,
        open_in_terminal=open_in_terminal,
        repo_structure=structure,
        capabilities=capabilities,
        using_defaults=using_defaults,
    )


def answers_to_defaults(
    answers: OptionsAnswers, *, asked_env: bool, asked_generated: bool, asked_install: bool
) -> DefaultValues:
    """Saved defaults for the questions that were asked.

    Unasked questions stay None so saving keeps whatever was stored before.
    """
    return DefaultValues(
        dot_env_action=answers.env_action if asked_env else None,
        copy_generated_files=bool(answers.generated_files) if asked_generated else None,
        install_dependencies=answers.install_dependencies if asked_install else None,
        open_in_editor=answers.open_in_editor,
        open_in_terminal=answers.open_in_terminal,
    )


def collect_options(
    prompter: Prompter,
    file_ops: FileOps,
    host_ops: HostOps,
    config_store: ConfigStore,
    *,
    main_repo_path: Path,
    repo_name: str,
    saved_config: RepoConfig | None,
    preferred_terminal: str | None = None,
) -> OptionsAnswers | Cancelled:
    """Gather post-creation options, offering saved defaults first.

    Args:
        prompter: Asks the questions
        file_ops: Scans the main repository for env and generated files
        host_ops: Detects the editor and terminal for question labels
        config_store: Receives the answers when the user chooses to save
        main_repo_path: Repository to scan
        repo_name: Key for saved defaults
        saved_config: Previously saved settings for this repository
        preferred_terminal: Terminal configured by the user, if any

    Returns:
        Self-consistent OptionsAnswers, or CANCELLED
    """
    env_files = file_ops.find_env_files(main_repo_path)
    generated_files = file_ops.find_generated_files(main_repo_path)
    structure = file_ops.detect_repo_structure(main_repo_path)
    capabilities = host_ops.detect_capabilities(preferred_terminal)
    logger.debug(
        "Found %d env files, %d generated items, %s with %d projects",
        len(env_files),
        len(generated_files),
        structure.type,
        len(structure.projects),
    )

    saved = _saved_defaults(saved_config)
    if saved is not None:
        render_saved_config(repo_name, saved)
        use_saved = prompter.confirm("Use saved configuration?", default=True)
        if is_cancelled(use_saved):
            return CANCELLED
        if use_saved:
            return _consistent_answers(
                env_action=saved.dot_env_action or "nothing",
                env_files=env_files,
                generated_files=generated_files if saved.copy_generated_files else [],
                install_dependencies=(
                    saved.install_dependencies if saved.install_dependencies is not None else True
                ),
                open_in_editor=saved.open_in_editor if saved.open_in_editor is not None else True,
                open_in_terminal=(
                    saved.open_in_terminal if saved.open_in_terminal is not None else True
                ),
                structure=structure,
                capabilities=capabilities,
                using_defaults=True,
            )

    env_action: EnvAction = "nothing"
    if env_files:
        env_message = (
            f"Found {len(env_files)} env file(s): {', '.join(env_files)}. "
            "How should they be handled?"
        )
        picked_env = prompter.select(
            env_message,
            ENV_ACTION_CHOICES,
            default=(saved.dot_env_action if saved and saved.dot_env_action else "symlink"),
        )
        if is_cancelled(picked_env):
            return CANCELLED
        env_action = picked_env

    selected_generated: list[str] = []
    if generated_files:
        preselect = saved is None or saved.copy_generated_files is not False
        picked_generated = prompter.multiselect(
            "Copy generated files?",
            [Choice(value=item, label=item) for item in generated_files],
            initial=generated_files if preselect else [],
        )
        if is_cancelled(picked_generated):
            return CANCELLED
        selected_generated = picked_generated

    install = False
    if structure.projects:
        default_install = True
        if saved is not None and saved.install_dependencies is not None:
            default_install = saved.install_dependencies
        picked_install = prompter.confirm(install_question(structure), default=default_install)
        if is_cancelled(picked_install):
            return CANCELLED
        install = picked_install

    default_editor = True
    if saved is not None and saved.open_in_editor is not None:
        default_editor = saved.open_in_editor
    open_editor = prompter.confirm(editor_question(capabilities), default=default_editor)
    if is_cancelled(open_editor):
        return CANCELLED

    default_terminal = True
    if saved is not None and saved.open_in_terminal is not None:
        default_terminal = saved.open_in_terminal
    open_terminal = prompter.confirm(terminal_question(capabilities), default=default_terminal)
    if is_cancelled(open_terminal):
        return CANCELLED

    answers = _consistent_answers(
        env_action=env_action,
        env_files=env_files,
        generated_files=selected_generated,
        install_dependencies=install,
        open_in_editor=open_editor,
        open_in_terminal=open_terminal,
        structure=structure,
        capabilities=capabilities,
        using_defaults=False,
    )

    if saved is not None:
        save_message = f"Update saved defaults for {repo_name}?"
    else:
        save_message = f"Save these settings as defaults for {repo_name}?"
    save = prompter.confirm(save_message, default=True)
    if is_cancelled(save):
        return CANCELLED
    if save:
        defaults = answers_to_defaults(
            answers,
            asked_env=bool(env_files),
            asked_generated=bool(generated_files),
            asked_install=bool(structure.projects),
        )
        result = config_store.save_repo_defaults(repo_name, defaults)
        if result.success:
            user_output(click.style(f"Saved defaults to {config_store.path()}", dim=True))
        else:
            user_output(click.style(f"Warning: {result.error}", fg="yellow"))

    return answers
