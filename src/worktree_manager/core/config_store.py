"""Persisted per-repository preferences in ~/.worktree.json.

The file holds optional global settings plus a `repositories` map keyed by
repository name. Saving defaults for one repository never touches any other
key in the file, including keys this tool does not know about.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

EnvAction = Literal["symlink", "copy", "nothing"]

CONFIG_FILENAME = ".worktree.json"


class DefaultValues(BaseModel):
    """Answers replayed for a repository instead of prompting."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    dot_env_action: EnvAction | None = Field(default=None, alias="dotEnvAction")
    copy_generated_files: bool | None = Field(default=None, alias="copyGeneratedFiles")
    install_dependencies: bool | None = Field(default=None, alias="installDependencies")
    open_in_editor: bool | None = Field(default=None, alias="openInEditor")
    open_in_terminal: bool | None = Field(default=None, alias="openInTerminal")

    def has_any_value(self) -> bool:
        """True when at least one known default is set."""
        return any(
            value is not None
            for value in (
                self.dot_env_action,
                self.copy_generated_files,
                self.install_dependencies,
                self.open_in_editor,
                self.open_in_terminal,
            )
        )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the on-disk camelCase keys, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RepoConfig(BaseModel):
    """Saved settings for one repository."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    default_values: DefaultValues = Field(default_factory=DefaultValues, alias="defaultValues")
    after_scripts: list[str] | None = Field(default=None, alias="afterScripts")


class Config(BaseModel):
    """Root of ~/.worktree.json."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    terminal: str | None = None
    after_scripts: list[str] | None = Field(default=None, alias="afterScripts")
    repositories: dict[str, RepoConfig] | None = None


@dataclass(frozen=True)
class ConfigLoadResult:
    """Outcome of reading the config file.

    A missing file is a success with `config=None`.
    """

    success: bool
    config: Config | None
    error: str | None = None


@dataclass(frozen=True)
class SaveResult:
    """Outcome of writing the config file."""

    success: bool
    error: str | None = None


def get_repo_config(config: Config | None, repo_name: str) -> RepoConfig | None:
    """Return the saved settings for `repo_name`, if any."""
    if config is None or not config.repositories:
        return None
    return config.repositories.get(repo_name)


def get_after_scripts(config: Config | None, repo_name: str) -> list[str]:
    """Global after scripts followed by the repository's own."""
    if config is None:
        return []
    scripts = list(config.after_scripts or [])
    repo_config = get_repo_config(config, repo_name)
    if repo_config is not None and repo_config.after_scripts:
        scripts.extend(repo_config.after_scripts)
    return scripts


def parse_config(raw: Any) -> ConfigLoadResult:
    """Validate already-decoded JSON against the config schema."""
    try:
        config = Config.model_validate(raw)
    except ValidationError as e:
        return ConfigLoadResult(success=False, config=None, error=f"Invalid config format: {e}")
    return ConfigLoadResult(success=True, config=config)


def merge_repo_defaults(
    raw: dict[str, Any] | None, repo_name: str, defaults: DefaultValues
) -> dict[str, Any]:
    """Return a copy of `raw` with `defaults` stored under `repo_name`.

    Only `repositories[repo_name].defaultValues` changes; every other key,
    repository and field is carried over untouched. Fields left as None in
    `defaults` keep their saved value.

    Args:
        raw: Current decoded file contents, or None when absent or unusable
        repo_name: Repository whose defaults are being saved
        defaults: New defaults for that repository

    Returns:
        New top-level mapping ready to be written
    """
    merged: dict[str, Any] = dict(raw or {})
    repositories: dict[str, Any] = dict(merged.get("repositories") or {})
    repo_entry: dict[str, Any] = dict(repositories.get(repo_name) or {})
    saved_defaults: dict[str, Any] = dict(repo_entry.get("defaultValues") or {})
    saved_defaults.update(defaults.to_json_dict())
    repo_entry["defaultValues"] = saved_defaults
    repositories[repo_name] = repo_entry
    merged["repositories"] = repositories
    return merged


class ConfigStore(ABC):
    """Abstract interface for loading and saving user preferences.

    Injected into the workflow so tests can use InMemoryConfigStore.
    """

    @abstractmethod
    def load(self) -> ConfigLoadResult:
        """Load and validate the config.

        Never raises for unreadable or malformed files; those are reported
        through ConfigLoadResult.error.
        """
        ...

    @abstractmethod
    def save_repo_defaults(self, repo_name: str, defaults: DefaultValues) -> SaveResult:
        """Merge `defaults` into the saved settings for `repo_name`.

        A corrupted existing file is replaced by a fresh one.
        """
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the config file (for messages and debugging)."""
        ...


class RealConfigStore(ConfigStore):
    """Production implementation that reads/writes ~/.worktree.json."""

    def __init__(self, config_path: Path | None = None) -> None:
        self._path = config_path

    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return Path.home() / CONFIG_FILENAME

    def load(self) -> ConfigLoadResult:
        config_path = self.path()
        if not config_path.exists():
            return ConfigLoadResult(success=True, config=None)

        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            return ConfigLoadResult(
                success=False, config=None, error=f"Failed to read config: {e}"
            )
        return parse_config(raw)

    def save_repo_defaults(self, repo_name: str, defaults: DefaultValues) -> SaveResult:
        config_path = self.path()
        merged = merge_repo_defaults(self._read_valid_raw(), repo_name, defaults)

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(json.dumps(merged, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            return SaveResult(success=False, error=f"Failed to save config: {e}")
        logger.debug("Saved defaults for %s to %s", repo_name, config_path)
        return SaveResult(success=True)

    def _read_valid_raw(self) -> dict[str, Any] | None:
        config_path = self.path()
        if not config_path.exists():
            return None
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.debug("Existing config at %s is unreadable, starting fresh", config_path)
            return None
        if not parse_config(raw).success:
            logger.debug("Existing config at %s is invalid, starting fresh", config_path)
            return None
        return raw


class InMemoryConfigStore(ConfigStore):
    """Test implementation that stores the decoded JSON in memory."""

    def __init__(
        self, data: dict[str, Any] | None = None, *, load_error: str | None = None
    ) -> None:
        """Initialize in-memory config store.

        Args:
            data: Initial decoded file contents (None = no config file)
            load_error: When set, load() reports this read failure
        """
        self._data = data
        self._load_error = load_error
        self._save_calls: list[tuple[str, DefaultValues]] = []

    @property
    def data(self) -> dict[str, Any] | None:
        """Current stored contents, for test assertions."""
        return self._data

    @property
    def save_calls(self) -> list[tuple[str, DefaultValues]]:
        """Every (repo_name, defaults) pair passed to save_repo_defaults()."""
        return self._save_calls

    def path(self) -> Path:
        return Path("/in-memory") / CONFIG_FILENAME

    def load(self) -> ConfigLoadResult:
        if self._load_error is not None:
            return ConfigLoadResult(
                success=False, config=None, error=f"Failed to read config: {self._load_error}"
            )
        if self._data is None:
            return ConfigLoadResult(success=True, config=None)
        return parse_config(self._data)

    def save_repo_defaults(self, repo_name: str, defaults: DefaultValues) -> SaveResult:
        self._save_calls.append((repo_name, defaults))
        current = self._data
        if current is not None and not parse_config(current).success:
            current = None
        self._data = merge_repo_defaults(current, repo_name, defaults)
        self._load_error = None
        return SaveResult(success=True)
