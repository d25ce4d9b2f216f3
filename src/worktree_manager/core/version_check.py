"""Background check for a newer release on PyPI.

The check runs on a daemon thread with a short HTTP timeout so it never holds
up the workflow. Any failure (offline, timeout, malformed response) simply
means no notice is shown.
"""

import logging
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

import httpx
from packaging.version import InvalidVersion
from packaging.version import parse as parse_version

from worktree_manager.version import PACKAGE_NAME

logger = logging.getLogger(__name__)

SKIP_ENV_VAR = "WORKTREE_SKIP_UPDATE_CHECK"
PYPI_URL = f"https://pypi.org/pypi/{PACKAGE_NAME}/json"
FETCH_TIMEOUT_SECONDS = 2.0

InstalledVia = Literal["pip", "pipx", "uv"]


@dataclass(frozen=True)
class VersionCheckResult:
    """Installed and latest published versions."""

    current_version: str
    latest_version: str
    update_available: bool


def is_newer_version(current: str, latest: str) -> bool:
    """PEP 440 comparison, so a final release is newer than its pre-releases."""
    try:
        return parse_version(latest) > parse_version(current)
    except InvalidVersion as e:
        logger.debug("Cannot compare versions %r and %r: %s", current, latest, e)
        return False


def fetch_latest_version(client: httpx.Client | None = None) -> str | None:
    """Ask PyPI for the latest published version.

    Returns:
        The version string, or None on any network or format problem
    """
    try:
        if client is None:
            response = httpx.get(PYPI_URL, timeout=FETCH_TIMEOUT_SECONDS)
        else:
            response = client.get(PYPI_URL, timeout=FETCH_TIMEOUT_SECONDS)
        response.raise_for_status()
        latest = response.json()["info"]["version"]
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        logger.debug("Update check failed: %s", e)
        return None
    return latest if isinstance(latest, str) else None


def check_for_update(
    current_version: str, env: Mapping[str, str], client: httpx.Client | None = None
) -> VersionCheckResult | None:
    """Compare the installed version against PyPI unless the check is disabled."""
    if env.get(SKIP_ENV_VAR):
        return None
    latest = fetch_latest_version(client)
    if latest is None:
        return None
    return VersionCheckResult(
        current_version=current_version,
        latest_version=latest,
        update_available=is_newer_version(current_version, latest),
    )


def detect_installed_via(prefix: str | None = None) -> InstalledVia:
    """Guess the installer from the interpreter prefix."""
    location = (prefix if prefix is not None else sys.prefix).replace("\\", "/")
    if "/pipx/" in location:
        return "pipx"
    if "/uv/tools/" in location:
        return "uv"
    return "pip"


def get_update_command(installed_via: InstalledVia) -> str:
    """Command the user should run to upgrade."""
    commands: dict[InstalledVia, str] = {
        "pip": f"pip install --upgrade {PACKAGE_NAME}",
        "pipx": f"pipx upgrade {PACKAGE_NAME}",
        "uv": f"uv tool upgrade {PACKAGE_NAME}",
    }
    return commands[installed_via]


class BackgroundUpdateCheck:
    """Runs check_for_update() on a daemon thread.

    Call start() at startup and result() once the workflow has finished; a
    check that has not completed by then is abandoned.
    """

    def __init__(self, current_version: str, env: Mapping[str, str]) -> None:
        self._current_version = current_version
        self._env = env
        self._result: VersionCheckResult | None = None
        self._thread = threading.Thread(target=self._run, name="update-check", daemon=True)

    def start(self) -> None:
        if self._env.get(SKIP_ENV_VAR):
            return
        self._thread.start()

    def result(self, wait_seconds: float = 0.0) -> VersionCheckResult | None:
        if self._thread.is_alive():
            self._thread.join(wait_seconds)
        return self._result

    def _run(self) -> None:
        self._result = check_for_update(self._current_version, self._env)
