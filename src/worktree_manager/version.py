from importlib.metadata import PackageNotFoundError, version

PACKAGE_NAME = "git-worktree-manager"

try:
    __version__ = version(PACKAGE_NAME)
except PackageNotFoundError:
    # Running from a source checkout that was never installed.
    __version__ = "0.0.0"
