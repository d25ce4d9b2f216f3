"""Terminal emulator detection and the commands that open a new tab in one.

Everything here is pure: detection reads a mapping of environment variables
and command building returns argv lists, so both are testable without a
terminal. RealHostOps executes the commands.
"""

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class TerminalInfo:
    """A detected terminal emulator and what it can do."""

    name: str
    supports_new_tab: bool
    supports_title: bool


UNKNOWN_TERMINAL = TerminalInfo(name="unknown", supports_new_tab=False, supports_title=False)

_KNOWN_TERMINALS: dict[str, TerminalInfo] = {
    info.name: info
    for info in [
        TerminalInfo("ghostty", supports_new_tab=True, supports_title=True),
        TerminalInfo("iterm", supports_new_tab=True, supports_title=True),
        TerminalInfo("warp", supports_new_tab=True, supports_title=False),
        TerminalInfo("vscode", supports_new_tab=False, supports_title=False),
        TerminalInfo("kitty", supports_new_tab=True, supports_title=True),
        TerminalInfo("alacritty", supports_new_tab=False, supports_title=False),
        TerminalInfo("apple-terminal", supports_new_tab=True, supports_title=True),
        TerminalInfo("hyper", supports_new_tab=False, supports_title=False),
        TerminalInfo("gnome-terminal", supports_new_tab=True, supports_title=True),
        TerminalInfo("konsole", supports_new_tab=True, supports_title=True),
        UNKNOWN_TERMINAL,
    ]
}

TERMINAL_DISPLAY_NAMES: dict[str, str] = {
    "apple-terminal": "Terminal",
    "iterm": "iTerm",
    "warp": "Warp",
    "vscode": "VS Code",
    "ghostty": "Ghostty",
    "kitty": "Kitty",
    "alacritty": "Alacritty",
    "hyper": "Hyper",
    "gnome-terminal": "GNOME Terminal",
    "konsole": "Konsole",
    "unknown": "terminal",
}


def detect_terminal(env: Mapping[str, str]) -> TerminalInfo:
    """Identify the running terminal emulator from its environment variables.

    Args:
        env: Environment mapping, usually os.environ

    Returns:
        TerminalInfo for the first terminal whose marker variable is present,
        or UNKNOWN_TERMINAL
    """
    term_program = env.get("TERM_PROGRAM", "")
    term_program_lower = term_program.lower()

    if env.get("GHOSTTY_RESOURCES_DIR"):
        return _KNOWN_TERMINALS["ghostty"]
    if env.get("ITERM_SESSION_ID"):
        return _KNOWN_TERMINALS["iterm"]
    if env.get("WARP_SESSION_ID") or "warp" in term_program_lower:
        return _KNOWN_TERMINALS["warp"]
    if env.get("VSCODE_INJECTION") or term_program == "vscode":
        return _KNOWN_TERMINALS["vscode"]
    if env.get("KITTY_PID"):
        return _KNOWN_TERMINALS["kitty"]
    if env.get("ALACRITTY_SOCKET"):
        return _KNOWN_TERMINALS["alacritty"]
    if term_program_lower == "apple_terminal":
        return _KNOWN_TERMINALS["apple-terminal"]
    if term_program_lower == "hyper":
        return _KNOWN_TERMINALS["hyper"]
    if env.get("GNOME_TERMINAL_SCREEN"):
        return _KNOWN_TERMINALS["gnome-terminal"]
    if env.get("KONSOLE_VERSION"):
        return _KNOWN_TERMINALS["konsole"]
    return UNKNOWN_TERMINAL


def terminal_from_name(name: str) -> TerminalInfo:
    """Look up a terminal by its configured name; unrecognised names are unknown."""
    return _KNOWN_TERMINALS.get(name.strip().lower(), UNKNOWN_TERMINAL)


def format_terminal_name(name: str) -> str:
    """Human-readable terminal name for prompt labels."""
    return TERMINAL_DISPLAY_NAMES.get(name, "terminal")


def _escape_path(path: str) -> str:
    return path.replace('"', '\\"').replace("$", "\\$")


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _escape_shell(text: str) -> str:
    return text.replace("'", "'\\''")


def _keystroke_new_tab(app: str, line: str) -> str:
    return f"""
    tell application "{app}"
      activate
      tell application "System Events"
        keystroke "t" using command down
        delay 0.3
        keystroke "{line}"
        key code 36
      end tell
    end tell
    """


def _terminal_specific_command(name: str, path: str, title: str | None) -> list[str] | None:
    if name == "iterm":
        title_line = f'set name to "{_escape_applescript(title)}"' if title else ""
        script = f"""
    tell application "iTerm"
      tell current window
        create tab with default profile
        tell current session
          {title_line}
          write text "cd {_escape_path(path)}"
        end tell
      end tell
    end tell
    """
        return ["osascript", "-e", script]

    if name == "apple-terminal":
        title_line = (
            f'set custom title of front window to "{_escape_applescript(title)}"' if title else ""
        )
        script = f"""
    tell application "Terminal"
      activate
      do script "cd {_escape_path(path)}"
      {title_line}
    end tell
    """
        return ["osascript", "-e", script]

    if name == "warp":
        return ["osascript", "-e", _keystroke_new_tab("Warp", f"cd {_escape_path(path)}")]

    if name == "ghostty":
        line = f"cd {_escape_path(path)}"
        if title:
            line += f" && printf '\\\\033]0;{_escape_shell(title)}\\\\007'"
        return ["osascript", "-e", _keystroke_new_tab("Ghostty", line)]

    if name == "kitty":
        cmd = ["kitty", "@", "launch", "--type=tab"]
        if title:
            cmd.append(f"--tab-title={title}")
        cmd.append(f"--cwd={path}")
        return cmd

    if name == "gnome-terminal":
        cmd = ["gnome-terminal", "--tab"]
        if title:
            cmd.append(f"--title={title}")
        cmd.append(f"--working-directory={path}")
        return cmd

    if name == "konsole":
        cmd = ["konsole", "--new-tab"]
        if title:
            cmd.extend(["-p", f"tabtitle={title}"])
        cmd.extend(["--workdir", path])
        return cmd

    return None


def default_terminal_commands(path: str, platform: str) -> list[list[str]]:
    """Platform fallbacks for opening a terminal at `path`, tried in order."""
    if platform == "darwin":
        return [["open", "-a", "Terminal", path]]
    if platform.startswith("linux"):
        return [
            ["x-terminal-emulator", f"--working-directory={path}"],
            ["xdg-open", path],
        ]
    if platform == "win32":
        return [["cmd", "/c", "start", "cmd", "/K", f"cd /d {path}"]]
    return []


def build_terminal_commands(
    terminal: TerminalInfo, path: str, title: str | None, platform: str
) -> list[list[str]]:
    """All commands worth trying to open `path`, most specific first.

    The terminal-specific command (if any) comes first, then the platform
    fallbacks so a failing integration still opens something.
    """
    commands: list[list[str]] = []
    specific = _terminal_specific_command(terminal.name, path, title)
    if specific is not None:
        commands.append(specific)
    commands.extend(default_terminal_commands(path, platform))
    return commands
