"""Launcher - start a resolved server definition as a child process.

Handles:
- Foreground runs (block and return the exit code)
- Detached background runs with timestamped log and PID files
- Opening servers in new terminal windows (group foreground runs)
"""

from __future__ import annotations

import os
import platform
import random
import shlex
import shutil
import string
import subprocess
import tempfile
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .errors import ExternalToolMissingError, FileAccessError, MCPToolError
from .shared.logging import get_logger
from .store.models import ServerDefinition

logger = get_logger(__name__)

GROUP_LAUNCH_DELAY = 0.5

LINUX_TERMINALS = ("gnome-terminal", "xterm", "konsole")


class LaunchMode(Enum):
    """How a server process is started."""

    FOREGROUND = "foreground"
    BACKGROUND = "background"
    TERMINAL = "terminal"


@dataclass
class LaunchRequest:
    """A server ready to launch: command line plus resolved environment."""

    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    description: str = ""

    @classmethod
    def from_server(cls, server: ServerDefinition, resolved_env: Mapping[str, str]) -> LaunchRequest:
        return cls(
            name=server.name,
            command=server.command,
            args=list(server.args),
            env=dict(resolved_env),
            description=server.display_description,
        )

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


@dataclass
class DetachedProcess:
    """A server started in the background."""

    name: str
    pid: int
    log_file: Path
    pid_file: Path


@dataclass
class TerminalLaunch:
    """A server opened in a new terminal window."""

    name: str
    emulator: str
    script: Path


@dataclass
class GroupMemberLaunch:
    """Outcome of launching one member of a group."""

    name: str
    result: int | DetachedProcess | TerminalLaunch | None = None
    error: MCPToolError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_environment(request: LaunchRequest, environment: Mapping[str, str]) -> dict[str, str]:
    """Child environment: the caller's environment with resolved values on top."""
    return {**environment, **request.env}


def _missing_executable(request: LaunchRequest) -> ExternalToolMissingError:
    return ExternalToolMissingError(
        f"Command '{request.command}' for server '{request.name}' not found. "
        "Make sure it is installed and in your PATH.",
        tool=request.command,
    )


def run_foreground(request: LaunchRequest, environment: Mapping[str, str]) -> int:
    """Run the server attached to the terminal and wait for it to exit.

    Returns:
        The child's exit code
    """
    logger.info("server_starting", server=request.name, mode=LaunchMode.FOREGROUND.value)
    try:
        completed = subprocess.run(request.argv, env=build_environment(request, environment), check=False)
    except FileNotFoundError as e:
        raise _missing_executable(request) from e
    except PermissionError as e:
        raise FileAccessError(f"Cannot execute '{request.command}': {e.strerror}") from e
    logger.info("server_exited", server=request.name, exit_code=completed.returncode)
    return completed.returncode


def _random_suffix(length: int = 6) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def _refresh_symlink(link: Path, target: Path) -> None:
    link.unlink(missing_ok=True)
    try:
        link.symlink_to(target)
    except OSError as e:
        logger.warning("symlink_failed", link=str(link), error=str(e))


def run_background(
    request: LaunchRequest,
    environment: Mapping[str, str],
    log_dir: Path,
    now: datetime | None = None,
) -> DetachedProcess:
    """Start the server detached from this process and return immediately.

    Output goes to ``<log_dir>/<name>_<timestamp>_<suffix>.log``; the PID is
    written next to it and ``<name>.log.latest`` / ``<name>.pid.latest``
    point at the newest pair.
    """
    try:
        log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as e:
        raise FileAccessError(f"Cannot create log directory {log_dir}: {e.strerror or e}", path=log_dir) from e

    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    stem = f"{request.name}_{timestamp}_{_random_suffix()}"
    log_file = log_dir / f"{stem}.log"
    pid_file = log_dir / f"{stem}.pid"

    try:
        log = open(log_file, "a", encoding="utf-8")
    except OSError as e:
        raise FileAccessError(f"Cannot write {log_file}: {e.strerror or e}", path=log_file) from e

    with log:
        log.write(f"=== Starting {request.name} at {datetime.now().isoformat(timespec='seconds')} ===\n")
        log.write(f"Command: {shlex.join(request.argv)}\n")
        log.flush()
        try:
            process = subprocess.Popen(
                request.argv,
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
                env=build_environment(request, environment),
                start_new_session=True,
                close_fds=True,
            )
        except FileNotFoundError as e:
            raise _missing_executable(request) from e
        except OSError as e:
            raise FileAccessError(f"Cannot start '{request.name}' in background: {e.strerror or e}") from e

    try:
        pid_file.write_text(f"{process.pid}\n")
    except OSError as e:
        raise FileAccessError(f"Cannot write {pid_file}: {e.strerror or e}", path=pid_file) from e

    _refresh_symlink(log_dir / f"{request.name}.log.latest", log_file)
    _refresh_symlink(log_dir / f"{request.name}.pid.latest", pid_file)

    logger.info("server_detached", server=request.name, pid=process.pid, log_file=str(log_file))
    return DetachedProcess(name=request.name, pid=process.pid, log_file=log_file, pid_file=pid_file)


def terminal_script(request: LaunchRequest) -> str:
    """Bash script run inside a new terminal window.

    Every value is quoted, so nothing from a definition is evaluated by
    the shell.
    """
    lines = ["#!/bin/bash"]
    lines.extend(f"export {key}={shlex.quote(value)}" for key, value in request.env.items())
    lines.extend(
        [
            f"echo {shlex.quote(f'Starting server: {request.name}')}",
            f"echo {shlex.quote(f'Command: {shlex.join(request.argv)}')}",
            'echo "Press Ctrl+C to stop or close this window"',
            'echo "-----------------------------------"',
            shlex.join(request.argv),
            "code=$?",
            f"echo {shlex.quote(f'Server {request.name} stopped.')}",
            'echo "Return code: $code"',
            'read -r -p "Press Enter to close this window..." _',
            'rm -f "$0"',
        ]
    )
    return "\n".join(lines) + "\n"


def find_terminal(script: Path, system: str | None = None) -> tuple[str, list[str]]:
    """Pick a terminal emulator and the command that opens ``script`` in it.

    Raises:
        ExternalToolMissingError: If no supported emulator is available
    """
    system = (system or platform.system()).lower()
    quoted = shlex.quote(str(script))

    if system == "darwin":
        if shutil.which("osascript"):
            return "Terminal", [
                "osascript",
                "-e",
                f'tell application "Terminal" to do script "bash {quoted}"',
            ]
    elif system == "linux":
        for emulator in LINUX_TERMINALS:
            if not shutil.which(emulator):
                continue
            if emulator == "gnome-terminal":
                return emulator, [emulator, "--", "bash", str(script)]
            return emulator, [emulator, "-e", f"bash {quoted}"]
    else:
        raise ExternalToolMissingError(
            f"Unsupported operating system for terminal windows: {system}", tool="terminal"
        )

    raise ExternalToolMissingError(
        "Could not find a suitable terminal emulator "
        f"(tried {'osascript' if system == 'darwin' else ', '.join(LINUX_TERMINALS)}).",
        tool="terminal",
    )


def run_in_terminal(request: LaunchRequest, system: str | None = None) -> TerminalLaunch:
    """Open the server in a new terminal window."""
    try:
        fd, name = tempfile.mkstemp(prefix=f"mcptool_{request.name}_", suffix=".sh")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(terminal_script(request))
        os.chmod(name, 0o700)
    except OSError as e:
        raise FileAccessError(f"Cannot create launch script: {e.strerror or e}") from e
    script = Path(name)

    try:
        emulator, command = find_terminal(script, system)
        subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except (MCPToolError, OSError) as e:
        script.unlink(missing_ok=True)
        if isinstance(e, OSError):
            raise ExternalToolMissingError(f"Cannot open a terminal window: {e.strerror or e}", tool="terminal") from e
        raise

    logger.info("server_terminal_opened", server=request.name, emulator=emulator)
    return TerminalLaunch(name=request.name, emulator=emulator, script=script)


def launch(
    request: LaunchRequest,
    mode: LaunchMode,
    environment: Mapping[str, str],
    log_dir: Path | None = None,
) -> int | DetachedProcess | TerminalLaunch:
    """Launch a server in the given mode.

    Returns:
        Exit code (foreground), DetachedProcess (background) or
        TerminalLaunch (terminal)
    """
    if mode is LaunchMode.FOREGROUND:
        return run_foreground(request, environment)
    if mode is LaunchMode.BACKGROUND:
        if log_dir is None:
            raise ValueError("log_dir is required for background launches")
        return run_background(request, environment, log_dir)
    return run_in_terminal(request)


def launch_group(
    requests: list[LaunchRequest],
    mode: LaunchMode,
    environment: Mapping[str, str],
    log_dir: Path | None = None,
    delay: float = GROUP_LAUNCH_DELAY,
    sleep: Callable[[float], None] | None = None,
    on_launch: Callable[[GroupMemberLaunch], None] | None = None,
) -> list[GroupMemberLaunch]:
    """Launch group members one after another.

    A failing member is recorded and the rest are still launched. Earlier
    successes are not undone.
    """
    outcomes: list[GroupMemberLaunch] = []
    for index, request in enumerate(requests):
        if index and delay:
            (sleep or time.sleep)(delay)
        try:
            outcome = GroupMemberLaunch(request.name, result=launch(request, mode, environment, log_dir))
        except MCPToolError as e:
            logger.warning("group_member_failed", server=request.name, error=e.message)
            outcome = GroupMemberLaunch(request.name, error=e)
        outcomes.append(outcome)
        if on_launch is not None:
            on_launch(outcome)
    return outcomes
