"""Run user-configured build and publish commands through the shell.

The command string is passed verbatim to the platform shell with the
site root as working directory. It is user-authored build tooling, so
it is neither parsed nor sandboxed.
"""

from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from sitepress.errors import CommandTimeoutError

logger = logging.getLogger(__name__)

# How long to wait for reader threads once the process is gone
_READER_JOIN_TIMEOUT = 5.0

# Placeholder for output that went to the terminal instead of a pipe
NOT_CAPTURED = "N/A"


@dataclass
class CommandResult:
    """Outcome of a finished command. Output is empty when not captured."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    captured: bool = True

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class _StreamReader:
    """Collects a text stream line by line on a daemon thread."""

    stream: IO[str]
    label: str
    lines: list[str] = field(default_factory=list)
    thread: threading.Thread | None = None

    def start(self) -> None:
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def _run(self) -> None:
        with contextlib.suppress(ValueError, OSError):
            for line in self.stream:
                line = line.rstrip("\r\n")
                logger.debug("[%s] %s", self.label, line)
                self.lines.append(line)

    @property
    def alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def join(self, timeout: float | None = None) -> str:
        if self.thread is not None:
            self.thread.join(timeout)
        return "\n".join(self.lines)


def run_command(
    command: str,
    working_dir: str | Path,
    *,
    timeout_ms: int = -1,
    capture_output: bool = True,
) -> CommandResult:
    """Run a shell command and wait for it to finish.

    Args:
        command: Command line passed verbatim to the shell.
        working_dir: Directory to run in, normally the site root.
        timeout_ms: Milliseconds to wait. Negative waits forever.
        capture_output: Collect stdout/stderr. When False the child
            inherits this process's streams.

    Returns:
        CommandResult with the exit code and any captured output.
        A non-zero exit code is returned, not raised.

    Raises:
        CommandTimeoutError: If the command outlives ``timeout_ms``,
            counting background children that keep its output pipes
            open. The whole process group is killed first.
        OSError: If the shell cannot be started.
    """
    logger.info("Running %r in %s", command, working_dir)

    pipe = subprocess.PIPE if capture_output else None
    popen_kwargs: dict = {}
    if sys.platform == "win32":
        popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        popen_kwargs["start_new_session"] = True

    proc = subprocess.Popen(
        command,
        shell=True,
        cwd=working_dir,
        stdout=pipe,
        stderr=pipe,
        text=True,
        encoding="utf-8",
        errors="replace",
        **popen_kwargs,
    )

    readers: list[_StreamReader] = []
    if capture_output:
        if proc.stdout is None or proc.stderr is None:
            raise OSError(f"Could not open output pipes for {command!r}")
        readers = [_StreamReader(proc.stdout, "stdout"), _StreamReader(proc.stderr, "stderr")]
        for reader in readers:
            reader.start()

    # One deadline covers the shell and any child still holding its pipes
    deadline = time.monotonic() + timeout_ms / 1000 if timeout_ms >= 0 else None
    try:
        exit_code = proc.wait(timeout=_remaining(deadline))
        for reader in readers:
            reader.join(_remaining(deadline))
        if any(reader.alive for reader in readers):
            raise subprocess.TimeoutExpired(command, timeout_ms / 1000)
    except subprocess.TimeoutExpired as exc:
        _kill_process_tree(proc)
        if capture_output:
            stdout, stderr = (reader.join(_READER_JOIN_TIMEOUT) for reader in readers)
        else:
            stdout = stderr = NOT_CAPTURED
        raise CommandTimeoutError(
            f"'{command}' did not finish within {timeout_ms} ms and was killed.",
            command=command,
            stdout=stdout,
            stderr=stderr,
        ) from exc

    output = [reader.join() for reader in readers] or ["", ""]
    logger.debug("%r exited with %d", command, exit_code)
    return CommandResult(
        command=command,
        exit_code=exit_code,
        stdout=output[0],
        stderr=output[1],
        captured=capture_output,
    )


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def _kill_process_tree(proc: subprocess.Popen) -> None:
    """Best-effort kill of the shell and everything it started."""
    try:
        if sys.platform == "win32":
            subprocess.run(
                ["taskkill", "/F", "/T", "/PID", str(proc.pid)],
                capture_output=True,
                check=False,
            )
        else:
            os.killpg(proc.pid, signal.SIGKILL)
    except OSError as exc:
        logger.debug("Failed to kill process group %d: %s", proc.pid, exc)

    with contextlib.suppress(OSError):
        proc.kill()
    with contextlib.suppress(subprocess.TimeoutExpired):
        proc.wait(timeout=_READER_JOIN_TIMEOUT)
