"""Thin wrapper around external system utilities.

Every command is echoed before it runs, the same way ``set -x`` traces a
shell script. Failures surface as CommandError so callers can stop at the
first failing step.
"""

import shlex
import subprocess
from typing import List, Optional


def log(msg):
    print(f"[Command] {msg}", flush=True)


class CommandError(RuntimeError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, cmd: List[str], returncode: int):
        self.cmd = list(cmd)
        self.returncode = returncode
        super().__init__(f"{shlex.join(self.cmd)} failed with exit status {returncode}")

    @property
    def exit_status(self) -> int:
        """Process exit status to report for this failure."""
        if self.returncode < 0:
            # Killed by a signal
            return 128 - self.returncode
        return self.returncode or 1


def run(cmd: List[str], capture: bool = False) -> Optional[str]:
    """
    Run a command to completion.

    The command's stderr is never captured, so its own diagnostics reach the
    terminal. With capture=True, stdout is returned stripped.

    Raises:
        CommandError: if the command is missing or exits non-zero
    """
    log(f"+ {shlex.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE if capture else None,
            text=True
        )
    except FileNotFoundError:
        log(f"{cmd[0]}: command not found")
        raise CommandError(cmd, 127)

    if result.returncode != 0:
        raise CommandError(cmd, result.returncode)

    if capture:
        return result.stdout.strip()
    return None


def run_quiet(cmd: List[str]) -> int:
    """Best-effort run with all output discarded. Never raises."""
    log(f"+ {shlex.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL
        )
    except OSError:
        return 127
    return result.returncode
