"""
Process runner - the single seam through which external tools are invoked.

Public API
----------
ProcessResult
    Exit status and captured output of one finished command.
ProcessRunner
    Protocol implemented by SubprocessRunner and by test doubles.
SubprocessRunner(cwd=None, extra_paths=())
    Runs commands with subprocess, blocking until they exit.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

__all__ = ["ProcessResult", "ProcessRunner", "SubprocessRunner", "redact_args", "FOUNDRY_BIN_DIR"]

logger = logging.getLogger(__name__)

FOUNDRY_BIN_DIR = Path.home() / ".foundry" / "bin"

SECRET_FLAGS = ("--private-key",)
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class ProcessResult:
    command: tuple[str, ...]
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def output(self) -> str:
        """stdout and stderr combined, the way `2>&1` would show them."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class ProcessRunner(Protocol):
    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Path | None = None,
        input: str | None = None,
    ) -> ProcessResult: ...

    def which(self, command: str) -> str | None: ...


def redact_args(args: Sequence[str]) -> list[str]:
    """Mask the value following any secret-bearing flag."""
    redacted: list[str] = []
    hide_next = False
    for arg in args:
        if hide_next:
            redacted.append("***")
            hide_next = False
            continue
        if arg in SECRET_FLAGS:
            hide_next = True
        elif any(arg.startswith(f"{flag}=") for flag in SECRET_FLAGS):
            arg = arg.split("=", 1)[0] + "=***"
        redacted.append(arg)
    return redacted


class SubprocessRunner:
    """Blocking subprocess runner with a PATH extended by the Foundry bin dir."""

    def __init__(self, cwd: Path | None = None, extra_paths: Sequence[Path] = (FOUNDRY_BIN_DIR,)):
        self.cwd = Path(cwd) if cwd else None
        self.extra_paths = [Path(p) for p in extra_paths]

    def _search_path(self) -> str:
        parts = [str(p) for p in self.extra_paths]
        current = os.environ.get("PATH", "")
        if current:
            parts.append(current)
        return os.pathsep.join(parts)

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["PATH"] = self._search_path()
        return env

    def which(self, command: str) -> str | None:
        return shutil.which(command, path=self._search_path())

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Path | None = None,
        input: str | None = None,
    ) -> ProcessResult:
        argv = (command, *args)
        workdir = cwd or self.cwd
        logger.debug("Running: %s (cwd=%s)", " ".join(redact_args(argv)), workdir or os.getcwd())
        executable = self.which(command) or command
        try:
            completed = subprocess.run(
                [executable, *args],
                capture_output=True,
                text=True,
                cwd=workdir,
                input=input,
                env=self._env(),
            )
        except FileNotFoundError:
            return ProcessResult(argv, COMMAND_NOT_FOUND, "", f"{command}: command not found")
        result = ProcessResult(argv, completed.returncode, completed.stdout or "", completed.stderr or "")
        if not result.ok:
            logger.debug("%s exited with status %d", command, result.exit_status)
        return result
