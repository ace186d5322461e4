"""Run external commands (the `gh` CLI) and capture their output.

Failures come back as `Err(ProcessError)`; nothing here raises:

    result = run(["gh", "api", "repos/acme/widgets/releases"], cwd=Path("."))
    if isinstance(result, Err):
        console.error(str(result.error))
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from drafter.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run or exited non-zero.

    `returncode` is -1 when the process never started or timed out.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def detail(self) -> str:
        """First non-empty stderr line, or an empty string."""
        for line in self.stderr.splitlines():
            if line.strip():
                return line.strip()
        return ""

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        message = f"{shown} failed (exit {self.returncode})"
        return f"{message}: {self.detail}" if self.detail else message


def _failure(
    cmd: list[str], returncode: int, *, stdout: str = "", stderr: str = ""
) -> Err[ProcessError]:
    return Err(
        ProcessError(command=tuple(cmd), returncode=returncode, stdout=stdout, stderr=stderr)
    )


def run(
    cmd: list[str],
    cwd: Path,
    *,
    timeout: float | None = None,
    input_text: str | None = None,
) -> Result[str, ProcessError]:
    """Run `cmd` in `cwd` and return its stdout.

    `input_text` is written to stdin; `gh api --input -` reads request bodies
    from there.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _failure(cmd, -1, stdout=partial, stderr=f"Command timed out after {timeout}s")
    except OSError as e:
        return _failure(cmd, -1, stderr=str(e))

    if proc.returncode != 0:
        return _failure(cmd, proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    return Ok(proc.stdout)
