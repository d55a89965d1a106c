"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git, plus
the console output helpers used for progress and warnings.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(
    *args: str,
    check: bool = True,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., config lookup).
        cwd: Directory to run git in. Defaults to the current directory.
        timeout: Seconds to wait before raising subprocess.TimeoutExpired.

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        check=check,
        cwd=cwd,
        timeout=timeout,
    )
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def info(msg: str) -> None:
    """Print an indented progress line under the current step."""
    print(f"  {msg}")


def warn(msg: str) -> None:
    """Print a warning to stderr without stopping."""
    print(f"Warning: {msg}", file=sys.stderr)

