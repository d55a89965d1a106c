"""Git access for change detection.

Everything here shells out through ``shell.git`` so tests can patch a
single function.
"""

from __future__ import annotations

import subprocess
import time
from pathlib import Path
from typing import Protocol

from .errors import DiffFailed, FetchFailed, VcsError, VcsTimeoutError
from .shell import git


class Deadline:
    """A time budget shared by every git call of one step.

    Each call gets only the time left, so a fetch, merge-base and diff
    together never run longer than the original timeout.

    Args:
        timeout: Seconds for the whole step, or None for no limit.
    """

    def __init__(self, timeout: float | None) -> None:
        self.timeout = timeout
        self._expires = None if timeout is None else time.monotonic() + timeout

    @classmethod
    def of(cls, timeout: float | Deadline | None) -> Deadline:
        """Start a new deadline from seconds, or pass an existing one through."""
        if isinstance(timeout, Deadline):
            return timeout
        return cls(timeout)

    def remaining(self, command: str) -> float | None:
        """Seconds left for command.

        Raises:
            VcsTimeoutError: If the budget is already spent.
        """
        if self._expires is None:
            return None
        left = self._expires - time.monotonic()
        if left <= 0:
            raise VcsTimeoutError(command, self.timeout or 0)
        return left


class DiffProvider(Protocol):
    """What the change detector and collector need from version control."""

    def changed_files(
        self, baseline: str, fetch_first: bool, timeout: float | Deadline | None
    ) -> set[str]: ...

    def fetch_baseline(self, baseline: str, timeout: float | Deadline | None) -> None: ...

    def added_files(
        self, baseline: str, folder: str, timeout: float | Deadline | None
    ) -> set[str]: ...

    def detect_identity_email(self) -> str | None: ...


def _describe(exc: subprocess.CalledProcessError) -> str:
    stderr = (exc.stderr or "").strip()
    return stderr or f"exit status {exc.returncode}"


class GitDiffProvider:
    """Diff provider backed by the git CLI.

    Methods that take a ``timeout`` accept seconds or a ``Deadline``.
    Seconds start a fresh budget for that one method; a ``Deadline`` lets
    several methods share one budget.

    Args:
        root: Workspace root; all git commands run there.
        remote: Remote that the baseline branch is fetched from.
    """

    def __init__(self, root: Path, remote: str = "origin") -> None:
        self.root = root
        self.remote = remote

    def _git(self, *args: str, deadline: Deadline | None = None, check: bool = True) -> str:
        command = f"git {' '.join(args)}"
        timeout = deadline.remaining(command) if deadline is not None else None
        try:
            return git(*args, cwd=self.root, timeout=timeout, check=check)
        except subprocess.TimeoutExpired:
            limit = deadline.timeout if deadline is not None else None
            raise VcsTimeoutError(command, limit or 0) from None

    def fetch_baseline(self, baseline: str, timeout: float | Deadline | None) -> None:
        """Fetch the baseline branch from the remote.

        Raises:
            FetchFailed: If git fetch fails.
            VcsTimeoutError: If the fetch does not finish within timeout.
        """
        deadline = Deadline.of(timeout)
        branch = baseline
        if branch.startswith(f"{self.remote}/"):
            branch = branch[len(self.remote) + 1 :]
        try:
            self._git("fetch", self.remote, branch, deadline=deadline)
        except subprocess.CalledProcessError as exc:
            raise FetchFailed(f"Unable to fetch {baseline}: {_describe(exc)}") from exc

    def merge_base(self, baseline: str, timeout: float | Deadline | None = None) -> str:
        """Find the commit where HEAD diverged from baseline.

        Raises:
            DiffFailed: If git cannot find a common ancestor.
        """
        try:
            return self._git("merge-base", "--", "HEAD", baseline, deadline=Deadline.of(timeout))
        except subprocess.CalledProcessError as exc:
            raise DiffFailed(
                f"Unable to determine merge base for branch {baseline}: {_describe(exc)}"
            ) from exc

    def changed_files(
        self, baseline: str, fetch_first: bool = True, timeout: float | Deadline | None = None
    ) -> set[str]:
        """Return paths changed since HEAD diverged from baseline.

        Committed and staged changes count; unstaged edits do not. Renames
        report both the old and the new path.

        Args:
            baseline: Branch or commit to compare against.
            fetch_first: Fetch the baseline from the remote before diffing.
            timeout: Seconds (or a shared Deadline) for all git calls
                made here together.

        Raises:
            FetchFailed: If fetch_first is set and fetching fails. The
                caller decides whether to carry on.
            DiffFailed: If the diff itself fails.
            VcsTimeoutError: If the git calls exceed the timeout.
        """
        deadline = Deadline.of(timeout)
        if fetch_first:
            self.fetch_baseline(baseline, deadline)
        base = self.merge_base(baseline, deadline)
        try:
            output = self._git(
                "diff", "--cached", "--name-only", "--no-renames", base, "--", deadline=deadline
            )
        except subprocess.CalledProcessError as exc:
            raise DiffFailed(f"git diff against {baseline} failed: {_describe(exc)}") from exc
        return {line for line in output.splitlines() if line}

    def added_files(
        self, baseline: str, folder: str, timeout: float | Deadline | None = None
    ) -> set[str]:
        """Return files under folder added since HEAD diverged from baseline.

        Includes files that are not yet tracked, so change files written
        earlier in the same session are seen before they are committed.

        Raises:
            DiffFailed: If git cannot list the files.
            VcsTimeoutError: If the git calls exceed the timeout.
        """
        deadline = Deadline.of(timeout)
        base = self.merge_base(baseline, deadline)
        try:
            added = self._git(
                "diff", "--name-only", "--no-renames", "--diff-filter=A", base, "--", folder,
                deadline=deadline,
            )
            untracked = self._git(
                "ls-files", "--others", "--exclude-standard", "--", folder, deadline=deadline
            )
        except subprocess.CalledProcessError as exc:
            raise DiffFailed(f"Unable to list change files in {folder}: {_describe(exc)}") from exc
        return {line for line in f"{added}\n{untracked}".splitlines() if line}

    def detect_identity_email(self) -> str | None:
        """Return git's configured user.email, or None if unset."""
        try:
            email = self._git("config", "user.email", check=False)
        except (OSError, VcsError):
            return None
        return email or None

    def current_branch(self) -> str:
        """Return the checked out branch name, or "HEAD" when detached."""
        return self._git("rev-parse", "--abbrev-ref", "HEAD", check=False) or "HEAD"

    def remote_default_branch(self) -> str | None:
        """Return the remote's default branch (e.g. "origin/main"), if known."""
        ref = self._git(
            "symbolic-ref", "--short", f"refs/remotes/{self.remote}/HEAD", check=False
        )
        return ref or None

    def has_unstaged_changes(self) -> bool:
        return bool(self._git("diff", "--name-only", check=False))
