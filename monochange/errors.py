"""Error types raised while detecting, collecting and verifying changes.

Errors found while iterating a collection (bulk units, stored change
files) are accumulated and raised together; errors that make continuing
meaningless (a failed diff, a cancelled prompt) are raised immediately.
"""

from __future__ import annotations

from pathlib import Path


class MonochangeError(Exception):
    """Base class for all monochange errors."""


class ConfigurationError(MonochangeError):
    """Invalid workspace configuration or command-line usage."""


class VcsError(MonochangeError):
    """A git operation failed."""


class FetchFailed(VcsError):
    """Fetching the baseline failed. Callers warn and continue."""


class DiffFailed(VcsError):
    """Computing the changed file list failed."""


class VcsTimeoutError(VcsError):
    """A git operation did not finish before its deadline."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"'{command}' did not finish within {timeout:g}s")
        self.command = command
        self.timeout = timeout


class PolicyConflictError(MonochangeError):
    """A requested bump type is not allowed for one release unit."""

    def __init__(self, package_name: str, bump_type: str) -> None:
        super().__init__(
            f'The "{bump_type}" change type is not allowed for package "{package_name}".'
        )
        self.package_name = package_name
        self.bump_type = bump_type


class BulkPolicyError(MonochangeError):
    """One or more units rejected the bulk bump type. Nothing was written."""

    def __init__(self, errors: list[PolicyConflictError]) -> None:
        super().__init__("\n".join(str(e) for e in errors))
        self.errors = errors


class PersistenceConflictError(MonochangeError):
    """A change file already exists and may not be overwritten."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Changefile {path} already exists")
        self.path = path


class RecordParseError(MonochangeError):
    """A stored change file could not be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Invalid change file {path}: {reason}")
        self.path = path
        self.reason = reason


class ValidationError(MonochangeError):
    """Changed release units lack change files, or stored files break policy."""

    def __init__(self, missing: list[str], violations: list[str] | None = None) -> None:
        lines: list[str] = []
        if missing:
            lines.append(
                "The following projects have been changed and require change "
                "descriptions, but change descriptions were not detected for them:"
            )
            lines.extend(f"  - {name}" for name in missing)
            lines.append("To resolve this error, run 'monochange change'.")
        lines.extend(violations or [])
        super().__init__("\n".join(lines))
        self.missing = missing
        self.violations = violations or []


class UserCancelled(MonochangeError):
    """The user aborted an interactive prompt."""

    def __init__(self) -> None:
        super().__init__("Aborted by user.")
