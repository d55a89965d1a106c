"""Verifying that every changed release unit has a change file."""

from __future__ import annotations

from collections.abc import Iterable

from packaging.utils import canonicalize_name
from pydantic import BaseModel, Field

from .errors import RecordParseError, ValidationError
from .models import RecordSet, Severity


class ValidationResult(BaseModel):
    """Outcome of a coverage check.

    Attributes:
        missing: Changed release units with no change file, sorted.
        violations: Stored changes that break the workspace's rules.
        parse_errors: Change files that could not be read. They are
            reported but do not decide the outcome.
    """

    missing: list[str] = Field(default_factory=list)
    violations: list[str] = Field(default_factory=list)
    parse_errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.missing or self.violations)

    def raise_for_errors(self) -> None:
        """Raise ValidationError describing every problem found."""
        if not self.ok:
            raise ValidationError(self.missing, self.parse_errors + self.violations)


def covered_units(record_sets: Iterable[RecordSet]) -> set[str]:
    return {canonicalize_name(rs.package_name) for rs in record_sets}


def validate_coverage(
    units: Iterable[str],
    record_sets: Iterable[RecordSet],
    *,
    hotfix_enabled: bool = False,
    parse_errors: Iterable[RecordParseError] = (),
) -> ValidationResult:
    """Check that each changed release unit has at least one change file.

    Change files for units that did not change are fine. Hotfix changes
    are only valid while the workspace is in hotfix mode.

    Args:
        units: Changed release units.
        record_sets: Stored change files.
        hotfix_enabled: Whether the workspace is in hotfix mode.
        parse_errors: Files that could not be read, reported with the result.
    """
    record_sets = list(record_sets)
    covered = covered_units(record_sets)
    missing = sorted({u for u in units if canonicalize_name(u) not in covered})

    violations: list[str] = []
    if not hotfix_enabled:
        for record_set in record_sets:
            for change in record_set.changes:
                if change.type is Severity.HOTFIX:
                    violations.append(
                        f'Change for "{change.package_name}" has type "hotfix", '
                        "but hotfix changes are not enabled for this workspace."
                    )

    return ValidationResult(
        missing=missing,
        violations=violations,
        parse_errors=[str(e) for e in parse_errors],
    )
