"""Collecting change descriptions for release units.

A RecordCollector gathers one RecordSet per release unit, either by
asking the user about each unit in turn or by applying one message and
bump type to every unit at once.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import click

from .errors import BulkPolicyError, ConfigurationError, PolicyConflictError
from .models import ChangeRecord, Project, RecordSet, Severity
from .policy import allowed_severities, bump_options, predetermined_bump
from .prompts import Prompter
from .vcs import DiffProvider
from .workspace import ProjectGraph


def check_bulk_request(
    bulk: bool, message: str | None, bump_type: str | None
) -> Severity | None:
    """Validate the bulk options before anything is detected or written.

    Returns:
        The requested severity in bulk mode, else None.

    Raises:
        ConfigurationError: If bulk mode lacks a bump type, lacks a message
            for a bump type other than ``none``, names an unknown bump type,
            or if message/bump type are given without bulk mode.
    """
    if not bulk:
        if message or bump_type:
            raise ConfigurationError(
                "The --bulk flag must be provided with the --bump-type and --message parameters."
            )
        return None

    if not bump_type:
        raise ConfigurationError(
            "The --bump-type and --message parameters must be provided if the --bulk "
            "flag is provided."
        )
    severity = Severity.parse(bump_type)
    if not message and severity is not Severity.NONE:
        raise ConfigurationError(
            "The --message parameter must be provided with --bulk. If the value "
            '"none" is provided to --bump-type, --message may be omitted.'
        )
    return severity


class RecordCollector:
    """Builds the change files for one run.

    The collected record sets are owned by this instance and keyed by
    release unit name.

    Args:
        graph: Workspace projects, used to look up each unit's policy.
        hotfix_enabled: Whether the workspace is in hotfix mode.
        prompter: Asks the interactive questions. Required for interactive
                  collection and for confirming a detected email.
    """

    def __init__(
        self,
        graph: ProjectGraph,
        *,
        hotfix_enabled: bool = False,
        prompter: Prompter | None = None,
    ) -> None:
        self.graph = graph
        self.hotfix_enabled = hotfix_enabled
        self.prompter = prompter
        self.record_sets: dict[str, RecordSet] = {}

    def _project(self, name: str) -> Project:
        project = self.graph.get(name)
        if project is None:
            raise ConfigurationError(f'Project "{name}" is not in the workspace')
        return project

    def _require_prompter(self) -> Prompter:
        if self.prompter is None:
            raise ConfigurationError("Interactive collection needs a prompter")
        return self.prompter

    def _add(self, record: ChangeRecord) -> None:
        record_set = self.record_sets.get(record.package_name)
        if record_set is None:
            record_set = RecordSet(package_name=record.package_name)
            self.record_sets[record.package_name] = record_set
        record_set.changes.append(record)

    def collect_interactive(
        self, units: Iterable[str], existing_comments: Mapping[str, list[str]]
    ) -> dict[str, RecordSet]:
        """Ask about each unit in order and record the answers.

        Units with existing change files offer to skip or append. Skipped
        units produce no record.

        Raises:
            UserCancelled: If the user aborts any question.
        """
        for unit in units:
            record = self._ask_questions(unit, existing_comments.get(unit, []))
            if record is not None:
                self._add(record)
        return self.record_sets

    def _ask_questions(self, unit: str, comments: list[str]) -> ChangeRecord | None:
        prompter = self._require_prompter()
        click.echo(f"\n{unit}")
        if comments:
            click.echo("Found existing comments:")
            for comment in comments:
                click.echo(f"    > {comment}")
            choice = prompter.ask_choice(
                "Append to existing comments or skip?",
                [("skip", "Skip"), ("append", "Append")],
                default="skip",
            )
            if choice == "skip":
                return None
        return self._prompt_for_comment(unit)

    def _prompt_for_comment(self, unit: str) -> ChangeRecord:
        prompter = self._require_prompter()
        project = self._project(unit)
        options = bump_options(project, self.hotfix_enabled)
        comment = prompter.ask_text("Describe changes, or ENTER if no changes:")

        # An empty comment still records "no functional change"
        if not comment:
            return ChangeRecord(package_name=unit, comment="", type=Severity.NONE)
        if not options:
            severity = predetermined_bump(project) or Severity.NONE
            return ChangeRecord(package_name=unit, comment=comment, type=severity)

        values = [o.severity.value for o in options]
        picked = prompter.ask_choice(
            "Select the type of change:",
            [(o.severity.value, o.rationale) for o in options],
            default=Severity.PATCH.value if Severity.PATCH.value in values else None,
        )
        return ChangeRecord(package_name=unit, comment=comment, type=Severity(picked))

    def collect_bulk(
        self,
        units: Iterable[str],
        *,
        message: str | None,
        severity: Severity,
    ) -> dict[str, RecordSet]:
        """Apply one message and bump type to every unit.

        Units without any choice of bump type get ``none``. A bump type a
        unit's policy forbids is an error for that unit; all such errors
        are raised together and nothing is collected.

        Raises:
            BulkPolicyError: If any unit rejects the bump type.
        """
        errors: list[PolicyConflictError] = []
        staged: dict[str, RecordSet] = {}

        for unit in units:
            allowed = allowed_severities(self._project(unit), self.hotfix_enabled)
            unit_severity = severity
            if not allowed:
                unit_severity = Severity.NONE
            elif severity is not Severity.NONE and severity not in allowed:
                errors.append(PolicyConflictError(unit, severity.value))
                continue
            staged[unit] = RecordSet(
                package_name=unit,
                changes=[ChangeRecord(package_name=unit, comment=message or "", type=unit_severity)],
            )

        if errors:
            raise BulkPolicyError(errors)

        self.record_sets.update(staged)
        return self.record_sets

    def email_required(self) -> bool:
        """Whether any collected unit's policy asks for the author's email."""
        return any(self._project(unit).include_email for unit in self.record_sets)

    def attach_emails(self, email: str | None, provider: DiffProvider | None = None) -> None:
        """Set the author email on each collected record set.

        Units whose policy asks for attribution get the email; the others
        get an empty one. Without an explicit email, git's user.email is
        offered for confirmation and the user is asked otherwise.
        """
        resolved = ""
        if self.email_required():
            resolved = email or self._detect_or_ask_for_email(provider)
        for unit, record_set in self.record_sets.items():
            record_set.email = resolved if self._project(unit).include_email else ""

    def _detect_or_ask_for_email(self, provider: DiffProvider | None) -> str:
        prompter = self._require_prompter()
        detected = provider.detect_identity_email() if provider is not None else None
        if detected and prompter.ask_confirm(f"Is your email address {detected}?"):
            return detected
        return prompter.ask_text("What is your email address?")
