"""Change workflow: discover → detect → collect → write, or verify.

This module orchestrates the two monochange flows:

``run_change``
    1. Discover all projects in the workspace
    2. Detect which release units changed against the target branch
    3. Collect one change description per unit (interactively or in bulk)
    4. Attach the author's email where a version policy asks for it
    5. Write one change file per unit

``run_verify``
    1. Discover projects and detect changed release units
    2. Read the change files added on this branch
    3. Fail if any changed unit has no change file

The workspace root is assumed to be the git repository root.
"""

from __future__ import annotations

from pathlib import Path

from .collect import RecordCollector, check_bulk_request
from .config import WorkspaceConfig, load_workspace_config
from .detect import detect_release_units
from .errors import ConfigurationError, VcsError
from .prompts import ClickPrompter, Prompter
from .shell import info, step, warn
from .storage import ChangeFileStore, OverwritePolicy
from .validate import ValidationResult, validate_coverage
from .vcs import GitDiffProvider
from .workspace import ProjectGraph, discover_projects

DEFAULT_TIMEOUT = 120.0

NOTHING_TO_DO = "No changes were detected to relevant packages on this branch. Nothing to do."


def resolve_target_branch(
    provider: GitDiffProvider, config: WorkspaceConfig, explicit: str | None
) -> str:
    """Pick the branch to compare against.

    Uses the explicit branch when given, then the remote's default
    branch, then the configured default.
    """
    if explicit:
        return explicit
    return provider.remote_default_branch() or config.default_branch


def warn_unstaged_changes(provider: GitDiffProvider) -> None:
    """Unstaged edits are not part of the diff, so remind the user."""
    try:
        if provider.has_unstaged_changes():
            warn("You have unstaged changes, which do not trigger prompting for change descriptions.")
    except (OSError, VcsError) as exc:
        warn(f"An error occurred when detecting unstaged changes: {exc}")


def _change_file_scope(
    provider: GitDiffProvider, config: WorkspaceConfig, target_branch: str, timeout: float
) -> list[Path]:
    """Change files added on this branch, as absolute paths."""
    folder = Path(config.changes_dir).as_posix()
    return [config.root / p for p in sorted(provider.added_files(target_branch, folder, timeout))]


def _load(root: Path) -> tuple[WorkspaceConfig, ProjectGraph]:
    config = load_workspace_config(root)
    return config, discover_projects(config)


def run_change(
    root: Path,
    *,
    target_branch: str | None = None,
    fetch: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    bulk: bool = False,
    message: str | None = None,
    bump_type: str | None = None,
    email: str | None = None,
    overwrite: bool = False,
    prompter: Prompter | None = None,
    provider: GitDiffProvider | None = None,
) -> list[Path]:
    """Record change descriptions for every changed release unit.

    Args:
        root: Workspace root.
        target_branch: Branch to compare against; see resolve_target_branch.
        fetch: Fetch the target branch before diffing.
        timeout: Seconds allowed for each git step; the fetch and diff of
            change detection share one budget.
        bulk: Apply message and bump_type to every unit without prompting.
        message: Bulk change description.
        bump_type: Bulk bump type.
        email: Author email. Detected from git when omitted.
        overwrite: Replace existing change files without asking.
        prompter: Asks interactive questions. Defaults to the terminal.
        provider: Git access. Defaults to git in root.

    Returns:
        Paths of the change files written.

    Raises:
        ConfigurationError: On invalid options or configuration. Raised
            before anything is written.
        BulkPolicyError: If bulk mode's bump type is not allowed for some
            unit. Nothing is written.
        PersistenceConflictError: If a change file exists in bulk mode
            without overwrite.
        VcsError: If change detection fails.
        UserCancelled: If the user aborts a prompt.
    """
    severity = check_bulk_request(bulk, message, bump_type)
    interactive = not bulk

    config, graph = _load(root)
    provider = provider or GitDiffProvider(root, config.remote)
    branch = resolve_target_branch(provider, config, target_branch)
    info(f"The target branch is {branch}")

    units = detect_release_units(graph, provider, branch, fetch=fetch, timeout=timeout)
    warn_unstaged_changes(provider)
    if not units:
        info(NOTHING_TO_DO)
        return []

    store = ChangeFileStore(config.changes_path, provider.current_branch())
    if interactive:
        prompter = prompter or ClickPrompter()
    collector = RecordCollector(graph, hotfix_enabled=config.hotfix, prompter=prompter)

    step(f"Collecting change descriptions for {len(units)} project(s)")
    if severity is not None:
        collector.collect_bulk(units, message=message, severity=severity)
        if collector.email_required():
            email = email or provider.detect_identity_email()
            if not email:
                raise ConfigurationError(
                    "Unable to detect Git email and an email address wasn't provided "
                    "using the --email parameter."
                )
    else:
        scope = _change_file_scope(provider, config, branch, timeout)
        collector.collect_interactive(units, store.existing_comments(scope))
    collector.attach_emails(email, provider)

    if not collector.record_sets:
        info("No change files to write.")
        return []

    step("Writing change files")
    policy = OverwritePolicy.resolve(overwrite, interactive)
    return store.write_all(collector.record_sets, policy, prompter)


def run_verify(
    root: Path,
    *,
    target_branch: str | None = None,
    fetch: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    provider: GitDiffProvider | None = None,
) -> ValidationResult:
    """Check that every changed release unit has a change file on this branch.

    Returns:
        The validation result. Callers decide how to report failure, e.g.
        with ValidationResult.raise_for_errors().

    Raises:
        ConfigurationError: On invalid configuration.
        VcsError: If change detection fails.
    """
    config, graph = _load(root)
    provider = provider or GitDiffProvider(root, config.remote)
    branch = resolve_target_branch(provider, config, target_branch)
    info(f"The target branch is {branch}")

    units = detect_release_units(graph, provider, branch, fetch=fetch, timeout=timeout)
    if not units:
        info(NOTHING_TO_DO)
        return ValidationResult()

    step("Verifying change files")
    store = ChangeFileStore(config.changes_path, provider.current_branch())
    record_sets, parse_errors = store.list_record_sets(
        _change_file_scope(provider, config, branch, timeout)
    )
    result = validate_coverage(
        units, record_sets, hotfix_enabled=config.hotfix, parse_errors=parse_errors
    )
    for error in result.parse_errors:
        warn(error)
    if result.ok:
        info(f"Found change files for all {len(units)} changed project(s)")
    return result
