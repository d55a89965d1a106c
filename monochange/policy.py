"""Which bump types a project may record.

The result depends only on the project and the workspace hotfix flag, so
the functions here are safe to call repeatedly.
"""

from __future__ import annotations

from typing import assert_never

from .models import BumpOption, IndividualPolicy, LockstepPolicy, Project, Severity
from .versions import preview_bump

_RATIONALES = {
    Severity.HOTFIX: "hotfix - for changes that need to be published in a separate hotfix package",
    Severity.MAJOR: "major - for changes that break compatibility, e.g. removing an API",
    Severity.MINOR: "minor - for backwards compatible changes, e.g. adding a new API",
    Severity.PATCH: "patch - for changes that do not affect compatibility, e.g. fixing a bug",
    Severity.NONE: (
        "none - for changes that do not need an immediate release, "
        "e.g. eslint config change"
    ),
}

_DEFAULT_CHOICES = [Severity.MAJOR, Severity.MINOR, Severity.PATCH, Severity.NONE]


def _option(project: Project, severity: Severity) -> BumpOption:
    rationale = _RATIONALES[severity]
    preview = preview_bump(project.version, severity)
    if preview:
        rationale = f"{rationale} ({project.version} -> {preview})"
    return BumpOption(severity=severity, rationale=rationale)


def allowed_severities(project: Project, hotfix_enabled: bool) -> list[Severity]:
    """Return the bump types project may record, most severe first.

    Rules, first match wins:
    1. Hotfix mode: only ``hotfix``.
    2. Lockstep policy with a next bump already set: nothing to choose.
    3. Individual policy with a locked major: no ``major``.
    4. Otherwise: ``major``, ``minor``, ``patch``, ``none``.
    """
    if hotfix_enabled:
        return [Severity.HOTFIX]

    policy = project.version_policy
    if policy is None:
        return list(_DEFAULT_CHOICES)
    if isinstance(policy, LockstepPolicy):
        if policy.next_bump is not None:
            return []
        return list(_DEFAULT_CHOICES)
    if isinstance(policy, IndividualPolicy):
        if policy.locked_major is not None:
            return [s for s in _DEFAULT_CHOICES if s is not Severity.MAJOR]
        return list(_DEFAULT_CHOICES)
    assert_never(policy)


def bump_options(project: Project, hotfix_enabled: bool) -> list[BumpOption]:
    """Return the allowed bump types for project with text for each choice."""
    return [_option(project, s) for s in allowed_severities(project, hotfix_enabled)]


def predetermined_bump(project: Project) -> Severity | None:
    """Return the bump a lockstep policy has already decided, if any."""
    policy = project.version_policy
    if isinstance(policy, LockstepPolicy):
        return policy.next_bump
    return None
