"""Change detection: which release units need change files.

A release unit is the project a change file is written for. Projects in
a lockstep policy with a main project all report to that main project;
every other project is its own release unit.
"""

from __future__ import annotations

from typing import assert_never

from packaging.utils import canonicalize_name

from .errors import FetchFailed
from .models import IndividualPolicy, LockstepPolicy, Project
from .shell import info, step, warn
from .vcs import Deadline, DiffProvider
from .workspace import ProjectGraph


def host_project_of(project: Project) -> str:
    """Return the name of the release unit that project's changes count toward."""
    policy = project.version_policy
    if policy is None:
        return project.name
    if isinstance(policy, LockstepPolicy):
        return canonicalize_name(policy.main_project) if policy.main_project else project.name
    if isinstance(policy, IndividualPolicy):
        return project.name
    assert_never(policy)


def needs_change_file(project: Project) -> bool:
    """Only published, non-exempt projects are tracked."""
    return project.publish and not project.exempt_from_change_tracking


def changed_projects(graph: ProjectGraph, changed_files: set[str]) -> list[Project]:
    """Map changed paths to the tracked projects that own them.

    Paths outside every project, and projects that are unpublished or
    exempt, are dropped. Each project appears once, in name order.
    """
    owners: dict[str, Project] = {}
    for path in changed_files:
        project = graph.resolve_owner_of(path)
        if project is not None and needs_change_file(project):
            owners[project.name] = project
    return [owners[name] for name in sorted(owners)]


def detect_release_units(
    graph: ProjectGraph,
    provider: DiffProvider,
    baseline: str,
    *,
    fetch: bool = True,
    timeout: float | None = None,
) -> list[str]:
    """Determine which release units changed since baseline.

    A failed fetch only warns; the diff then runs against whatever copy
    of the baseline is available locally. A fetch that runs out of time
    is not a failed fetch: it ends detection with VcsTimeoutError.

    Args:
        graph: Workspace projects.
        provider: Source of changed file paths.
        baseline: Branch to compare against.
        fetch: Fetch the baseline before diffing.
        timeout: Seconds allowed for the fetch and diff together.

    Returns:
        Sorted, de-duplicated release unit names.

    Raises:
        DiffFailed: If the changed files cannot be determined.
        VcsTimeoutError: If git does not answer within timeout.
    """
    step(f"Detecting changes against {baseline}")
    deadline = Deadline(timeout)

    if fetch:
        try:
            provider.fetch_baseline(baseline, deadline)
        except FetchFailed as exc:
            warn(f"{exc}. Comparing against the local copy of {baseline}.")

    changed_files = provider.changed_files(baseline, False, deadline)

    units: set[str] = set()
    for project in changed_projects(graph, changed_files):
        host = host_project_of(project)
        if host == project.name:
            info(f"{project.name}: changed")
        else:
            info(f"{project.name}: changed (recorded under {host})")
        units.add(host)

    return sorted(units)
