"""Project graph for a uv workspace.

Discovers the workspace's projects from [tool.uv.workspace].members and
maps changed file paths back to the project that owns them.
"""

from __future__ import annotations

import glob
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from packaging.utils import canonicalize_name

from .config import WorkspaceConfig
from .errors import ConfigurationError
from .models import LockstepPolicy, Project
from .shell import info, step
from .toml import get_project_name, get_project_version, get_tool_table, load_pyproject


class ProjectGraph:
    """Read-only view of the workspace's projects.

    Projects are kept in name order. Ownership of a path is decided by the
    longest project path that is a whole-component prefix of it, so that
    ``packages/a-extra/x.py`` never resolves to ``packages/a``.
    """

    def __init__(self, projects: Iterable[Project]) -> None:
        self._projects = {p.name: p for p in sorted(projects, key=lambda p: p.name)}
        # Longest paths first so nested projects win
        self._by_path = sorted(
            self._projects.values(), key=lambda p: len(PurePosixPath(p.path).parts), reverse=True
        )
        self._check_lockstep_hosts()

    def _check_lockstep_hosts(self) -> None:
        for project in self._projects.values():
            policy = project.version_policy
            if isinstance(policy, LockstepPolicy) and policy.main_project:
                if canonicalize_name(policy.main_project) not in self._projects:
                    raise ConfigurationError(
                        f'Version policy "{policy.name}" names main project '
                        f'"{policy.main_project}", which is not in the workspace'
                    )

    def list_projects(self) -> list[Project]:
        return list(self._projects.values())

    def get(self, name: str) -> Project | None:
        return self._projects.get(canonicalize_name(name))

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        return len(self._projects)

    def resolve_owner_of(self, path: str) -> Project | None:
        """Return the project whose directory contains path, if any.

        Args:
            path: Workspace-root-relative path as printed by git.
        """
        parts = PurePosixPath(path).parts
        for project in self._by_path:
            prefix = PurePosixPath(project.path).parts
            if parts[: len(prefix)] == prefix and len(parts) > len(prefix):
                return project
        return None


def discover_projects(config: WorkspaceConfig) -> ProjectGraph:
    """Scan the workspace and build its project graph.

    Expands the workspace member globs, then reads name, version and
    [tool.monochange] settings from each member's pyproject.toml.

    Raises:
        ConfigurationError: If no projects are found, or a project names
            an unknown version policy.
    """
    step("Discovering workspace projects")

    root = config.root
    member_dirs: list[Path] = []
    for pattern in config.members:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists():
                member_dirs.append(p)

    if not member_dirs:
        raise ConfigurationError("No projects found matching workspace members")

    projects: list[Project] = []
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        settings = get_tool_table(doc)
        projects.append(
            Project(
                name=get_project_name(doc, d.name),
                path=d.relative_to(root).as_posix(),
                version=get_project_version(doc),
                publish=bool(settings.get("publish", True)),
                version_policy=config.policy(settings.get("version-policy")),
            )
        )

    graph = ProjectGraph(projects)

    for project in graph.list_projects():
        policy = f" [{project.version_policy.name}]" if project.version_policy else ""
        private = "" if project.publish else " (not published)"
        info(f"{project.name} {project.version} ({project.path}){policy}{private}")

    return graph
