"""Workspace configuration.

Settings live in the root pyproject.toml under [tool.monochange]:

    [tool.monochange]
    changes-dir = "common/changes"
    default-branch = "origin/main"
    hotfix = false

    [tool.monochange.version-policies.core]
    kind = "lockstep"
    main-project = "pkg-a"

Member projects opt into a policy with ``version-policy = "core"`` in
their own [tool.monochange] table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .errors import ConfigurationError
from .models import VersionPolicy, kebab_case
from .toml import get_tool_table, get_workspace_member_globs, load_pyproject

_policy_adapter: TypeAdapter[VersionPolicy] = TypeAdapter(VersionPolicy)


class WorkspaceConfig(BaseModel):
    """Settings read from the workspace root.

    Attributes:
        root: Absolute path of the workspace root.
        members: Workspace member glob patterns from [tool.uv.workspace].
        changes_dir: Folder (relative to root) holding change files.
        default_branch: Branch to compare against when the remote's
                        default branch cannot be determined.
        remote: Remote to fetch the target branch from.
        hotfix: Whether the workspace is in hotfix mode.
        version_policies: Policies by name.
    """

    model_config = ConfigDict(alias_generator=kebab_case, populate_by_name=True)

    root: Path
    members: list[str] = Field(default_factory=list)
    changes_dir: str = "common/changes"
    default_branch: str = "origin/main"
    remote: str = "origin"
    hotfix: bool = False
    version_policies: dict[str, VersionPolicy] = Field(default_factory=dict)

    @property
    def changes_path(self) -> Path:
        return self.root / self.changes_dir

    def policy(self, name: str | None) -> VersionPolicy | None:
        """Look up a policy by name.

        Raises:
            ConfigurationError: If the name is not declared.
        """
        if name is None:
            return None
        try:
            return self.version_policies[name]
        except KeyError:
            raise ConfigurationError(f'Unknown version policy "{name}"') from None


def _parse_policies(raw: Any) -> dict[str, VersionPolicy]:
    if not isinstance(raw, dict):
        raise ConfigurationError("[tool.monochange.version-policies] must be a table")
    policies: dict[str, VersionPolicy] = {}
    for name, body in raw.items():
        if not isinstance(body, dict):
            raise ConfigurationError(f'Version policy "{name}" must be a table')
        try:
            policies[name] = _policy_adapter.validate_python({**body, "name": name})
        except pydantic.ValidationError as exc:
            raise ConfigurationError(f'Invalid version policy "{name}":\n{exc}') from exc
    return policies


def load_workspace_config(root: Path) -> WorkspaceConfig:
    """Read [tool.uv.workspace] and [tool.monochange] from root/pyproject.toml.

    Raises:
        ConfigurationError: If the file is missing, has no workspace
            members, or declares invalid settings.
    """
    doc = load_pyproject(root / "pyproject.toml")
    members = get_workspace_member_globs(doc)
    table = get_tool_table(doc)
    policies = _parse_policies(table.pop("version-policies", {}))
    try:
        return WorkspaceConfig.model_validate(
            {**table, "root": root, "members": members, "version-policies": policies}
        )
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid [tool.monochange] settings:\n{exc}") from exc
