"""Data models for monochange.

These Pydantic models represent the workspace projects, their version
policies, and the change records written to change files.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError


class Severity(str, Enum):
    """How far a change should bump the version of its release unit.

    ``hotfix`` is only offered when the workspace is in hotfix mode, in
    which case it replaces all other choices.
    """

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    HOTFIX = "hotfix"

    @classmethod
    def parse(cls, value: str) -> Severity:
        """Parse a bump type name, raising ConfigurationError if unknown."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ConfigurationError(
                f'Unrecognized bump type "{value}". Expected one of: {choices}'
            ) from None


def kebab_case(name: str) -> str:
    return name.replace("_", "-")


class LockstepPolicy(BaseModel):
    """Several projects share one version number under a main project.

    Attributes:
        name: Policy name as declared in the workspace configuration.
        main_project: Project that hosts the shared version. When unset,
                      each member is its own host.
        next_bump: Bump already decided for the next release. When set,
                   no bump type is asked for.
        include_email: Whether change files carry the author's email.
        exempt: Whether member projects are exempt from change files.
    """

    model_config = ConfigDict(alias_generator=kebab_case, populate_by_name=True)

    kind: Literal["lockstep"] = "lockstep"
    name: str
    main_project: str | None = None
    next_bump: Severity | None = None
    include_email: bool = False
    exempt: bool = False


class IndividualPolicy(BaseModel):
    """Each project versions independently, optionally with a locked major.

    Attributes:
        name: Policy name as declared in the workspace configuration.
        locked_major: Major version the projects are pinned to. When set,
                      ``major`` bumps are not allowed.
        include_email: Whether change files carry the author's email.
        exempt: Whether member projects are exempt from change files.
    """

    model_config = ConfigDict(alias_generator=kebab_case, populate_by_name=True)

    kind: Literal["individual"] = "individual"
    name: str
    locked_major: int | None = None
    include_email: bool = False
    exempt: bool = False


VersionPolicy = Annotated[LockstepPolicy | IndividualPolicy, Field(discriminator="kind")]


class Project(BaseModel):
    """A single project in the workspace.

    Attributes:
        name: Canonical project name (PEP 503 normalized).
        path: Root-relative POSIX path of the project directory.
        version: Current version string from pyproject.toml.
        publish: Whether the project is published. Unpublished projects
                 never need change files.
        version_policy: The project's version policy, if any.
    """

    name: str
    path: str
    version: str = "0.0.0"
    publish: bool = True
    version_policy: VersionPolicy | None = None

    @property
    def exempt_from_change_tracking(self) -> bool:
        return self.version_policy is not None and self.version_policy.exempt

    @property
    def include_email(self) -> bool:
        return self.version_policy is not None and self.version_policy.include_email


class ChangeRecord(BaseModel):
    """One described change for one project."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    package_name: str = Field(alias="packageName")
    comment: str = ""
    type: Severity


class RecordSet(BaseModel):
    """The contents of one change file.

    A change file belongs to one release unit and holds every change
    recorded for it in a single run. Serialized with camelCase keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    changes: list[ChangeRecord] = Field(default_factory=list)
    package_name: str = Field(alias="packageName")
    email: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2) + "\n"


class BumpOption(BaseModel):
    """A bump type the user may pick, with text explaining it."""

    severity: Severity
    rationale: str
