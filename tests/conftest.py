"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from monochange.models import IndividualPolicy, LockstepPolicy, Project
from monochange.workspace import ProjectGraph


class ScriptedPrompter:
    """Prompter that replays canned answers and records the questions."""

    def __init__(
        self,
        choices: Sequence[str] = (),
        texts: Sequence[str] = (),
        confirms: Sequence[bool] = (),
    ) -> None:
        self.choices = list(choices)
        self.texts = list(texts)
        self.confirms = list(confirms)
        self.questions: list[str] = []
        self.offered: list[list[str]] = []

    def ask_choice(self, question, options, default=None):
        self.questions.append(question)
        self.offered.append([value for value, _ in options])
        answer = self.choices.pop(0)
        assert answer in self.offered[-1]
        return answer

    def ask_text(self, question):
        self.questions.append(question)
        return self.texts.pop(0)

    def ask_confirm(self, question, default=True):
        self.questions.append(question)
        return self.confirms.pop(0)


class FakeDiffProvider:
    """Diff provider returning a fixed set of changed paths."""

    def __init__(
        self,
        changed: set[str] | None = None,
        email: str | None = None,
        fetch_error: Exception | None = None,
    ) -> None:
        self.changed = changed or set()
        self.email = email
        self.fetch_error = fetch_error
        self.fetched: list[str] = []

    def fetch_baseline(self, baseline, timeout):
        self.fetched.append(baseline)
        if self.fetch_error is not None:
            raise self.fetch_error

    def changed_files(self, baseline, fetch_first, timeout):
        return set(self.changed)

    def added_files(self, baseline, folder, timeout):
        return set()

    def detect_identity_email(self):
        return self.email


@pytest.fixture
def lockstep_graph() -> ProjectGraph:
    """Projects A (no policy), B and C (lockstep, host B), D (locked major)."""
    core = LockstepPolicy(name="core", main_project="b")
    tools = IndividualPolicy(name="tools", locked_major=1)
    return ProjectGraph(
        [
            Project(name="a", path="packages/a", version="1.0.0"),
            Project(name="b", path="packages/b", version="2.0.0", version_policy=core),
            Project(name="c", path="packages/c", version="2.0.0", version_policy=core),
            Project(name="d", path="packages/d", version="1.4.0", version_policy=tools),
        ]
    )


def write_workspace(root: Path, root_extra: str = "", members: dict[str, str] | None = None) -> None:
    """Create a uv workspace on disk.

    Args:
        root: Directory to create the workspace in.
        root_extra: TOML appended to the root pyproject.toml.
        members: Map of project name → TOML appended to its pyproject.toml.
    """
    (root / "pyproject.toml").write_text(
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n' + root_extra
    )
    for name, extra in (members or {}).items():
        package_dir = root / "packages" / name
        package_dir.mkdir(parents=True)
        (package_dir / "pyproject.toml").write_text(
            f'[project]\nname = "{name}"\nversion = "1.0.0"\n' + extra
        )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace with A (no policy), B/C (lockstep, host B) and D (locked major)."""
    write_workspace(
        tmp_path,
        root_extra=(
            "\n[tool.monochange.version-policies.core]\n"
            'kind = "lockstep"\n'
            'main-project = "b"\n'
            "include-email = true\n"
            "\n[tool.monochange.version-policies.tools]\n"
            'kind = "individual"\n'
            "locked-major = 1\n"
        ),
        members={
            "a": "",
            "b": '\n[tool.monochange]\nversion-policy = "core"\n',
            "c": '\n[tool.monochange]\nversion-policy = "core"\n',
            "d": '\n[tool.monochange]\nversion-policy = "tools"\n',
        },
    )
    return tmp_path
