"""Tests for monochange.toml."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from monochange.errors import ConfigurationError
from monochange.toml import (
    get_project_name,
    get_project_version,
    get_tool_table,
    get_workspace_member_globs,
    load_pyproject,
)


class TestLoadPyproject:
    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "test-package"\n')
        assert get_project_name(load_pyproject(path), "") == "test-package"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="No pyproject.toml"):
            load_pyproject(tmp_path / "pyproject.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("[project\n")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_pyproject(path)


class TestGetProjectName:
    def test_normalizes_name(self) -> None:
        doc = tomlkit.parse('[project]\nname = "My_Package"')
        assert get_project_name(doc, "fallback") == "my-package"

    def test_fallback(self) -> None:
        assert get_project_name(tomlkit.parse("[project]"), "Fallback_Dir") == "fallback-dir"


class TestGetProjectVersion:
    def test_returns_version(self) -> None:
        doc = tomlkit.parse('[project]\nversion = "2.0.0"')
        assert get_project_version(doc) == "2.0.0"

    def test_default(self) -> None:
        assert get_project_version(tomlkit.parse("")) == "0.0.0"


class TestGetWorkspaceMemberGlobs:
    def test_returns_members(self) -> None:
        doc = tomlkit.parse('[tool.uv.workspace]\nmembers = ["packages/*", "libs/*"]')
        assert get_workspace_member_globs(doc) == ["packages/*", "libs/*"]

    def test_missing_members(self) -> None:
        with pytest.raises(ConfigurationError, match="tool.uv.workspace"):
            get_workspace_member_globs(tomlkit.parse("[project]"))


class TestGetToolTable:
    def test_returns_plain_values(self) -> None:
        doc = tomlkit.parse('[tool.monochange]\nhotfix = true\nchanges-dir = "changes"')
        table = get_tool_table(doc)
        assert table == {"hotfix": True, "changes-dir": "changes"}
        assert type(table) is dict

    def test_absent(self) -> None:
        assert get_tool_table(tomlkit.parse("[project]")) == {}
