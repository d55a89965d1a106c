"""TOML reading utilities.

Uses tomlkit to read the workspace root and member pyproject.toml files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import ParseError as TOMLParseError

from .errors import ConfigurationError

TOOL_NAME = "monochange"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Raises:
        ConfigurationError: If the file is missing or not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except FileNotFoundError:
        raise ConfigurationError(f"No pyproject.toml found at {path}") from None
    except TOMLParseError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to use if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace projects.

    Raises:
        ConfigurationError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise ConfigurationError(
            "No [tool.uv.workspace] members defined in root pyproject.toml.\n"
            "monochange requires a uv workspace. Example:\n\n"
            "  [tool.uv.workspace]\n"
            '  members = ["packages/*"]'
        )
    return [str(m) for m in members]


def get_tool_table(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Return [tool.monochange] as plain Python values (empty if absent)."""
    table = doc.get("tool", {}).get(TOOL_NAME, {})
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
