"""Version parsing and bump preview utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
Nothing is written here; previews are shown next to bump choices.
"""

from __future__ import annotations

import semver

from .models import Severity


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the first 3 components are used (major.minor.patch).

    Raises:
        ValueError: If the components are not numeric.
    """
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def preview_bump(version_str: str, severity: Severity) -> str | None:
    """Return the version a bump would produce, or None if not applicable.

    ``none`` keeps the version and ``hotfix`` versions are decided by the
    release step, so neither has a preview. Unparseable versions have none.

    Examples:
        preview_bump("1.2.3", Severity.MINOR) → "1.3.0"
        preview_bump("1.0", Severity.PATCH) → "1.0.1"
    """
    try:
        version = parse_version(version_str)
    except ValueError:
        return None
    if severity is Severity.MAJOR:
        return str(version.bump_major())
    if severity is Severity.MINOR:
        return str(version.bump_minor())
    if severity is Severity.PATCH:
        return str(version.bump_patch())
    return None
