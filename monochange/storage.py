"""Change file storage.

Change files live under ``<changes-dir>/<project>/<branch>_<timestamp>.json``
and are deleted by the release step once consumed.
"""

from __future__ import annotations

import os
import tempfile
import threading
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum
from pathlib import Path

import pydantic

from .errors import ConfigurationError, PersistenceConflictError, RecordParseError
from .models import RecordSet
from .prompts import Prompter
from .shell import info


class OverwritePolicy(str, Enum):
    """What to do when a change file already exists at the target path."""

    FORCE = "force"
    CONFIRM = "confirm"
    REFUSE = "refuse"

    @classmethod
    def resolve(cls, overwrite: bool, interactive: bool) -> OverwritePolicy:
        """--overwrite forces; otherwise ask in interactive mode, refuse in bulk."""
        if overwrite:
            return cls.FORCE
        return cls.CONFIRM if interactive else cls.REFUSE


def atomic_write_text(path: Path, content: str) -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


class ChangeFileStore:
    """Reads and writes the change files of one workspace.

    Args:
        changes_dir: Folder holding one sub-folder per project.
        branch: Current branch name, used in new file names.
    """

    def __init__(self, changes_dir: Path, branch: str) -> None:
        self.changes_dir = changes_dir
        self.branch = branch
        self._issued: set[Path] = set()
        self._lock = threading.Lock()

    def path_for(self, record_set: RecordSet, now: datetime | None = None) -> Path:
        """Derive a new file path for record_set.

        Paths handed out earlier in this run are never repeated; a
        ``-2``, ``-3``... suffix is added instead.
        """
        stamp = (now or datetime.now()).strftime("%Y-%m-%d-%H-%M")
        stem = f"{self.branch.replace('/', '-')}_{stamp}"
        folder = self.changes_dir / record_set.package_name
        with self._lock:
            path = folder / f"{stem}.json"
            counter = 1
            while path in self._issued:
                counter += 1
                path = folder / f"{stem}-{counter}.json"
            self._issued.add(path)
        return path

    def write(
        self,
        record_set: RecordSet,
        path: Path,
        policy: OverwritePolicy,
        prompter: Prompter | None = None,
    ) -> bool:
        """Write record_set to path, honoring the overwrite policy.

        Returns:
            True if the file was written, False if the user declined to
            overwrite it.

        Raises:
            PersistenceConflictError: If the file exists and policy is REFUSE.
        """
        exists = path.exists()
        if exists:
            if policy is OverwritePolicy.REFUSE:
                raise PersistenceConflictError(path)
            if policy is OverwritePolicy.CONFIRM:
                if prompter is None:
                    raise ConfigurationError("Confirming an overwrite needs a prompter")
                if not prompter.ask_confirm(f"Overwrite {path}?", default=False):
                    info(f"Not overwriting {path}")
                    return False

        atomic_write_text(path, record_set.to_json())
        info(f"{'Overwrote' if exists else 'Created'} file: {path}")
        return True

    def write_all(
        self,
        record_sets: Mapping[str, RecordSet],
        policy: OverwritePolicy,
        prompter: Prompter | None = None,
        now: datetime | None = None,
    ) -> list[Path]:
        """Write every record set to a fresh path.

        Under REFUSE all paths are checked before the first write, so a
        conflict leaves the whole batch unwritten.

        Returns:
            Paths that were written.
        """
        planned = [(rs, self.path_for(rs, now)) for _, rs in sorted(record_sets.items())]

        if policy is OverwritePolicy.REFUSE:
            for _, path in planned:
                if path.exists():
                    raise PersistenceConflictError(path)

        written: list[Path] = []
        for record_set, path in planned:
            if self.write(record_set, path, policy, prompter):
                written.append(path)
        return written

    def _record_paths(self, scope: Iterable[Path] | None) -> list[Path]:
        if scope is not None:
            return sorted(p for p in scope if p.suffix == ".json" and p.is_file())
        if not self.changes_dir.is_dir():
            return []
        return sorted(self.changes_dir.glob("*/*.json"))

    def list_record_sets(
        self, scope: Iterable[Path] | None = None
    ) -> tuple[list[RecordSet], list[RecordParseError]]:
        """Read stored change files.

        Args:
            scope: Files to read. Defaults to every change file in the folder.

        Returns:
            Parsed record sets, and a parse error for each file that could
            not be read. Bad files do not stop the others being read.
        """
        record_sets: list[RecordSet] = []
        errors: list[RecordParseError] = []
        for path in self._record_paths(scope):
            try:
                record_sets.append(RecordSet.model_validate_json(path.read_text()))
            except pydantic.ValidationError as exc:
                errors.append(RecordParseError(path, str(exc)))
            except OSError as exc:
                errors.append(RecordParseError(path, exc.strerror or str(exc)))
        return record_sets, errors

    def existing_comments(self, scope: Iterable[Path] | None = None) -> dict[str, list[str]]:
        """Map project name to the comments already recorded for it."""
        comments: dict[str, list[str]] = {}
        record_sets, _ = self.list_record_sets(scope)
        for record_set in record_sets:
            for change in record_set.changes:
                if change.comment:
                    comments.setdefault(change.package_name, []).append(change.comment)
        return comments
