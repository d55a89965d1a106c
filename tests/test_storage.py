"""Tests for monochange.storage."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest import ScriptedPrompter
from monochange.errors import PersistenceConflictError
from monochange.models import ChangeRecord, RecordSet, Severity
from monochange.storage import ChangeFileStore, OverwritePolicy, atomic_write_text

NOW = datetime(2024, 3, 5, 14, 7)


def _record_set(name: str = "pkg-a", comment: str = "Fix", email: str | None = "") -> RecordSet:
    return RecordSet(
        package_name=name,
        email=email,
        changes=[ChangeRecord(package_name=name, comment=comment, type=Severity.PATCH)],
    )


@pytest.fixture
def store(tmp_path: Path) -> ChangeFileStore:
    return ChangeFileStore(tmp_path / "common" / "changes", "feature/login")


class TestOverwritePolicy:
    def test_resolve(self) -> None:
        assert OverwritePolicy.resolve(True, False) is OverwritePolicy.FORCE
        assert OverwritePolicy.resolve(True, True) is OverwritePolicy.FORCE
        assert OverwritePolicy.resolve(False, True) is OverwritePolicy.CONFIRM
        assert OverwritePolicy.resolve(False, False) is OverwritePolicy.REFUSE


class TestPathFor:
    def test_branch_and_timestamp(self, store: ChangeFileStore) -> None:
        path = store.path_for(_record_set(), NOW)
        assert path == store.changes_dir / "pkg-a" / "feature-login_2024-03-05-14-07.json"

    def test_same_unit_twice_gets_distinct_paths(self, store: ChangeFileStore) -> None:
        first = store.path_for(_record_set(), NOW)
        second = store.path_for(_record_set(), NOW)
        third = store.path_for(_record_set(), NOW)

        assert len({first, second, third}) == 3
        assert second.name == "feature-login_2024-03-05-14-07-2.json"

    def test_different_units_do_not_interfere(self, store: ChangeFileStore) -> None:
        a = store.path_for(_record_set("pkg-a"), NOW)
        b = store.path_for(_record_set("pkg-b"), NOW)
        assert a.name == b.name
        assert a.parent != b.parent


@patch("monochange.storage.info")
class TestWrite:
    def test_round_trip(self, mock_info: MagicMock, store: ChangeFileStore) -> None:
        record_set = _record_set(email="dev@example.com")
        path = store.path_for(record_set, NOW)

        assert store.write(record_set, path, OverwritePolicy.REFUSE) is True

        record_sets, errors = store.list_record_sets()
        assert errors == []
        assert record_sets == [record_set]

    def test_refuse_leaves_existing_file_untouched(
        self, mock_info: MagicMock, store: ChangeFileStore
    ) -> None:
        path = store.path_for(_record_set(), NOW)
        path.parent.mkdir(parents=True)
        path.write_bytes(b'{"original": true}')

        with pytest.raises(PersistenceConflictError, match=str(path)):
            store.write(_record_set(), path, OverwritePolicy.REFUSE)

        assert path.read_bytes() == b'{"original": true}'

    def test_force_overwrites(self, mock_info: MagicMock, store: ChangeFileStore) -> None:
        path = store.path_for(_record_set(), NOW)
        path.parent.mkdir(parents=True)
        path.write_text("old")

        assert store.write(_record_set(comment="New"), path, OverwritePolicy.FORCE) is True
        assert '"New"' in path.read_text()

    def test_confirm_declined(self, mock_info: MagicMock, store: ChangeFileStore) -> None:
        path = store.path_for(_record_set(), NOW)
        path.parent.mkdir(parents=True)
        path.write_text("old")
        prompter = ScriptedPrompter(confirms=[False])

        assert store.write(_record_set(), path, OverwritePolicy.CONFIRM, prompter) is False
        assert path.read_text() == "old"
        assert prompter.questions == [f"Overwrite {path}?"]

    def test_confirm_accepted(self, mock_info: MagicMock, store: ChangeFileStore) -> None:
        path = store.path_for(_record_set(), NOW)
        path.parent.mkdir(parents=True)
        path.write_text("old")

        store.write(_record_set(), path, OverwritePolicy.CONFIRM, ScriptedPrompter(confirms=[True]))

        assert path.read_text() != "old"


@patch("monochange.storage.info")
class TestWriteAll:
    def test_writes_one_file_per_unit(self, mock_info: MagicMock, store: ChangeFileStore) -> None:
        written = store.write_all(
            {"pkg-a": _record_set("pkg-a"), "pkg-b": _record_set("pkg-b")},
            OverwritePolicy.REFUSE,
            now=NOW,
        )

        assert [p.parent.name for p in written] == ["pkg-a", "pkg-b"]
        assert all(p.exists() for p in written)

    def test_refusal_writes_nothing(self, mock_info: MagicMock, store: ChangeFileStore) -> None:
        existing = store.changes_dir / "pkg-b" / "feature-login_2024-03-05-14-07.json"
        existing.parent.mkdir(parents=True)
        existing.write_text("keep")

        with pytest.raises(PersistenceConflictError):
            store.write_all(
                {"pkg-a": _record_set("pkg-a"), "pkg-b": _record_set("pkg-b")},
                OverwritePolicy.REFUSE,
                now=NOW,
            )

        assert not (store.changes_dir / "pkg-a").exists()
        assert existing.read_text() == "keep"


class TestListRecordSets:
    def test_missing_folder(self, store: ChangeFileStore) -> None:
        assert store.list_record_sets() == ([], [])

    def test_collects_parse_errors(self, store: ChangeFileStore) -> None:
        good = store.changes_dir / "pkg-a" / "main_1.json"
        bad_json = store.changes_dir / "pkg-b" / "main_2.json"
        bad_shape = store.changes_dir / "pkg-c" / "main_3.json"
        atomic_write_text(good, _record_set("pkg-a").to_json())
        atomic_write_text(bad_json, "{not json")
        atomic_write_text(bad_shape, '{"changes": []}')

        record_sets, errors = store.list_record_sets()

        assert [rs.package_name for rs in record_sets] == ["pkg-a"]
        assert sorted(e.path for e in errors) == [bad_json, bad_shape]

    def test_scope_limits_files(self, store: ChangeFileStore) -> None:
        mine = store.changes_dir / "pkg-a" / "mine.json"
        theirs = store.changes_dir / "pkg-b" / "theirs.json"
        atomic_write_text(mine, _record_set("pkg-a").to_json())
        atomic_write_text(theirs, _record_set("pkg-b").to_json())

        record_sets, _ = store.list_record_sets([mine, store.changes_dir / "gone.json"])

        assert [rs.package_name for rs in record_sets] == ["pkg-a"]

    def test_existing_comments(self, store: ChangeFileStore) -> None:
        atomic_write_text(store.changes_dir / "pkg-a" / "1.json", _record_set("pkg-a", "One").to_json())
        atomic_write_text(store.changes_dir / "pkg-a" / "2.json", _record_set("pkg-a", "Two").to_json())
        atomic_write_text(store.changes_dir / "pkg-b" / "3.json", _record_set("pkg-b", "").to_json())

        assert store.existing_comments() == {"pkg-a": ["One", "Two"]}


class TestAtomicWriteText:
    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "deep" / "file.json"

        atomic_write_text(target, "{}")

        assert target.read_text() == "{}"
        assert [p.name for p in target.parent.iterdir()] == ["file.json"]
