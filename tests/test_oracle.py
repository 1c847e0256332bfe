"""Tests for local change detection strategies and the fallback chain."""

import logging

import pytest

from vault_sync.core.errors import LocalVcsError
from vault_sync.sync.models import ChangeStatus, LocalChange
from vault_sync.sync.oracle import (
    FullScanStrategy,
    GitStatusStrategy,
    LocalChangeOracle,
    status_from_porcelain,
)


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("??", ChangeStatus.ADDED),
        ("A ", ChangeStatus.ADDED),
        ("AM", ChangeStatus.ADDED),
        (" M", ChangeStatus.MODIFIED),
        ("M ", ChangeStatus.MODIFIED),
        ("MM", ChangeStatus.MODIFIED),
        ("UU", ChangeStatus.MODIFIED),
        (" D", ChangeStatus.DELETED),
        ("D ", ChangeStatus.DELETED),
        ("AD", ChangeStatus.DELETED),
        ("!!", None),
    ],
)
def test_status_from_porcelain(code, expected):
    assert status_from_porcelain(code) == expected


class TestGitStatusStrategy:
    """Tests for GitStatusStrategy."""

    def test_maps_and_filters_extension(self, store, fake_repo):
        fake_repo.changes = [
            ("??", "new.md"),
            (" M", "dir/edit.md"),
            (" D", "gone.md"),
            (" M", "image.png"),
            ("!!", "ignored.md"),
        ]
        changes = GitStatusStrategy(fake_repo, store).list_changes()
        assert changes == [
            LocalChange(path="new.md", status=ChangeStatus.ADDED),
            LocalChange(path="dir/edit.md", status=ChangeStatus.MODIFIED),
            LocalChange(path="gone.md", status=ChangeStatus.DELETED),
        ]


class TestFullScanStrategy:
    """Tests for FullScanStrategy."""

    def test_every_document_is_modified(self, store, write_note):
        write_note("a.md", "a")
        write_note("sub/b.md", "b")
        write_note("c.txt", "c")
        changes = FullScanStrategy(store).list_changes()
        assert [(c.path, c.status) for c in changes] == [
            ("a.md", ChangeStatus.MODIFIED),
            ("sub/b.md", ChangeStatus.MODIFIED),
        ]


class TestLocalChangeOracle:
    """Tests for the strategy fallback chain."""

    def test_requires_a_strategy(self):
        with pytest.raises(ValueError, match="At least one"):
            LocalChangeOracle([])

    def test_uses_git_when_available(self, store, fake_repo, write_note):
        write_note("clean.md", "unchanged")
        fake_repo.changes = [(" M", "edited.md")]
        oracle = LocalChangeOracle.for_vault(store, fake_repo)
        assert [c.path for c in oracle.list_changes()] == ["edited.md"]

    def test_falls_back_to_full_scan(self, store, fake_repo, write_note, caplog):
        write_note("a.md", "a")
        fake_repo.available = False
        oracle = LocalChangeOracle.for_vault(store, fake_repo)
        with caplog.at_level(logging.WARNING):
            changes = oracle.list_changes()
        assert [c.path for c in changes] == ["a.md"]
        assert "git-status" in caplog.text

    def test_deduplicates_paths(self, store, fake_repo):
        """A path reported twice keeps its first record."""
        fake_repo.changes = [("A ", "x.md"), (" D", "x.md")]
        changes = LocalChangeOracle.for_vault(store, fake_repo).list_changes()
        assert changes == [LocalChange(path="x.md", status=ChangeStatus.ADDED)]

    def test_all_strategies_failing_returns_empty(self):
        class Broken:
            name = "broken"

            def list_changes(self):
                raise LocalVcsError("boom")

        assert LocalChangeOracle([Broken(), Broken()]).list_changes() == []
