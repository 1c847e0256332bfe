"""Tests for two-pass reconciliation and positional line statistics."""

import pytest

from vault_sync.sync.hashing import blob_hash
from vault_sync.sync.local_repo import LocalRepository
from vault_sync.sync.models import (
    ChangeStatus,
    LocalChange,
    MatchType,
    RemoteEntry,
    RemoteSnapshot,
    SyncStatus,
)
from vault_sync.sync.oracle import FullScanStrategy, LocalChangeOracle
from vault_sync.sync.reconciler import line_stats, reconcile


def snapshot_of(files: dict, unknown: tuple = ()) -> RemoteSnapshot:
    """Build a snapshot; paths in *unknown* get ``content=None``."""
    entries = [
        RemoteEntry(
            path=path,
            hash=blob_hash(text),
            content=None if path in unknown else text,
        )
        for path, text in files.items()
    ]
    return RemoteSnapshot(entries, commit_sha="c" * 40)


def changed(path: str, status: ChangeStatus = ChangeStatus.MODIFIED) -> LocalChange:
    return LocalChange(path=path, status=status)


# =============================================================================
# line_stats
# =============================================================================


class TestLineStats:
    """Tests for line_stats(old, new)."""

    def test_identical(self):
        assert line_stats("a\nb", "a\nb") == (0, 0)

    def test_appended_lines_are_additions(self):
        assert line_stats("a", "a\nb\nc") == (2, 0)

    def test_removed_tail_lines_are_deletions(self):
        assert line_stats("a\nb\nc", "a") == (0, 2)

    def test_changed_line_counts_as_addition(self):
        assert line_stats("a\nb", "a\nX") == (1, 0)

    def test_crlf_is_not_a_change(self):
        assert line_stats("a\r\nb", "a\nb") == (0, 0)

    def test_perspective_is_directional(self):
        assert line_stats("one", "one\ntwo") == (1, 0)
        assert line_stats("one\ntwo", "one") == (0, 1)


# =============================================================================
# Pass A: locally changed paths
# =============================================================================


class TestLocalChanges:
    """Classification of paths reported by the change oracle."""

    def test_new_local_file_is_added(self, store, write_note):
        write_note("new.md", "first\nsecond")
        diffs = reconcile([changed("new.md", ChangeStatus.ADDED)], snapshot_of({}), store)
        assert len(diffs) == 1
        diff = diffs[0]
        assert diff.status == SyncStatus.ADDED
        assert diff.additions == 2
        assert diff.deletions == 0
        assert diff.match_type == MatchType.NONE
        assert diff.local_content == "first\nsecond"

    def test_modified_against_remote(self, store, write_note):
        write_note("note.md", "same\nlocal edit\nextra")
        snapshot = snapshot_of({"note.md": "same\nremote text"})
        [diff] = reconcile([changed("note.md")], snapshot, store)
        assert diff.status == SyncStatus.MODIFIED
        assert diff.match_type == MatchType.EXACT
        assert (diff.additions, diff.deletions) == (2, 0)
        assert diff.remote_content == "same\nremote text"
        assert diff.remote_hash == blob_hash("same\nremote text")

    def test_identical_content_is_skipped(self, store, write_note):
        """A full-scan false positive produces no diff."""
        write_note("note.md", "unchanged")
        snapshot = snapshot_of({"note.md": "unchanged"})
        assert reconcile([changed("note.md")], snapshot, store) == []

    def test_line_ending_only_difference_is_skipped(self, store, write_note):
        write_note("note.md", "a\r\nb\r\n")
        snapshot = snapshot_of({"note.md": "a\nb\n"})
        assert reconcile([changed("note.md")], snapshot, store) == []

    def test_local_deletion_present_remotely(self, store):
        snapshot = snapshot_of({"old.md": "one\ntwo\nthree"})
        [diff] = reconcile([changed("old.md", ChangeStatus.DELETED)], snapshot, store)
        assert diff.status == SyncStatus.REMOTE_ONLY
        assert diff.deletions == 3
        assert diff.additions == 0
        assert diff.match_type == MatchType.NONE
        assert diff.is_deletion

    def test_local_deletion_absent_remotely(self, store):
        diffs = reconcile([changed("gone.md", ChangeStatus.DELETED)], snapshot_of({}), store)
        assert diffs == []

    def test_reported_but_missing_file_is_skipped(self, store):
        """A stale oracle record for a vanished file is ignored."""
        diffs = reconcile([changed("vanished.md")], snapshot_of({}), store)
        assert diffs == []

    def test_untracked_extension_ignored(self, store, write_note):
        write_note("pic.png", "binary-ish")
        assert reconcile([changed("pic.png", ChangeStatus.ADDED)], snapshot_of({}), store) == []

    def test_duplicate_change_records_yield_one_diff(self, store, write_note):
        write_note("dup.md", "x")
        diffs = reconcile(
            [changed("dup.md", ChangeStatus.ADDED), changed("dup.md")],
            snapshot_of({}),
            store,
        )
        assert [d.path for d in diffs] == ["dup.md"]

    def test_unknown_remote_content(self, store, write_note):
        write_note("note.md", "local")
        snapshot = snapshot_of({"note.md": "remote"}, unknown=("note.md",))
        [diff] = reconcile([changed("note.md")], snapshot, store)
        assert diff.status == SyncStatus.UNKNOWN
        assert diff.remote_content == ""
        assert diff.local_content == "local"

    def test_unknown_content_with_matching_hash_is_skipped(self, store, write_note):
        """The hash alone proves identity even without content."""
        write_note("note.md", "same")
        snapshot = snapshot_of({"note.md": "same"}, unknown=("note.md",))
        assert reconcile([changed("note.md")], snapshot, store) == []

    def test_local_deletion_with_unknown_remote(self, store):
        snapshot = snapshot_of({"old.md": "x"}, unknown=("old.md",))
        [diff] = reconcile([changed("old.md", ChangeStatus.DELETED)], snapshot, store)
        assert diff.status == SyncStatus.UNKNOWN
        assert not diff.is_deletion


# =============================================================================
# Pass B: remote sweep
# =============================================================================


class TestRemoteSweep:
    """Classification of remote paths not covered by local changes."""

    def test_remote_only(self, store):
        [diff] = reconcile([], snapshot_of({"old.md": "a\nb"}), store)
        assert diff.status == SyncStatus.REMOTE_ONLY
        assert diff.deletions == 2
        assert diff.match_type == MatchType.NONE

    def test_remote_modified_exact(self, store, write_note):
        write_note("note.md", "line")
        [diff] = reconcile([], snapshot_of({"note.md": "line\nmore\nlines"}), store)
        assert diff.status == SyncStatus.REMOTE_MODIFIED
        assert diff.match_type == MatchType.EXACT
        assert diff.observed_local_path is None
        assert (diff.additions, diff.deletions) == (2, 0)

    def test_clean_identical_file_has_no_diff(self, store, write_note):
        write_note("note.md", "same")
        assert reconcile([], snapshot_of({"note.md": "same"}), store) == []

    def test_case_conflict_with_different_content(self, store, write_note):
        write_note("Folder/Note.md", "local")
        [diff] = reconcile([], snapshot_of({"folder/note.md": "remote"}), store)
        assert diff.path == "folder/note.md"
        assert diff.status == SyncStatus.REMOTE_MODIFIED
        assert diff.match_type == MatchType.CASE_CONFLICT
        assert diff.observed_local_path == "Folder/Note.md"

    def test_case_conflict_with_same_content(self, store, write_note):
        write_note("Note.md", "same\r\n")
        [diff] = reconcile([], snapshot_of({"note.md": "same\n"}), store)
        assert diff.status == SyncStatus.CASE_CONFLICT_ONLY
        assert diff.observed_local_path == "Note.md"
        assert (diff.additions, diff.deletions) == (0, 0)

    def test_exact_match_takes_precedence_over_case_match(self, store, write_note):
        """With both Note.md and note.md locally, note.md matches exactly."""
        write_note("Note.md", "upper")
        write_note("note.md", "lower")
        assert reconcile([], snapshot_of({"note.md": "lower"}), store) == []

    def test_unknown_remote_only(self, store):
        snapshot = snapshot_of({"lost.md": "x"}, unknown=("lost.md",))
        [diff] = reconcile([], snapshot, store)
        assert diff.status == SyncStatus.UNKNOWN
        assert diff.match_type == MatchType.NONE

    def test_unknown_case_conflict_keeps_observed_path(self, store, write_note):
        write_note("Note.md", "local")
        snapshot = snapshot_of({"note.md": "remote"}, unknown=("note.md",))
        [diff] = reconcile([], snapshot, store)
        assert diff.status == SyncStatus.UNKNOWN
        assert diff.observed_local_path == "Note.md"

    def test_covered_paths_are_not_swept(self, store, write_note):
        """A path handled in Pass A never reappears in Pass B."""
        write_note("note.md", "same")
        snapshot = snapshot_of({"note.md": "same", "other.md": "x"})
        diffs = reconcile([changed("note.md")], snapshot, store)
        assert [d.path for d in diffs] == ["other.md"]

    def test_remote_non_tracked_extension_ignored(self, store):
        assert reconcile([], snapshot_of({"pic.png": "x"}), store) == []

    def test_hidden_directory_identical_on_both_sides(self, store, write_note):
        write_note(".github/ISSUE_TEMPLATE/bug.md", "template")
        snapshot = snapshot_of({".github/ISSUE_TEMPLATE/bug.md": "template"})
        assert reconcile([], snapshot, store) == []

    def test_hidden_directory_remote_only_ignored(self, store):
        snapshot = snapshot_of({".github/ISSUE_TEMPLATE/bug.md": "template"})
        assert reconcile([], snapshot, store) == []

    def test_case_match_uses_first_local_path_in_sorted_order(self, store, write_note):
        """NOTE.md sorts before Note.md and is the one matched."""
        write_note("Note.md", "other")
        write_note("NOTE.md", "same")
        [diff] = reconcile([], snapshot_of({"note.md": "same"}), store)
        assert diff.status == SyncStatus.CASE_CONFLICT_ONLY
        assert diff.observed_local_path == "NOTE.md"


# =============================================================================
# Whole-pass properties
# =============================================================================


class TestReconcileProperties:
    """Cross-cutting properties of a reconciliation pass."""

    def _mixed(self, write_note):
        write_note("new.md", "new")
        write_note("edited.md", "local")
        write_note("stale.md", "old")
        changes = [
            changed("new.md", ChangeStatus.ADDED),
            changed("edited.md"),
            changed("removed.md", ChangeStatus.DELETED),
        ]
        snapshot = snapshot_of(
            {
                "edited.md": "remote",
                "removed.md": "r",
                "stale.md": "fresh",
                "z-remote.md": "z",
            }
        )
        return changes, snapshot

    def test_ordering_pass_a_then_sorted_pass_b(self, store, write_note):
        changes, snapshot = self._mixed(write_note)
        diffs = reconcile(changes, snapshot, store)
        assert [(d.path, d.status) for d in diffs] == [
            ("new.md", SyncStatus.ADDED),
            ("edited.md", SyncStatus.MODIFIED),
            ("removed.md", SyncStatus.REMOTE_ONLY),
            ("stale.md", SyncStatus.REMOTE_MODIFIED),
            ("z-remote.md", SyncStatus.REMOTE_ONLY),
        ]

    def test_paths_are_unique(self, store, write_note):
        changes, snapshot = self._mixed(write_note)
        paths = [d.path for d in reconcile(changes, snapshot, store)]
        assert len(paths) == len(set(paths))

    def test_idempotent(self, store, write_note):
        changes, snapshot = self._mixed(write_note)
        assert reconcile(changes, snapshot, store) == reconcile(changes, snapshot, store)

    def test_custom_extension(self, store, write_note):
        write_note("a.txt", "t")
        diffs = reconcile(
            [changed("a.txt", ChangeStatus.ADDED)], snapshot_of({}), store, extension=".txt"
        )
        assert [d.path for d in diffs] == ["a.txt"]

    @pytest.mark.parametrize("content", ["", "one", "one\ntwo\n", "a\r\nb"])
    def test_round_trip_after_sync_is_clean(self, store, write_note, content):
        """Local content equal to the remote leaves nothing to do."""
        write_note("note.md", content)
        snapshot = snapshot_of({"note.md": content})
        assert reconcile([changed("note.md")], snapshot, store) == []


# =============================================================================
# Passes fed by the local change oracle
# =============================================================================


class TestOracleDrivenReconcile:
    """Reconciliation over changes reported by LocalChangeOracle.

    The vault is a plain directory, so the oracle falls back to a full scan
    and every tracked document arrives as a local change.
    """

    def _changes(self, store, vault):
        return LocalChangeOracle.for_vault(store, LocalRepository(vault)).list_changes()

    def test_full_scan_case_mismatch_yields_one_diff(self, store, write_note):
        write_note("Note.md", "same")
        changes = FullScanStrategy(store).list_changes()
        diffs = reconcile(changes, snapshot_of({"note.md": "same"}), store)
        assert len(diffs) == 1
        assert diffs[0].path == "note.md"
        assert diffs[0].status == SyncStatus.CASE_CONFLICT_ONLY
        assert diffs[0].observed_local_path == "Note.md"

    def test_added_case_mismatch_is_not_reported_as_added(self, store, write_note):
        write_note("Note.md", "local")
        changes = [changed("Note.md", ChangeStatus.ADDED)]
        [diff] = reconcile(changes, snapshot_of({"note.md": "remote"}), store)
        assert diff.status == SyncStatus.REMOTE_MODIFIED
        assert diff.match_type == MatchType.CASE_CONFLICT

    def test_synced_vault_stays_clean(self, store, vault, write_note):
        files = {
            "a.md": "alpha\n",
            "dir/b.md": "beta",
            ".github/ISSUE_TEMPLATE/bug.md": "template",
        }
        for path, text in files.items():
            write_note(path, text)
        snapshot = snapshot_of(files)
        assert reconcile(self._changes(store, vault), snapshot, store) == []
        assert reconcile(self._changes(store, vault), snapshot, store) == []

    def test_case_precedence(self, store, vault, write_note):
        write_note("Note.md", "same")
        changes = self._changes(store, vault)
        assert [c.path for c in changes] == ["Note.md"]
        diffs = reconcile(changes, snapshot_of({"note.md": "same"}), store)
        assert [(d.path, d.status, d.observed_local_path) for d in diffs] == [
            ("note.md", SyncStatus.CASE_CONFLICT_ONLY, "Note.md")
        ]

    def test_paths_unique_ignoring_case(self, store, vault, write_note):
        write_note("Note.md", "local")
        write_note("other.md", "o")
        snapshot = snapshot_of({"note.md": "remote", "other.md": "o", "new.md": "n"})
        diffs = reconcile(self._changes(store, vault), snapshot, store)
        folded = [d.path.lower() for d in diffs]
        assert len(folded) == len(set(folded))
        assert sorted(folded) == ["new.md", "note.md"]
