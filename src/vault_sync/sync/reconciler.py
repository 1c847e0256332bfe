"""Two-pass reconciliation of local changes against a remote snapshot.

Pass A walks the paths the local change oracle flagged; Pass B sweeps
every remaining remote path and looks for a local counterpart, exact case
first and case-insensitive second.  Classification is always decided by
normalised content equality: the blob hash only short-circuits the
"identical" case.

The line counts attached to each diff come from ``line_stats``, a cheap
positional comparison used for display only.
"""

from __future__ import annotations

import logging

from vault_sync.sync.hashing import (
    blob_hash,
    line_count,
    normalize_line_endings,
    same_content,
)
from vault_sync.sync.models import (
    ChangeStatus,
    LocalChange,
    MatchType,
    RemoteEntry,
    RemoteSnapshot,
    SyncDiff,
    SyncStatus,
)
from vault_sync.sync.store import DocumentRef, VaultStore, is_hidden_path

logger = logging.getLogger(__name__)


def line_stats(old: str, new: str) -> tuple[int, int]:
    """Positional ``(additions, deletions)`` going from *old* to *new*.

    Lines are compared by index up to the longer text.  An index past the
    end of *old* is an addition, past the end of *new* a deletion, and a
    differing line at a shared index counts as an addition.
    """
    old_lines = normalize_line_endings(old).split("\n")
    new_lines = normalize_line_endings(new).split("\n")
    additions = deletions = 0
    for i in range(max(len(old_lines), len(new_lines))):
        if i >= len(old_lines):
            additions += 1
        elif i >= len(new_lines):
            deletions += 1
        elif old_lines[i] != new_lines[i]:
            additions += 1
    return additions, deletions


def _tracked(path: str, extension: str) -> bool:
    return path.endswith(extension) and not is_hidden_path(path)


def reconcile(
    local_changes: list[LocalChange],
    snapshot: RemoteSnapshot,
    store: VaultStore,
    extension: str | None = None,
) -> list[SyncDiff]:
    """Classify every changed or remote document into a ``SyncDiff``.

    Args:
        local_changes: Output of the local change oracle.
        snapshot: Remote snapshot for this pass.
        store: Local document store used for live reads.
        extension: Tracked extension; defaults to the store's.

    Returns:
        Pass A diffs in oracle order followed by Pass B diffs in remote
        path order.  At most one diff per path.
    """
    ext = extension if extension is not None else store.extension
    covered = {change.path for change in local_changes}
    remote_folded: dict[str, str] = {}
    for remote_path in sorted(snapshot):
        remote_folded.setdefault(remote_path.lower(), remote_path)

    diffs: list[SyncDiff] = []
    seen: set[str] = set()
    for change in local_changes:
        if not _tracked(change.path, ext) or change.path in seen:
            continue
        seen.add(change.path)
        if change.path not in snapshot and change.path.lower() in remote_folded:
            # differs from a remote path only by case; Pass B reports it
            continue
        try:
            diff = _classify_local_change(change, snapshot, store)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Skipping %s: %s", change.path, e)
            continue
        if diff is not None:
            diffs.append(diff)

    exact_paths = {ref.path: ref for ref in store.list_all()}
    folded_paths: dict[str, DocumentRef] = {}
    for path, ref in exact_paths.items():
        folded_paths.setdefault(path.lower(), ref)

    for remote_path in sorted(snapshot):
        if remote_path in covered or not _tracked(remote_path, ext):
            continue
        remote = snapshot[remote_path]

        local_ref = exact_paths.get(remote_path)
        match_type = MatchType.EXACT
        if local_ref is None:
            candidate = folded_paths.get(remote_path.lower())
            if candidate is not None and candidate.path != remote_path:
                logger.info(
                    "Case mismatch: remote %s matches local %s",
                    remote_path,
                    candidate.path,
                )
                local_ref = candidate
                match_type = MatchType.CASE_CONFLICT

        try:
            diff = _classify_remote_entry(remote, local_ref, match_type, store)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning("Skipping remote %s: %s", remote_path, e)
            continue
        if diff is not None:
            diffs.append(diff)

    logger.info(
        "Reconciled %d local change(s) against %d remote document(s): %d diff(s)",
        len(local_changes),
        len(snapshot),
        len(diffs),
    )
    return diffs


# ------------------------------------------------------------------
# Pass A
# ------------------------------------------------------------------


def _classify_local_change(
    change: LocalChange, snapshot: RemoteSnapshot, store: VaultStore
) -> SyncDiff | None:
    remote = snapshot.get(change.path)

    if change.status == ChangeStatus.DELETED:
        if remote is None:
            return None
        if not remote.content_known:
            return _unknown(change.path, remote, MatchType.NONE)
        return SyncDiff(
            path=change.path,
            status=SyncStatus.REMOTE_ONLY,
            remote_content=remote.content,
            remote_hash=remote.hash,
            deletions=line_count(remote.content),
            match_type=MatchType.NONE,
        )

    ref = store.get_by_path(change.path)
    if ref is None:
        logger.warning("Local file not found: %s", change.path)
        return None
    local = store.read(ref)

    if remote is None:
        return SyncDiff(
            path=change.path,
            status=SyncStatus.ADDED,
            local_content=local,
            additions=line_count(local),
            match_type=MatchType.NONE,
        )

    if blob_hash(local) == remote.hash:
        return None
    if not remote.content_known:
        return _unknown(change.path, remote, MatchType.EXACT, local)
    if same_content(local, remote.content):
        return None

    additions, deletions = line_stats(remote.content, local)
    return SyncDiff(
        path=change.path,
        status=SyncStatus.MODIFIED,
        local_content=local,
        remote_content=remote.content,
        remote_hash=remote.hash,
        additions=additions,
        deletions=deletions,
    )


# ------------------------------------------------------------------
# Pass B
# ------------------------------------------------------------------


def _classify_remote_entry(
    remote: RemoteEntry,
    local_ref: DocumentRef | None,
    match_type: MatchType,
    store: VaultStore,
) -> SyncDiff | None:
    if local_ref is None:
        if not remote.content_known:
            return _unknown(remote.path, remote, MatchType.NONE)
        return SyncDiff(
            path=remote.path,
            status=SyncStatus.REMOTE_ONLY,
            remote_content=remote.content,
            remote_hash=remote.hash,
            deletions=line_count(remote.content),
            match_type=MatchType.NONE,
        )

    observed = local_ref.path if match_type == MatchType.CASE_CONFLICT else None
    local = store.read(local_ref)

    if blob_hash(local) != remote.hash:
        if not remote.content_known:
            return _unknown(remote.path, remote, match_type, local, observed)
        if not same_content(local, remote.content):
            # remote perspective: lines beyond the local text are additions
            additions, deletions = line_stats(local, remote.content)
            return SyncDiff(
                path=remote.path,
                status=SyncStatus.REMOTE_MODIFIED,
                local_content=local,
                remote_content=remote.content,
                remote_hash=remote.hash,
                additions=additions,
                deletions=deletions,
                match_type=match_type,
                observed_local_path=observed,
            )

    if match_type != MatchType.CASE_CONFLICT:
        return None
    return SyncDiff(
        path=remote.path,
        status=SyncStatus.CASE_CONFLICT_ONLY,
        local_content=local,
        remote_content=remote.content if remote.content_known else local,
        remote_hash=remote.hash,
        match_type=match_type,
        observed_local_path=observed,
    )


def _unknown(
    path: str,
    remote: RemoteEntry,
    match_type: MatchType,
    local: str = "",
    observed: str | None = None,
) -> SyncDiff:
    logger.warning("Remote content of %s is unknown, leaving it untouched", path)
    return SyncDiff(
        path=path,
        status=SyncStatus.UNKNOWN,
        local_content=local,
        remote_hash=remote.hash,
        match_type=match_type,
        observed_local_path=observed,
    )
