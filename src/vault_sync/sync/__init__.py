"""Vault-to-GitHub sync engine.

Public API for reconciling a local vault of Markdown notes with a GitHub
repository through the Git Data API.

Architecture
------------
Each reconciliation pass compares three sources of truth: the local git
work-tree status, live local file content, and a snapshot of the remote
branch.  The result is a list of ``SyncDiff`` records; pull and push
executors consume a filtered subset of that list.  No sync state is
persisted between passes.

Modules:

- ``hashing``     -- git blob hash and line-ending normalisation.
- ``store``       -- ``VaultStore``: filesystem-backed document store.
- ``local_repo``  -- ``LocalRepository``: local ``git`` binding.
- ``oracle``      -- ``LocalChangeOracle``: git status with full-scan fallback.
- ``fetcher``     -- ``RemoteTreeFetcher``: tree listing plus parallel blob fetch.
- ``reconciler``  -- ``reconcile``: the two-pass classifier.
- ``pull``        -- ``PullExecutor``: remote-wins writes, case-conflict siblings.
- ``push``        -- ``PushExecutor``: blobs, tree, commit, ref.
- ``messages``    -- ``commit_message`` shared by pull and push.
- ``controller``  -- ``SyncSession`` and ``SyncController``.
- ``reporter``    -- Human-readable and JSON formatting.

Usage example
-------------
::

    from vault_sync.config import load_config
    from vault_sync.sync import SyncController, SyncSession, format_diff_list

    config = load_config(repository="me/notes", vault_root="~/vault")
    controller = SyncController(SyncSession.from_config(config))

    diffs = await controller.run_reconciliation()
    print(format_diff_list(diffs))

    if controller.push_enabled:
        result = await controller.run_push()
"""

from .controller import SyncController, SyncSession
from .fetcher import RemoteTreeFetcher
from .hashing import blob_hash, normalize_line_endings
from .messages import commit_message
from .models import (
    PULLABLE_STATUSES,
    PUSHABLE_STATUSES,
    ChangeStatus,
    LocalChange,
    MatchType,
    PullResult,
    PushResult,
    RemoteEntry,
    RemoteSnapshot,
    SyncDiff,
    SyncStatus,
)
from .oracle import FullScanStrategy, GitStatusStrategy, LocalChangeOracle
from .pull import PullExecutor
from .push import PushExecutor
from .reconciler import line_stats, reconcile
from .reporter import (
    diffs_to_json,
    format_diff_detail,
    format_diff_list,
    format_pull_result,
    format_push_result,
)
from .store import DocumentRef, VaultStore

__all__ = [
    "PULLABLE_STATUSES",
    "PUSHABLE_STATUSES",
    "ChangeStatus",
    "DocumentRef",
    "FullScanStrategy",
    "GitStatusStrategy",
    "LocalChange",
    "LocalChangeOracle",
    "MatchType",
    "PullExecutor",
    "PullResult",
    "PushExecutor",
    "PushResult",
    "RemoteEntry",
    "RemoteSnapshot",
    "RemoteTreeFetcher",
    "SyncController",
    "SyncDiff",
    "SyncSession",
    "SyncStatus",
    "VaultStore",
    "blob_hash",
    "commit_message",
    "diffs_to_json",
    "format_diff_detail",
    "format_diff_list",
    "format_pull_result",
    "format_push_result",
    "line_stats",
    "normalize_line_endings",
    "reconcile",
]
