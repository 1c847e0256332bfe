"""Pull executor: apply remote content to the local vault.

Pull always means "remote wins" for the selected diffs, except where two
paths differ only in case: then nothing is overwritten and both versions
are written as timestamped sibling files for manual resolution.

The batch fails fast.  The first per-file failure raises
``SyncOperationError`` and earlier writes stay in place; the next
reconciliation pass rediscovers whatever is left.
"""

from __future__ import annotations

import logging
import posixpath
from datetime import datetime, timezone

from vault_sync.core.errors import (
    LocalVcsError,
    LocalVcsUnavailable,
    SyncOperationError,
)
from vault_sync.sync.local_repo import LocalRepository
from vault_sync.sync.messages import commit_message
from vault_sync.sync.models import (
    PULLABLE_STATUSES,
    PullResult,
    SyncDiff,
    SyncStatus,
)
from vault_sync.sync.store import DocumentRef, VaultStore

logger = logging.getLogger(__name__)


def conflict_path(path: str, kind: str, now: datetime | None = None) -> str:
    """Sibling path for one side of a case conflict.

    ``notes/Todo.md`` becomes ``notes/Todo-remote-2024-05-01T10-00-00-000Z.md``.
    """
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    stem, ext = posixpath.splitext(path)
    return f"{stem}-{kind}-{stamp}{ext}"


def commit_locally(
    repo: LocalRepository | None,
    paths: list[str],
    device_label: str | None = None,
) -> list[str]:
    """Record *paths* as one local commit and return any warnings."""
    if repo is None or not paths:
        return []
    try:
        repo.commit(paths, commit_message(len(paths), device_label))
    except (LocalVcsUnavailable, LocalVcsError) as e:
        logger.warning("Local commit failed: %s", e)
        return [f"Local commit failed: {e}"]
    return []


class PullExecutor:
    """Write remote content for pullable diffs into the vault.

    Args:
        store: Local document store.
        repo: Local repository for the closing commit; ``None`` skips it.
        device_name: Label used in the commit message.
    """

    def __init__(
        self,
        store: VaultStore,
        repo: LocalRepository | None = None,
        device_name: str = "",
    ) -> None:
        self.store = store
        self.repo = repo
        self.device_name = device_name

    def pull(self, diffs: list[SyncDiff]) -> PullResult:
        """Apply *diffs* and commit the written paths locally.

        Diffs whose status is not pullable are ignored.

        Raises:
            SyncOperationError: On the first file that cannot be written.
        """
        processed: list[str] = []
        notices: list[str] = []

        selected = [d for d in diffs if d.status in PULLABLE_STATUSES]
        logger.info("Starting pull of %d file(s)", len(selected))

        for diff in selected:
            try:
                written, notice = self._apply(diff)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                raise SyncOperationError(
                    f"Failed to pull remote changes for {diff.path}: {e}",
                    path=diff.path,
                ) from e
            processed.extend(written)
            if notice:
                notices.append(notice)
            logger.info("Pulled %s", diff.path)

        warnings = commit_locally(self.repo, processed, self.device_name)
        return PullResult(processed=processed, notices=notices, warnings=warnings)

    # ------------------------------------------------------------------
    # Per-status handlers
    # ------------------------------------------------------------------

    def _apply(self, diff: SyncDiff) -> tuple[list[str], str | None]:
        if diff.status in (SyncStatus.REMOTE_ONLY, SyncStatus.DELETED):
            return self._restore(diff)
        if diff.status == SyncStatus.REMOTE_MODIFIED:
            target = self.store.get_by_path(diff.path)
            if target is None:
                target = self.store.find_case_insensitive(diff.path)
                if target is not None:
                    logger.info(
                        "Updating %s with remote content of %s",
                        target.path,
                        diff.path,
                    )
            return [self._write(diff.path, target, diff.remote_content)], None
        if diff.status == SyncStatus.MODIFIED:
            target = self.store.get_by_path(diff.path)
            if target is not None:
                logger.info("Overwriting local changes in %s", diff.path)
            return [self._write(diff.path, target, diff.remote_content)], None
        if diff.status == SyncStatus.CASE_CONFLICT_ONLY:
            local = diff.observed_local_path or diff.path
            return self._materialize_conflict(diff, DocumentRef(local))
        return [], None

    def _restore(self, diff: SyncDiff) -> tuple[list[str], str | None]:
        collision = self.store.find_case_insensitive(diff.path)
        if collision is not None:
            return self._materialize_conflict(diff, collision)
        target = self.store.get_by_path(diff.path)
        return [self._write(diff.path, target, diff.remote_content)], None

    def _write(self, path: str, target: DocumentRef | None, text: str) -> str:
        if target is None:
            self.store.create(path, text)
            return path
        self.store.modify(target, text)
        return target.path

    def _materialize_conflict(
        self, diff: SyncDiff, local_ref: DocumentRef
    ) -> tuple[list[str], str]:
        now = datetime.now(timezone.utc)
        remote_copy = conflict_path(diff.path, "remote", now)
        local_copy = conflict_path(local_ref.path, "local", now)

        self.store.create(remote_copy, diff.remote_content)
        self.store.create(local_copy, self.store.read(local_ref))
        logger.warning(
            "Case conflict between remote %s and local %s", diff.path, local_ref.path
        )
        notice = (
            f"Case conflict: remote {diff.path} vs local {local_ref.path}. "
            f"Created {remote_copy} (remote) and {local_copy} (local backup); "
            "merge manually and delete the conflict files."
        )
        return [remote_copy, local_copy], notice
