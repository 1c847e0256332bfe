"""Push executor: build one remote commit from the selected diffs.

Steps, each gated on the previous one:

1. Resolve the branch tip (branch names tried in order).
2. List the current remote tree; deletions are only queued for paths
   still present there.
3. Create blobs for every added or modified document, concurrently.
4. Create a tree on top of the tip's tree with the new blobs and
   ``sha: null`` entries for the confirmed deletions.
5. Create the commit with the tip as parent.
6. Advance the branch ref (branch names tried in order).
7. Commit the same paths locally.

Until step 6 succeeds the branch is untouched; objects created by an
aborted run are unreferenced and harmless.  If step 6 fails, the commit
already exists and the ref update alone can be retried.
"""

from __future__ import annotations

import logging

from vault_sync.core.async_utils import gather_all, run_sync
from vault_sync.core.client import BLOB_MODE, GitHubClient
from vault_sync.core.errors import NotFoundError, RemoteError, SyncOperationError
from vault_sync.sync.local_repo import LocalRepository
from vault_sync.sync.messages import commit_message
from vault_sync.sync.models import PUSHABLE_STATUSES, PushResult, SyncDiff
from vault_sync.sync.pull import commit_locally

logger = logging.getLogger(__name__)


class PushExecutor:
    """Publish pushable diffs as a single commit on the tracked branch.

    Args:
        client: GitHub client bound to the repository.
        repo: Local repository for the closing commit; ``None`` skips it.
        branches: Branch names to try, in order.
        device_name: Label used in the commit message.
    """

    def __init__(
        self,
        client: GitHubClient,
        repo: LocalRepository | None = None,
        branches: tuple[str, ...] | list[str] = ("main", "master"),
        device_name: str = "",
    ) -> None:
        self.client = client
        self.repo = repo
        self.branches = tuple(branches)
        self.device_name = device_name

    async def push(self, diffs: list[SyncDiff]) -> PushResult:
        """Push *diffs*; statuses that are not pushable are ignored.

        Raises:
            SyncOperationError: If no branch resolves, a blob cannot be
                created, or no branch ref can be advanced.
            AuthenticationError: If the token is rejected.
            RemoteError: On any other remote failure.
        """
        selected = [d for d in diffs if d.status in PUSHABLE_STATUSES]
        if not selected:
            logger.info("Nothing to push")
            return PushResult()
        logger.info("Starting push of %d file(s)", len(selected))

        # 1. branch tip
        tip = await run_sync(self.client.get_branch_tip, self.branches)
        if tip is None:
            raise SyncOperationError(
                f"Could not resolve any branch among {', '.join(self.branches)}"
            )

        # 2. deletion safety check
        tree = await run_sync(self.client.get_recursive_tree, tip) or []
        remote_paths = {item["path"] for item in tree if item.get("type") == "blob"}

        uploads = [d for d in selected if not d.is_deletion]
        deletions: list[str] = []
        skipped: list[str] = []
        for diff in selected:
            if not diff.is_deletion:
                continue
            if diff.path in remote_paths:
                deletions.append(diff.path)
                logger.debug("Marked for deletion: %s", diff.path)
            else:
                skipped.append(diff.path)
                logger.info("Skip deletion of %s, already absent remotely", diff.path)

        processed = [d.path for d in uploads] + deletions
        if not processed:
            return PushResult(skipped=skipped)

        # 3. blobs
        blob_shas = await gather_all([self._create_blob(d) for d in uploads])

        # 4. tree
        base_tree = await run_sync(self.client.get_commit_tree, tip)
        entries = [
            {"path": d.path, "mode": BLOB_MODE, "type": "blob", "sha": sha}
            for d, sha in zip(uploads, blob_shas)
        ]
        entries.extend(
            {"path": path, "mode": BLOB_MODE, "type": "blob", "sha": None}
            for path in deletions
        )
        tree_sha = await run_sync(self.client.create_tree, base_tree, entries)
        logger.debug("Created tree %s", tree_sha)

        # 5. commit
        message = commit_message(len(processed), self.device_name)
        commit_sha = await run_sync(
            self.client.create_commit, tree_sha, tip, message
        )
        logger.debug("Created commit %s", commit_sha)

        # 6. ref
        branch = await self._advance_ref(commit_sha)
        logger.info(
            "Pushed %d file(s) to %s as %s", len(processed), branch, commit_sha[:12]
        )

        # 7. local bookkeeping
        warnings = await run_sync(
            commit_locally, self.repo, processed, self.device_name
        )
        return PushResult(
            processed=processed,
            commit_sha=commit_sha,
            branch=branch,
            skipped=skipped,
            warnings=warnings,
        )

    async def _create_blob(self, diff: SyncDiff) -> str:
        try:
            return await run_sync(self.client.create_blob, diff.local_content)
        except (NotFoundError, RemoteError) as e:
            raise SyncOperationError(
                f"Failed to create blob for {diff.path}: {e}", path=diff.path
            ) from e

    async def _advance_ref(self, commit_sha: str) -> str:
        last_error: RemoteError | None = None
        for branch in self.branches:
            try:
                updated = await run_sync(self.client.update_ref, branch, commit_sha)
            except RemoteError as e:
                logger.warning("Updating %s failed: %s", branch, e)
                last_error = e
                continue
            if updated:
                return branch
            logger.debug("Branch %s not found for ref update", branch)

        detail = f": {last_error}" if last_error else ""
        raise SyncOperationError(
            f"Could not update any branch among {', '.join(self.branches)}{detail}"
        )
