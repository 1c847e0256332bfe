"""Remote tree snapshot construction.

One recursive tree request lists the tracked branch; blob contents of
every tracked document are then fetched concurrently and joined into an
immutable ``RemoteSnapshot``.

A blob that cannot be fetched (not found, HTTP or network error) stays in
the snapshot with ``content=None`` so the reconciler can report it as
unknown instead of guessing.  An authentication failure aborts the whole
pass.
"""

from __future__ import annotations

import logging
from typing import Any

from vault_sync.core.async_utils import gather_all, run_sync
from vault_sync.core.client import GitHubClient
from vault_sync.core.errors import NotFoundError, RemoteError
from vault_sync.sync.models import RemoteEntry, RemoteSnapshot
from vault_sync.sync.store import is_hidden_path

logger = logging.getLogger(__name__)


class RemoteTreeFetcher:
    """Build remote snapshots of the tracked branch.

    Args:
        client: GitHub client bound to the repository.
        branches: Branch names to try, in order.
        extension: Tracked document extension.
    """

    def __init__(
        self,
        client: GitHubClient,
        branches: tuple[str, ...] | list[str] = ("main", "master"),
        extension: str = ".md",
    ) -> None:
        self.client = client
        self.branches = tuple(branches)
        self.extension = extension

    async def list_paths(self) -> tuple[str | None, list[dict[str, Any]]]:
        """Return the branch tip and its tracked blob entries, without content.

        Returns:
            ``(commit_sha, entries)``; ``(None, [])`` when no branch exists.
        """
        tip = await run_sync(self.client.get_branch_tip, self.branches)
        if tip is None:
            logger.info("No branch among %s exists, remote is empty", self.branches)
            return None, []

        tree = await run_sync(self.client.get_recursive_tree, tip)
        if tree is None:
            logger.info("Tree for %s not found, remote is empty", tip[:12])
            return tip, []

        entries = [
            item
            for item in tree
            if item.get("type") == "blob"
            and item.get("path", "").endswith(self.extension)
            and not is_hidden_path(item["path"])
        ]
        return tip, entries

    async def fetch_tree(self) -> RemoteSnapshot:
        """Fetch the listing and every tracked blob into a snapshot."""
        tip, items = await self.list_paths()
        if tip is None:
            return RemoteSnapshot.empty()

        entries = await gather_all([self._fetch_entry(item) for item in items])
        unknown = sum(1 for e in entries if not e.content_known)
        if unknown:
            logger.warning(
                "%d of %d remote blob(s) could not be fetched", unknown, len(entries)
            )
        logger.info("Fetched remote snapshot: %d document(s) at %s", len(entries), tip[:12])
        return RemoteSnapshot(entries, commit_sha=tip)

    async def _fetch_entry(self, item: dict[str, Any]) -> RemoteEntry:
        path, sha = item["path"], item["sha"]
        try:
            content = await run_sync(self.client.get_blob, sha)
        except (NotFoundError, RemoteError) as e:
            logger.warning("Failed to fetch blob for %s: %s", path, e)
            return RemoteEntry(path=path, hash=sha, content=None)
        return RemoteEntry(path=path, hash=sha, content=content)
