"""Sync controller: session state and mutual exclusion around the engine.

The engine functions are stateless; everything that survives between
calls (configuration, clients, the last diff list) lives in an explicit
``SyncSession``.  ``SyncController`` runs one reconciliation, pull or push
at a time and refreshes the diff list after every pull or push.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from vault_sync.config import Config
from vault_sync.core.async_utils import run_sync
from vault_sync.core.client import GitHubClient
from vault_sync.core.errors import SyncInProgressError, VaultSyncError
from vault_sync.sync.fetcher import RemoteTreeFetcher
from vault_sync.sync.local_repo import LocalRepository
from vault_sync.sync.models import (
    PULLABLE_STATUSES,
    PUSHABLE_STATUSES,
    PullResult,
    PushResult,
    SyncDiff,
    SyncStatus,
)
from vault_sync.sync.oracle import LocalChangeOracle
from vault_sync.sync.pull import PullExecutor
from vault_sync.sync.push import PushExecutor
from vault_sync.sync.reconciler import reconcile
from vault_sync.sync.store import VaultStore

logger = logging.getLogger(__name__)


@dataclass
class SyncSession:
    """Everything one vault/repository pairing needs between calls.

    Attributes:
        config: Validated configuration.
        client: GitHub client for ``config.repository``.
        store: Local document store at ``config.vault_path``.
        repo: Local git binding at the same root.
        diffs: Result of the last reconciliation pass.
    """

    config: Config
    client: GitHubClient
    store: VaultStore
    repo: LocalRepository
    diffs: list[SyncDiff] = field(default_factory=list)

    @classmethod
    def from_config(
        cls, config: Config, client: GitHubClient | None = None
    ) -> SyncSession:
        root = config.vault_path
        return cls(
            config=config,
            client=client or GitHubClient(config),
            store=VaultStore(root, extension=config.extension),
            repo=LocalRepository(root),
        )


class SyncController:
    """Run reconciliation, pull and push for one session, one at a time.

    Args:
        session: Session to operate on.
    """

    def __init__(self, session: SyncSession) -> None:
        self.session = session
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def pull_enabled(self) -> bool:
        return not self._busy and any(
            d.status in PULLABLE_STATUSES for d in self.session.diffs
        )

    @property
    def push_enabled(self) -> bool:
        return not self._busy and any(
            d.status in PUSHABLE_STATUSES for d in self.session.diffs
        )

    @contextmanager
    def _exclusive(self, action: str) -> Iterator[None]:
        if self._busy:
            raise SyncInProgressError(
                f"Cannot {action}: another sync operation is still running"
            )
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # ------------------------------------------------------------------
    # Selection helpers
    # ------------------------------------------------------------------

    def get_diff(self, path: str) -> SyncDiff | None:
        """Diff for *path* from the last pass, if any."""
        for diff in self.session.diffs:
            if diff.path == path:
                return diff
        return None

    def select(
        self,
        statuses: Iterable[SyncStatus],
        paths: Iterable[str] | None = None,
    ) -> list[SyncDiff]:
        """Diffs from the last pass with one of *statuses*, optionally by path."""
        wanted = set(statuses)
        selected = [d for d in self.session.diffs if d.status in wanted]
        if paths is not None:
            path_set = set(paths)
            selected = [d for d in selected if d.path in path_set]
        return selected

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def run_reconciliation(self) -> list[SyncDiff]:
        """Compare the vault with the remote branch and store the diffs."""
        with self._exclusive("reconcile"):
            return await self._reconcile()

    async def run_pull(self, diffs: list[SyncDiff] | None = None) -> PullResult:
        """Pull *diffs*, or every pullable diff of the last pass."""
        with self._exclusive("pull"):
            selected = diffs if diffs is not None else self.select(PULLABLE_STATUSES)
            executor = PullExecutor(
                self.session.store,
                self.session.repo,
                self.session.config.device_name,
            )
            result = await run_sync(executor.pull, selected)
            warning = await self._refresh()
            if warning:
                result = result.model_copy(
                    update={"warnings": [*result.warnings, warning]}
                )
            return result

    async def run_push(self, diffs: list[SyncDiff] | None = None) -> PushResult:
        """Push *diffs*, or every pushable diff of the last pass."""
        with self._exclusive("push"):
            selected = diffs if diffs is not None else self.select(PUSHABLE_STATUSES)
            executor = PushExecutor(
                self.session.client,
                self.session.repo,
                self.session.config.branches,
                self.session.config.device_name,
            )
            result = await executor.push(selected)
            warning = await self._refresh()
            if warning:
                result = result.model_copy(
                    update={"warnings": [*result.warnings, warning]}
                )
            return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _reconcile(self) -> list[SyncDiff]:
        session = self.session
        oracle = LocalChangeOracle.for_vault(session.store, session.repo)
        fetcher = RemoteTreeFetcher(
            session.client, session.config.branches, session.config.extension
        )

        changes = await run_sync(oracle.list_changes)
        snapshot = await fetcher.fetch_tree()
        diffs = await run_sync(
            reconcile, changes, snapshot, session.store, session.config.extension
        )
        session.diffs = diffs
        return diffs

    async def _refresh(self) -> str | None:
        """Re-run reconciliation after a pull or push; return a warning on failure."""
        try:
            await self._reconcile()
        except VaultSyncError as e:
            logger.warning("Refreshing sync status failed: %s", e)
            self.session.diffs = []
            return f"Refreshing sync status failed: {e}"
        return None
