"""Local change detection.

``LocalChangeOracle`` tries an ordered list of strategies and returns the
first one that succeeds:

1. ``GitStatusStrategy`` -- ``git status`` of the vault work tree.
2. ``FullScanStrategy`` -- every tracked document reported as modified.

A strategy signals that it cannot run by raising ``LocalVcsUnavailable``
(or ``LocalVcsError``); the oracle logs it and moves on.  Only documents
with the tracked extension are reported.
"""

from __future__ import annotations

import logging
from typing import Protocol

from vault_sync.core.errors import LocalVcsError, LocalVcsUnavailable
from vault_sync.sync.local_repo import LocalRepository
from vault_sync.sync.models import ChangeStatus, LocalChange
from vault_sync.sync.store import VaultStore

logger = logging.getLogger(__name__)


class ChangeStrategy(Protocol):
    name: str

    def list_changes(self) -> list[LocalChange]: ...


def status_from_porcelain(code: str) -> ChangeStatus | None:
    """Map a porcelain ``XY`` code to a change status.

    Returns ``None`` for ignored entries.
    """
    if code == "!!":
        return None
    if code == "??":
        return ChangeStatus.ADDED
    if "D" in code:
        return ChangeStatus.DELETED
    if code[0] == "A":
        return ChangeStatus.ADDED
    return ChangeStatus.MODIFIED


class GitStatusStrategy:
    """Changed paths according to the local git work tree."""

    name = "git-status"

    def __init__(self, repo: LocalRepository, store: VaultStore) -> None:
        self.repo = repo
        self.store = store

    def list_changes(self) -> list[LocalChange]:
        changes: list[LocalChange] = []
        for code, path in self.repo.status():
            status = status_from_porcelain(code)
            if status is None or not self.store.is_tracked(path):
                continue
            changes.append(LocalChange(path=path, status=status))
        return changes


class FullScanStrategy:
    """Every tracked document, reported as modified."""

    name = "full-scan"

    def __init__(self, store: VaultStore) -> None:
        self.store = store

    def list_changes(self) -> list[LocalChange]:
        return [
            LocalChange(path=ref.path, status=ChangeStatus.MODIFIED)
            for ref in self.store.list_documents()
        ]


class LocalChangeOracle:
    """Report locally changed documents using the first working strategy.

    Args:
        strategies: Strategies in the order they should be tried.
    """

    def __init__(self, strategies: list[ChangeStrategy]) -> None:
        if not strategies:
            raise ValueError("At least one change strategy is required")
        self.strategies = strategies

    @classmethod
    def for_vault(
        cls, store: VaultStore, repo: LocalRepository
    ) -> LocalChangeOracle:
        """Git status first, full scan as fallback."""
        return cls([GitStatusStrategy(repo, store), FullScanStrategy(store)])

    def list_changes(self) -> list[LocalChange]:
        """Return one record per changed tracked path."""
        for strategy in self.strategies:
            try:
                changes = strategy.list_changes()
            except (LocalVcsUnavailable, LocalVcsError) as exc:
                logger.warning(
                    "Change detection via %s unavailable, falling back: %s",
                    strategy.name,
                    exc,
                )
                continue

            seen: set[str] = set()
            unique: list[LocalChange] = []
            for change in changes:
                if change.path not in seen:
                    seen.add(change.path)
                    unique.append(change)
            logger.info(
                "%s reported %d changed document(s)",
                strategy.name,
                len(unique),
            )
            return unique

        logger.warning("No change detection strategy succeeded")
        return []
