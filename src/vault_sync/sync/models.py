"""Pydantic models for the vault sync engine.

Defines the core data contracts used across all sync modules:

- ``SyncStatus``: classification of one path after reconciliation.
- ``MatchType``: how a remote path was matched to a local file.
- ``LocalChange``: one record from the local change oracle.
- ``RemoteEntry`` / ``RemoteSnapshot``: the remote tree for one pass.
- ``SyncDiff``: reconciliation output for one path.
- ``PullResult`` / ``PushResult``: outcome of an executor run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, Field, model_validator


class SyncStatus(str, Enum):
    """Per-path sync status produced by the reconciler."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOTE_MODIFIED = "remote-modified"
    REMOTE_ONLY = "remote-only"
    CASE_CONFLICT_ONLY = "case-conflict-only"
    DELETED = "deleted"
    UNKNOWN = "unknown"


class MatchType(str, Enum):
    """How the remote path was matched to a local file."""

    EXACT = "exact"
    CASE_CONFLICT = "case-conflict"
    NONE = "none"


class ChangeStatus(str, Enum):
    """Status reported by the local change oracle."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


# Statuses the pull executor acts on
PULLABLE_STATUSES = frozenset(
    {
        SyncStatus.REMOTE_MODIFIED,
        SyncStatus.CASE_CONFLICT_ONLY,
        SyncStatus.MODIFIED,
        SyncStatus.REMOTE_ONLY,
        SyncStatus.DELETED,
    }
)

# Statuses the push executor acts on
PUSHABLE_STATUSES = frozenset(
    {
        SyncStatus.ADDED,
        SyncStatus.MODIFIED,
        SyncStatus.REMOTE_ONLY,
        SyncStatus.DELETED,
    }
)

# Pushable statuses that remove the path remotely
DELETION_STATUSES = frozenset({SyncStatus.REMOTE_ONLY, SyncStatus.DELETED})


class LocalChange(BaseModel):
    """A locally changed document path.

    Attributes:
        path: Vault-relative path.
        status: Best-effort change status.
    """

    path: str
    status: ChangeStatus

    model_config = {"frozen": True}


class RemoteEntry(BaseModel):
    """One tracked document in the remote tree.

    Attributes:
        path: Repository-relative path.
        hash: Blob SHA reported by the tree listing.
        content: Decoded blob text, or ``None`` if fetching it failed.
    """

    path: str
    hash: str
    content: str | None = None

    model_config = {"frozen": True}

    @property
    def content_known(self) -> bool:
        return self.content is not None


class RemoteSnapshot(Mapping[str, RemoteEntry]):
    """Read-only mapping of path to ``RemoteEntry`` for one pass.

    Args:
        entries: Entries to index by path.
        commit_sha: Branch tip the listing was taken from, ``None`` when
            the branch or repository does not exist.
    """

    def __init__(
        self,
        entries: list[RemoteEntry] | None = None,
        commit_sha: str | None = None,
    ) -> None:
        self._entries = MappingProxyType(
            {e.path: e for e in entries or []}
        )
        self.commit_sha = commit_sha

    @classmethod
    def empty(cls) -> RemoteSnapshot:
        return cls()

    def __getitem__(self, path: str) -> RemoteEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RemoteSnapshot({len(self)} entries, commit={self.commit_sha!r})"


class SyncDiff(BaseModel):
    """Reconciliation result for one path.

    Attributes:
        path: Unique key within one pass (remote path for Pass B results).
        status: Sync classification.
        local_content: Local text, ``""`` when absent.
        remote_content: Remote text, ``""`` when absent or unknown.
        remote_hash: Remote blob SHA, ``""`` without a remote counterpart.
        additions: Display-only added line count.
        deletions: Display-only deleted line count.
        match_type: How the remote path matched a local file.
        observed_local_path: Actual local path when the match differs in
            case only.
    """

    path: str
    status: SyncStatus
    local_content: str = ""
    remote_content: str = ""
    remote_hash: str = ""
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    match_type: MatchType = MatchType.EXACT
    observed_local_path: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_observed_path(self) -> SyncDiff:
        has_path = self.observed_local_path is not None
        if has_path != (self.match_type == MatchType.CASE_CONFLICT):
            raise ValueError(
                "observed_local_path must be set exactly when match_type is case-conflict"
            )
        return self

    @property
    def is_deletion(self) -> bool:
        """True when pushing this diff removes the path remotely."""
        return self.status in DELETION_STATUSES


class PullResult(BaseModel):
    """Outcome of a pull run.

    Attributes:
        processed: Paths written locally (including conflict siblings).
        notices: Manual-resolution messages for the user.
        warnings: Non-fatal problems, such as a failed local commit.
    """

    processed: list[str] = []
    notices: list[str] = []
    warnings: list[str] = []

    model_config = {"frozen": True}

    @property
    def count(self) -> int:
        return len(self.processed)


class PushResult(BaseModel):
    """Outcome of a push run.

    Attributes:
        processed: Paths included in the new commit.
        commit_sha: SHA of the new remote commit, ``None`` if nothing
            was pushed.
        branch: Branch that was advanced.
        skipped: Deletions skipped because the path was already absent
            remotely.
        warnings: Non-fatal problems, such as a failed local commit.
    """

    processed: list[str] = []
    commit_sha: str | None = None
    branch: str | None = None
    skipped: list[str] = []
    warnings: list[str] = []

    model_config = {"frozen": True}

    @property
    def count(self) -> int:
        return len(self.processed)
