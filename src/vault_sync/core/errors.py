"""Exception hierarchy shared by the client, the sync engine and the MCP layer.

Remote outcomes are kept distinguishable at the client boundary
(authentication failure, not-found, generic failure) so each caller can
decide whether a not-found is "empty" or an error.
"""


class VaultSyncError(Exception):
    """Base class for all vault-sync errors."""


class AuthenticationError(VaultSyncError):
    """The GitHub token was rejected (HTTP 401)."""


class NotFoundError(VaultSyncError):
    """The requested repository, ref or object does not exist (HTTP 404)."""


class RemoteError(VaultSyncError):
    """Any other GitHub API failure, including network errors.

    Attributes:
        status_code: HTTP status code, or ``None`` for transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LocalVcsUnavailable(VaultSyncError):
    """The local git binary is missing or the vault is not a work tree."""


class LocalVcsError(VaultSyncError):
    """A local git command ran but failed."""


class SyncOperationError(VaultSyncError):
    """A pull or push batch was aborted.

    Attributes:
        path: Document path that caused the abort, if any.
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class SyncInProgressError(VaultSyncError):
    """Another reconciliation, pull or push is already running."""
