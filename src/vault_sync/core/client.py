import base64
import logging
import threading
from typing import Any
from urllib.parse import quote

import requests

from ..config import Config
from .errors import (
    AuthenticationError,
    NotFoundError,
    RemoteError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "vault-sync-mcp"
BLOB_MODE = "100644"


class GitHubClient:
    """Thin client for the GitHub Git Data API of one repository.

    Every call is blocking; async callers wrap them with ``run_sync``.
    Each thread gets its own ``requests.Session`` so parallel blob
    fetches never share a connection pool.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.repo_url = f"{config.api_url}/repos/{config.repository}"

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"token {self.config.github_token}",
                "User-Agent": USER_AGENT,
                "Accept": "application/vnd.github.v3+json",
            }
        )
        return session

    def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            AuthenticationError: On HTTP 401.
            NotFoundError: On HTTP 404.
            RemoteError: On any other non-2xx status or a transport failure.
        """
        session = self._get_session()
        try:
            response = session.request(
                method,
                url,
                json=json,
                params=params,
                timeout=(10, self.config.request_timeout),
            )
        except requests.RequestException as e:
            raise RemoteError(f"Network error: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(
                "Invalid token - authentication failed"
            )
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {method} {url}")
        if not response.ok:
            raise RemoteError(
                f"GitHub API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def get_authenticated_user(self) -> str:
        """
        Return the login of the token's owner.
        """
        data = self._request("GET", f"{self.config.api_url}/user")
        return data["login"]

    def list_repositories(self) -> list[str]:
        """
        List ``owner/name`` of the 100 most recently updated repositories
        visible to the token.
        """
        repos = self._request(
            "GET",
            f"{self.config.api_url}/user/repos",
            params={"per_page": 100, "sort": "updated"},
        )
        return [f"{r['owner']['login']}/{r['name']}" for r in repos]

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get_ref(self, branch: str) -> str:
        """
        Return the commit SHA a branch points at.

        Raises:
            NotFoundError: If the branch does not exist.
        """
        data = self._request(
            "GET", f"{self.repo_url}/git/ref/heads/{quote(branch)}"
        )
        return data["object"]["sha"]

    def get_branch_tip(self, branch_names: list[str] | tuple[str, ...]) -> str | None:
        """Resolve the first existing branch among *branch_names*.

        Returns:
            The tip commit SHA, or ``None`` if no branch resolves (missing
            or empty repository).

        Raises:
            AuthenticationError: If the token is rejected.
            RemoteError: On any other failure.
        """
        for branch in branch_names:
            try:
                sha = self.get_ref(branch)
            except NotFoundError:
                logger.debug("Branch %s not found", branch)
                continue
            except RemoteError as e:
                # GitHub answers 409 for a repository with no commits
                if e.status_code == 409:
                    logger.info("Repository %s is empty", self.config.repository)
                    return None
                raise
            logger.debug("Resolved branch %s -> %s", branch, sha)
            return sha
        return None

    def get_recursive_tree(self, ref: str) -> list[dict[str, Any]] | None:
        """
        Return the flattened tree listing for *ref* (a commit or tree SHA,
        or a branch name), or ``None`` if it does not exist.

        Each item has ``path``, ``mode``, ``type`` and ``sha`` keys.
        """
        try:
            data = self._request(
                "GET",
                f"{self.repo_url}/git/trees/{quote(ref)}",
                params={"recursive": "1"},
            )
        except NotFoundError:
            return None
        if data.get("truncated"):
            logger.warning(
                "Tree listing for %s was truncated by GitHub; some files are missing",
                ref,
            )
        return list(data.get("tree", []))

    def get_blob(self, sha: str) -> str:
        """
        Fetch a blob by SHA and decode it as UTF-8 text.
        """
        data = self._request("GET", f"{self.repo_url}/git/blobs/{sha}")
        if data.get("encoding") == "base64":
            raw = base64.b64decode(data.get("content", "").replace("\n", ""))
            return raw.decode("utf-8", errors="replace")
        return data.get("content") or ""

    def get_commit_tree(self, commit_sha: str) -> str:
        """
        Return the tree SHA of a commit.
        """
        data = self._request(
            "GET", f"{self.repo_url}/git/commits/{commit_sha}"
        )
        return data["tree"]["sha"]

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def create_blob(self, content: str) -> str:
        """
        Upload *content* as a UTF-8 blob and return its SHA.
        """
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        data = self._request(
            "POST",
            f"{self.repo_url}/git/blobs",
            json={"content": encoded, "encoding": "base64"},
        )
        return data["sha"]

    def create_tree(
        self, base_tree: str, entries: list[dict[str, Any]]
    ) -> str:
        """
        Create a tree layered on *base_tree*.

        Args:
            base_tree: SHA of the tree to start from.
            entries: Items with ``path``, ``mode``, ``type`` and ``sha``;
                ``sha=None`` removes the path.

        Returns:
            SHA of the new tree.
        """
        data = self._request(
            "POST",
            f"{self.repo_url}/git/trees",
            json={"base_tree": base_tree, "tree": entries},
        )
        return data["sha"]

    def create_commit(
        self, tree_sha: str, parent_sha: str, message: str
    ) -> str:
        """
        Create a commit object and return its SHA.
        """
        data = self._request(
            "POST",
            f"{self.repo_url}/git/commits",
            json={
                "message": message,
                "tree": tree_sha,
                "parents": [parent_sha],
            },
        )
        return data["sha"]

    def update_ref(self, branch: str, commit_sha: str) -> bool:
        """
        Point *branch* at *commit_sha* (fast-forward only).

        Returns:
            ``True`` on success, ``False`` if the branch does not exist.
        """
        try:
            self._request(
                "PATCH",
                f"{self.repo_url}/git/refs/heads/{quote(branch)}",
                json={"sha": commit_sha},
            )
        except NotFoundError:
            return False
        return True
