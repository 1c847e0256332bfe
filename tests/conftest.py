"""Shared pytest fixtures for vault-sync-mcp tests."""

import hashlib
from pathlib import Path
import pytest
from dotenv import load_dotenv

from vault_sync.config import Config
from vault_sync.core.errors import (
    LocalVcsError,
    LocalVcsUnavailable,
    NotFoundError,
    RemoteError,
)
from vault_sync.sync.hashing import blob_hash
from vault_sync.sync.store import VaultStore

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a real GitHub repository",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a real GitHub repository"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeGitHubClient:
    """In-memory stand-in for ``GitHubClient`` backed by real blob hashes.

    ``calls`` records the name of every API method invoked, in order.
    """

    def __init__(self, files: dict[str, str] | None = None, branch: str = "main"):
        self.blobs: dict[str, str] = {}
        self.trees: dict[str, dict[str, str]] = {}
        self.commits: dict[str, tuple[str, str | None, str]] = {}
        self.refs: dict[str, str] = {}
        self.calls: list[str] = []
        self.failing_blobs: set[str] = set()
        self.failing_refs: set[str] = set()
        self.login = "octocat"
        self.repositories = ["octocat/notes", "octocat/other"]
        if files is not None:
            self.seed(files, branch)

    # -- setup helpers --------------------------------------------------

    def seed(self, files: dict[str, str], branch: str = "main") -> str:
        tree = {path: self._store_blob(text) for path, text in files.items()}
        parent = self.refs.get(branch)
        commit = self._store_commit(self._store_tree(tree), parent, "seed")
        self.refs[branch] = commit
        return commit

    def files(self, branch: str = "main") -> dict[str, str]:
        tree_sha = self.commits[self.refs[branch]][0]
        return {p: self.blobs[s] for p, s in self.trees[tree_sha].items()}

    def _store_blob(self, text: str) -> str:
        sha = blob_hash(text)
        self.blobs[sha] = text
        return sha

    def _store_tree(self, entries: dict[str, str]) -> str:
        sha = hashlib.sha1(repr(sorted(entries.items())).encode()).hexdigest()
        self.trees[sha] = dict(entries)
        return sha

    def _store_commit(self, tree: str, parent: str | None, message: str) -> str:
        sha = hashlib.sha1(
            f"{tree}:{parent}:{message}:{len(self.commits)}".encode()
        ).hexdigest()
        self.commits[sha] = (tree, parent, message)
        return sha

    # -- client API -----------------------------------------------------

    def get_authenticated_user(self) -> str:
        self.calls.append("get_authenticated_user")
        return self.login

    def list_repositories(self) -> list[str]:
        self.calls.append("list_repositories")
        return list(self.repositories)

    def get_branch_tip(self, branch_names) -> str | None:
        self.calls.append("get_branch_tip")
        for name in branch_names:
            if name in self.refs:
                return self.refs[name]
        return None

    def get_recursive_tree(self, ref: str):
        self.calls.append("get_recursive_tree")
        commit = self.commits.get(ref)
        if commit is None:
            return None
        items = []
        dirs: set[str] = set()
        for path, sha in sorted(self.trees[commit[0]].items()):
            parts = path.split("/")
            for i in range(1, len(parts)):
                dirs.add("/".join(parts[:i]))
            items.append({"path": path, "mode": "100644", "type": "blob", "sha": sha})
        items.extend(
            {"path": d, "mode": "040000", "type": "tree", "sha": "0" * 40}
            for d in sorted(dirs)
        )
        return items

    def get_blob(self, sha: str) -> str:
        self.calls.append("get_blob")
        if sha in self.failing_blobs:
            raise RemoteError("GitHub API error: 502 Bad Gateway", status_code=502)
        if sha not in self.blobs:
            raise NotFoundError(f"Not found: blob {sha}")
        return self.blobs[sha]

    def get_commit_tree(self, commit_sha: str) -> str:
        self.calls.append("get_commit_tree")
        return self.commits[commit_sha][0]

    def create_blob(self, content: str) -> str:
        self.calls.append("create_blob")
        return self._store_blob(content)

    def create_tree(self, base_tree: str, entries: list[dict]) -> str:
        self.calls.append("create_tree")
        tree = dict(self.trees[base_tree])
        for entry in entries:
            if entry["sha"] is None:
                tree.pop(entry["path"], None)
            else:
                tree[entry["path"]] = entry["sha"]
        return self._store_tree(tree)

    def create_commit(self, tree_sha: str, parent_sha: str, message: str) -> str:
        self.calls.append("create_commit")
        return self._store_commit(tree_sha, parent_sha, message)

    def update_ref(self, branch: str, commit_sha: str) -> bool:
        self.calls.append("update_ref")
        if branch in self.failing_refs:
            raise RemoteError("GitHub API error: 422 Unprocessable Entity", status_code=422)
        if branch not in self.refs:
            return False
        self.refs[branch] = commit_sha
        return True


class FakeLocalRepository:
    """In-memory stand-in for ``LocalRepository``.

    ``changes`` is the ``(XY, path)`` list returned by ``status()``;
    committing removes the committed paths from it.  Set ``available`` to
    ``False`` to simulate a vault outside any work tree.
    """

    def __init__(self, changes: list[tuple[str, str]] | None = None):
        self.changes = list(changes or [])
        self.available = True
        self.fail_commit = False
        self.commits: list[tuple[list[str], str]] = []

    def status(self) -> list[tuple[str, str]]:
        if not self.available:
            raise LocalVcsUnavailable("not inside a git work tree")
        return list(self.changes)

    def commit(self, paths: list[str], message: str) -> str | None:
        if not self.available:
            raise LocalVcsUnavailable("not inside a git work tree")
        if self.fail_commit:
            raise LocalVcsError("git commit failed (1): hook rejected")
        self.commits.append((list(paths), message))
        self.changes = [(c, p) for c, p in self.changes if p not in paths]
        return "f" * 40


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def vault(tmp_path) -> Path:
    """Empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_note(vault):
    """Factory fixture writing a file into the vault, bytes exactly as given."""

    def _write(path: str, content: str) -> Path:
        target = vault / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content.encode("utf-8"))
        return target

    return _write


@pytest.fixture
def store(vault) -> VaultStore:
    return VaultStore(vault)


@pytest.fixture
def mock_config(vault):
    """Config pointing at the test vault."""
    return Config(
        github_token="ghp_testtoken",
        repository="octocat/notes",
        vault_root=str(vault),
        device_name="laptop",
    )


@pytest.fixture
def fake_github():
    return FakeGitHubClient()


@pytest.fixture
def fake_repo():
    return FakeLocalRepository()

