"""Local git binding used for change detection and bookkeeping commits.

Talks to the ``git`` binary through ``subprocess``.  A missing binary, a
timeout, or a vault outside any work tree raise ``LocalVcsUnavailable``
so the change oracle can fall back to a full scan; a command that runs
but fails raises ``LocalVcsError``.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from vault_sync.core.errors import LocalVcsError, LocalVcsUnavailable

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30
AUTHOR_NAME = "Vault Sync"
AUTHOR_EMAIL = "vault-sync@local"


class LocalRepository:
    """Git operations scoped to the vault directory.

    Args:
        root: Vault directory (may be a subdirectory of the work tree).
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_work_tree(self) -> bool:
        """Return ``True`` if the vault lives inside a git work tree."""
        try:
            result = self._run_git(["rev-parse", "--is-inside-work-tree"]).stdout
        except (LocalVcsUnavailable, LocalVcsError):
            return False
        return result.strip() == "true"

    def status(self) -> list[tuple[str, str]]:
        """Return ``(XY, path)`` pairs for changed paths under the vault.

        Paths are vault-relative.  A rename yields two records: the new
        path as ``"A "`` and the old path as ``" D"``.

        Raises:
            LocalVcsUnavailable: If git is missing or the vault is not a
                work tree.
            LocalVcsError: If ``git status`` fails.
        """
        if not self.is_work_tree():
            raise LocalVcsUnavailable(f"{self.root} is not inside a git work tree")

        prefix = self._run_git(["rev-parse", "--show-prefix"]).stdout.strip()
        raw = self._run_git(
            [
                "status",
                "--porcelain=v1",
                "-z",
                "--untracked-files=all",
                "--",
                ".",
            ]
        ).stdout

        records: list[tuple[str, str]] = []
        fields = raw.split("\0")
        i = 0
        while i < len(fields):
            item = fields[i]
            i += 1
            if len(item) < 4:
                continue
            code, path = item[:2], item[3:]
            if code[0] in ("R", "C"):
                # -z puts the source path in the next field
                old_path = fields[i] if i < len(fields) else ""
                i += 1
                records.append(("A ", path))
                if code[0] == "R" and old_path:
                    records.append((" D", old_path))
                continue
            records.append((code, path))

        return [
            (code, path[len(prefix):])
            for code, path in records
            if path.startswith(prefix)
        ]

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------

    def commit(self, paths: list[str], message: str) -> str | None:
        """Stage *paths* and commit them with *message*.

        Returns:
            The new commit SHA, or ``None`` if nothing was staged.

        Raises:
            LocalVcsUnavailable: If git is missing or the vault is not a
                work tree.
            LocalVcsError: If staging or committing fails.
        """
        if not paths:
            return None
        if not self.is_work_tree():
            raise LocalVcsUnavailable(f"{self.root} is not inside a git work tree")

        self._run_git(["add", "-A", "--", *paths])

        staged = self._run_git(["diff", "--cached", "--quiet"], ok_codes=(0, 1))
        if staged.returncode == 0:
            logger.info("Nothing staged after sync, skipping local commit")
            return None

        self._run_git(
            [
                "commit",
                "--no-verify",
                "-m",
                message,
                f"--author={AUTHOR_NAME} <{AUTHOR_EMAIL}>",
            ]
        )
        sha = self._run_git(["rev-parse", "HEAD"]).stdout.strip()
        logger.info("Committed %d path(s) locally as %s", len(paths), sha[:12])
        return sha

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_git(
        self,
        args: list[str],
        ok_codes: tuple[int, ...] = (0,),
    ) -> subprocess.CompletedProcess[str]:
        try:
            result = subprocess.run(
                [
                    "git",
                    "-c",
                    f"user.name={AUTHOR_NAME}",
                    "-c",
                    f"user.email={AUTHOR_EMAIL}",
                    *args,
                ],
                cwd=str(self.root),
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT,
            )
        except FileNotFoundError as exc:
            raise LocalVcsUnavailable("git executable not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise LocalVcsUnavailable(
                f"git {args[0]} timed out after {GIT_TIMEOUT}s"
            ) from exc

        if result.returncode not in ok_codes:
            raise LocalVcsError(
                f"git {args[0]} failed ({result.returncode}): "
                f"{result.stderr.strip()}"
            )
        return result
