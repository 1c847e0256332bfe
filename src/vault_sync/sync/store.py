"""Filesystem-backed local document store.

Documents are addressed by ``/``-separated paths relative to the vault
root.  Lookups by path are case-sensitive even on case-insensitive
filesystems; ``find_case_insensitive`` is the only place where casing is
ignored.  Hidden directories (``.git``, ``.obsidian``, ...) are never
listed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from vault_sync.file_handler import (
    read_file_with_encoding,
    validate_vault_path,
    write_file,
)

logger = logging.getLogger(__name__)


def is_hidden_path(path: str) -> bool:
    """True when any segment of *path* starts with a dot (``.git``, ``.github``)."""
    return any(part.startswith(".") for part in path.split("/"))


@dataclass(frozen=True)
class DocumentRef:
    """Handle for a file that exists in the vault."""

    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


class VaultStore:
    """Read, create, modify and list documents under *root*.

    Args:
        root: Vault directory.
        extension: Tracked document extension (``.md`` by default).
    """

    def __init__(self, root: Path, extension: str = ".md") -> None:
        self.root = Path(root).resolve()
        self.extension = extension

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def list_all(self) -> list[DocumentRef]:
        """Every file in the vault, sorted by path."""
        refs: list[DocumentRef] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if not is_hidden_path(d)]
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            for filename in filenames:
                rel = filename if rel_dir == "." else f"{rel_dir}/{filename}"
                refs.append(DocumentRef(rel))
        refs.sort(key=lambda r: r.path)
        return refs

    def list_documents(self) -> list[DocumentRef]:
        """Files carrying the tracked extension."""
        return [r for r in self.list_all() if self.is_tracked(r.path)]

    def is_tracked(self, path: str) -> bool:
        """Tracked extension, outside hidden directories."""
        return path.endswith(self.extension) and not is_hidden_path(path)

    def get_by_path(self, path: str) -> DocumentRef | None:
        """Return a ref if a file exists at exactly *path* (case-sensitive)."""
        try:
            abs_path = validate_vault_path(self.root, path)
        except ValueError:
            return None
        if not abs_path.is_file():
            return None
        if not self._exact_case(path):
            return None
        return DocumentRef(path)

    def find_case_insensitive(self, path: str) -> DocumentRef | None:
        """Return a file whose path equals *path* ignoring case but not exactly."""
        target = path.lower()
        for ref in self.list_all():
            if ref.path.lower() == target and ref.path != path:
                return ref
        return None

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def read(self, ref: DocumentRef | str) -> str:
        """Return the text of a document.

        Raises:
            FileNotFoundError: If the document does not exist.
        """
        path = ref.path if isinstance(ref, DocumentRef) else ref
        abs_path = validate_vault_path(self.root, path)
        content, encoding = read_file_with_encoding(abs_path)
        if encoding != "utf-8":
            logger.debug("Read %s as %s", path, encoding)
        return content

    def create(self, path: str, text: str) -> DocumentRef:
        """Create a new document.

        Raises:
            FileExistsError: If a file already exists at *path*.
        """
        abs_path = validate_vault_path(self.root, path)
        if abs_path.exists():
            raise FileExistsError(f"File already exists: {path}")
        write_file(abs_path, text)
        logger.debug("Created %s", path)
        return DocumentRef(path)

    def modify(self, ref: DocumentRef, text: str) -> None:
        """Replace the content of an existing document."""
        abs_path = validate_vault_path(self.root, ref.path)
        if not abs_path.is_file():
            raise FileNotFoundError(f"File not found: {ref.path}")
        write_file(abs_path, text)
        logger.debug("Modified %s", ref.path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _exact_case(self, path: str) -> bool:
        """Check every component of *path* against the real directory entries."""
        current = self.root
        for part in path.split("/"):
            try:
                entries = os.listdir(current)
            except OSError:
                return False
            if part not in entries:
                return False
            current = current / part
        return True
