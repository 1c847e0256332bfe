"""Content hashing and normalisation helpers.

``blob_hash`` reproduces the object ID the remote store assigns to a blob,
``SHA-1("blob <size>\\0" + data)``, so an unchanged file can be recognised
without fetching or comparing its content.  A mismatch is only a hint: the
reconciler always re-compares normalised content before reporting a
change.
"""

from __future__ import annotations

import hashlib


def blob_hash(content: str) -> str:
    """Return the git blob SHA-1 hex digest of *content* encoded as UTF-8."""
    data = content.encode("utf-8")
    hasher = hashlib.sha1(f"blob {len(data)}\0".encode())
    hasher.update(data)
    return hasher.hexdigest()


def normalize_line_endings(text: str) -> str:
    """Convert ``\\r\\n`` and lone ``\\r`` line endings to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def same_content(local: str, remote: str) -> bool:
    """True when the two texts are equal after line-ending normalisation."""
    return normalize_line_endings(local) == normalize_line_endings(remote)


def line_count(text: str) -> int:
    """Number of ``\\n``-separated lines; an empty text counts as one line."""
    return len(normalize_line_endings(text).split("\n"))
