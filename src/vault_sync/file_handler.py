"""Filesystem access for vault documents.

Vault paths are ``/``-separated and relative to the vault root, the same
form GitHub tree entries use.  Text is read and written as bytes so line
endings survive a round trip untouched.
"""

from pathlib import Path, PurePosixPath

from charset_normalizer import from_bytes


def validate_vault_path(root: Path, rel_path: str) -> Path:
    """Map vault path *rel_path* to a file under the resolved *root*.

    Raises:
        ValueError: For an empty or absolute path, a ``..`` segment, or a
            path that leaves the vault through a symlink.
    """
    if not rel_path or not rel_path.strip():
        raise ValueError("Document path cannot be empty")
    parts = PurePosixPath(rel_path)
    if parts.is_absolute():
        raise ValueError(f"Document path must be relative: {rel_path}")
    if ".." in parts.parts:
        raise ValueError(f"Document path must not contain '..': {rel_path}")

    target = root.joinpath(*parts.parts).resolve()
    if not target.is_relative_to(root):
        raise ValueError(
            f"Document path is outside the vault: {target} not under {root}"
        )
    return target


def decode_bytes(raw: bytes) -> tuple[str, str]:
    """Decode *raw*, trying UTF-8 before charset detection.

    Returns:
        ``(text, encoding)``; ASCII is reported as ``utf-8``.
    """
    try:
        return raw.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        pass

    match = from_bytes(raw).best()
    if match is None:
        return raw.decode("utf-8", errors="replace"), "utf-8"
    encoding = "utf-8" if match.encoding == "ascii" else match.encoding
    return str(match), encoding


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read *path* as text, returning ``(text, encoding)``."""
    return decode_bytes(path.read_bytes())


def write_file(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Write *content* to *path*, creating missing parent directories.

    Returns:
        Number of bytes written.
    """
    data = content.encode(encoding)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return len(data)
