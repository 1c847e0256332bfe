"""Commit message generation shared by pull and push."""

from __future__ import annotations


def commit_message(file_count: int, device_label: str | None = None) -> str:
    """Build the sync commit message.

    >>> commit_message(3, "laptop")
    'sync: laptop updated 3 files'
    >>> commit_message(1, "")
    'sync: updated 1 file'
    """
    noun = "file" if file_count == 1 else "files"
    label = (device_label or "").strip()
    if label:
        return f"sync: {label} updated {file_count} {noun}"
    return f"sync: updated {file_count} {noun}"
