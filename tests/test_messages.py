"""Tests for the shared sync commit message."""

import pytest

from vault_sync.sync.messages import commit_message


@pytest.mark.parametrize(
    ("count", "label", "expected"),
    [
        (3, "laptop", "sync: laptop updated 3 files"),
        (1, "", "sync: updated 1 file"),
        (1, "phone", "sync: phone updated 1 file"),
        (0, None, "sync: updated 0 files"),
        (2, "   ", "sync: updated 2 files"),
        (5, "  desk pc ", "sync: desk pc updated 5 files"),
    ],
)
def test_commit_message(count, label, expected):
    """Label is optional and stripped; 'file' is singular only for one."""
    assert commit_message(count, label) == expected


def test_label_defaults_to_none():
    assert commit_message(4) == "sync: updated 4 files"
