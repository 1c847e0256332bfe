"""Sync result formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_diff_list`` -- one line per diff, grouped by status.
- ``format_diff_detail`` -- positional line view of one diff.
- ``format_pull_result`` / ``format_push_result`` -- post-run summaries.
- ``diffs_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from .hashing import normalize_line_endings
from .models import MatchType, SyncStatus

if TYPE_CHECKING:
    from .models import PullResult, PushResult, SyncDiff

# Display order for grouped output
STATUS_ORDER = [
    SyncStatus.ADDED,
    SyncStatus.MODIFIED,
    SyncStatus.REMOTE_MODIFIED,
    SyncStatus.REMOTE_ONLY,
    SyncStatus.DELETED,
    SyncStatus.CASE_CONFLICT_ONLY,
    SyncStatus.UNKNOWN,
]

STATUS_HINTS = {
    SyncStatus.ADDED: "push creates",
    SyncStatus.MODIFIED: "push updates remote, pull overwrites local",
    SyncStatus.REMOTE_MODIFIED: "pull overwrites local",
    SyncStatus.REMOTE_ONLY: "pull restores locally, push deletes remotely",
    SyncStatus.DELETED: "pull restores locally, push deletes remotely",
    SyncStatus.CASE_CONFLICT_ONLY: "manual resolution",
    SyncStatus.UNKNOWN: "remote content unavailable, left untouched",
}

# ------------------------------------------------------------------
# Diff list
# ------------------------------------------------------------------


def _diff_line(diff: SyncDiff) -> str:
    line = f"  {diff.path} (+{diff.additions} -{diff.deletions})"
    if diff.match_type == MatchType.CASE_CONFLICT:
        line += f" [local: {diff.observed_local_path}]"
    return line


def format_diff_list(diffs: list[SyncDiff]) -> str:
    """Format a reconciliation result grouped by status.

    Args:
        diffs: Diffs from one reconciliation pass.

    Returns:
        Multi-line formatted string.
    """
    if not diffs:
        return "Everything is in sync."

    groups: dict[SyncStatus, list[SyncDiff]] = defaultdict(list)
    for diff in diffs:
        groups[diff.status].append(diff)

    lines = [f"{len(diffs)} file(s) differ:", ""]
    for status in STATUS_ORDER:
        if status not in groups:
            continue
        lines.append(f"[{status.value}] {STATUS_HINTS[status]}")
        for diff in groups[status]:
            lines.append(_diff_line(diff))
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Diff detail
# ------------------------------------------------------------------


def _positional_lines(old: str, new: str) -> list[str]:
    old_lines = normalize_line_endings(old).split("\n")
    new_lines = normalize_line_endings(new).split("\n")
    out: list[str] = []
    for i in range(max(len(old_lines), len(new_lines))):
        num = i + 1
        if i >= len(old_lines):
            out.append(f"+{num:>5} | {new_lines[i]}")
        elif i >= len(new_lines):
            out.append(f"-{num:>5} | {old_lines[i]}")
        elif old_lines[i] != new_lines[i]:
            out.append(f"-{num:>5} | {old_lines[i]}")
            out.append(f"+{num:>5} | {new_lines[i]}")
        else:
            out.append(f" {num:>5} | {old_lines[i]}")
    return out


def format_diff_detail(diff: SyncDiff) -> str:
    """Format one diff as a positional line-by-line view.

    ``added`` shows the local text as additions, ``remote-only`` the
    remote text; modified statuses compare remote (``-``) with local
    (``+``).  This is the same index-aligned comparison used for the line
    counts, not a minimal edit script.
    """
    header = f"{diff.path} [{diff.status.value}] +{diff.additions} -{diff.deletions}"
    lines = [header]
    if diff.observed_local_path:
        lines.append(f"Local file: {diff.observed_local_path}")
    lines.append("")

    if diff.status == SyncStatus.ADDED:
        lines.extend(
            f"+{i + 1:>5} | {text}"
            for i, text in enumerate(
                normalize_line_endings(diff.local_content).split("\n")
            )
        )
    elif diff.status in (SyncStatus.REMOTE_ONLY, SyncStatus.DELETED):
        lines.append("Pull restores these lines locally; push deletes them remotely.")
        lines.extend(
            f" {i + 1:>5} | {text}"
            for i, text in enumerate(
                normalize_line_endings(diff.remote_content).split("\n")
            )
        )
    elif diff.status == SyncStatus.UNKNOWN:
        lines.append("Remote content could not be fetched; run sync_status again.")
    elif diff.status == SyncStatus.CASE_CONFLICT_ONLY:
        lines.append("Content is identical; only the path casing differs.")
    else:
        lines.append("--- remote")
        lines.append("+++ local")
        lines.extend(_positional_lines(diff.remote_content, diff.local_content))

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Executor results
# ------------------------------------------------------------------


def format_pull_result(result: PullResult) -> str:
    """Summarise a pull run."""
    if not result.processed:
        return "Nothing to pull."
    lines = [f"Pulled {result.count} file(s):"]
    lines.extend(f"  {path}" for path in result.processed)
    for notice in result.notices:
        lines.append("")
        lines.append(notice)
    if result.warnings:
        lines.append("")
        lines.extend(f"Warning: {w}" for w in result.warnings)
    return "\n".join(lines)


def format_push_result(result: PushResult) -> str:
    """Summarise a push run."""
    lines: list[str] = []
    if result.processed:
        lines.append(
            f"Pushed {result.count} file(s) to {result.branch} "
            f"as {(result.commit_sha or '')[:12]}:"
        )
        lines.extend(f"  {path}" for path in result.processed)
    else:
        lines.append("Nothing to push.")
    if result.skipped:
        lines.append("")
        lines.append("Already absent remotely, skipped:")
        lines.extend(f"  {path}" for path in result.skipped)
    if result.warnings:
        lines.append("")
        lines.extend(f"Warning: {w}" for w in result.warnings)
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def diffs_to_json(diffs: list[SyncDiff]) -> dict:
    """Convert a diff list to a structured dict for JSON serialisation.

    Content is omitted; use ``format_diff_detail`` for one file.
    """
    counts: dict[str, int] = defaultdict(int)
    items = []
    for diff in diffs:
        counts[diff.status.value] += 1
        entry: dict = {
            "path": diff.path,
            "status": diff.status.value,
            "additions": diff.additions,
            "deletions": diff.deletions,
            "match_type": diff.match_type.value,
        }
        if diff.observed_local_path:
            entry["observed_local_path"] = diff.observed_local_path
        items.append(entry)

    return {"total": len(diffs), "counts": dict(counts), "diffs": items}
