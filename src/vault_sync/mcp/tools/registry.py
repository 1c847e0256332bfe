"""Tool registry with permission filtering.

Each MCP tool is declared once as a ``ToolSpec``: its schema, the
permissions it needs and an async handler taking ``(controller, args)``.
A ``ToolRegistry`` keeps the specs a permission set allows and routes
calls to them, turning exceptions into error results so a failing tool
never takes the server down.

Permission names:

    REPO_READ    read the remote repository (status, diff, repository list)
    REPO_WRITE   create commits on the remote branch (push)
    VAULT_WRITE  write files into the local vault (pull)
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import mcp.types as types

from ...core.errors import VaultSyncError
from ...sync.controller import SyncController
from .errors import build_error_response, translate_sync_error

logger = logging.getLogger(__name__)

KNOWN_PERMISSIONS = frozenset({"REPO_READ", "REPO_WRITE", "VAULT_WRITE"})

Handler = Callable[[SyncController, dict], Awaitable[types.CallToolResult]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """One MCP tool: definition, required permissions and handler.

    An empty ``permissions`` set marks a tool that is always exposed.
    """

    tool: types.Tool
    permissions: frozenset[str]
    handler: Handler

    @property
    def name(self) -> str:
        return self.tool.name

    def allowed_by(self, granted: frozenset[str] | None) -> bool:
        """True when *granted* covers this tool; ``None`` grants everything."""
        return granted is None or self.permissions <= granted


class ToolRegistry:
    """Tools exposed by one server instance, keyed by name."""

    def __init__(
        self,
        specs: Iterable[ToolSpec],
        allowed_permissions: frozenset[str] | None = None,
    ):
        specs = list(specs)
        self.allowed_permissions = allowed_permissions
        self._specs = {
            spec.name: spec for spec in specs if spec.allowed_by(allowed_permissions)
        }
        self.hidden = sorted(s.name for s in specs if s.name not in self._specs)
        if self.hidden:
            logger.debug("Tools hidden by permissions: %s", ", ".join(self.hidden))

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def list_tools(self) -> list[types.Tool]:
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        controller: SyncController,
    ) -> types.CallToolResult:
        """Run tool *name* and return its result.

        Sync failures and rejected arguments come back as error results
        (``isError=True``); only an unknown or hidden tool name raises.

        Raises:
            ValueError: If *name* is not registered.
        """
        try:
            spec = self._specs[name]
        except KeyError:
            raise ValueError(f"Unknown tool: {name}") from None

        try:
            return await spec.handler(controller, arguments or {})
        except VaultSyncError as e:
            logger.warning("Tool %s failed: %s", name, e)
            return translate_sync_error(e)
        except ValueError as e:
            logger.info("Tool %s rejected its arguments: %s", name, e)
            return build_error_response(
                "validation_error", str(e), "Check parameter values and retry."
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error", str(e), "Check the server log and retry."
            )


def parse_permissions(text: str, source: str = "<string>") -> frozenset[str]:
    """Parse permission names, one per line.

    ``#`` starts a comment, either on its own line or after a name.
    Blank lines are skipped.
    """
    found: set[str] = set()
    for lineno, raw in enumerate(text.splitlines(), 1):
        name = raw.split("#", 1)[0].strip()
        if not name:
            continue
        if name not in KNOWN_PERMISSIONS:
            raise ValueError(
                f"Invalid permission '{name}' at line {lineno} in {source}; "
                f"known permissions: {', '.join(sorted(KNOWN_PERMISSIONS))}"
            )
        found.add(name)
    if not found:
        raise ValueError(f"No permissions found in {source}")
    return frozenset(found)


def load_permissions_file(path: str | Path) -> frozenset[str]:
    """Read a permissions file in the ``parse_permissions`` format.

    Example::

        # status only, no pull or push
        REPO_READ

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If a line names an unknown permission or none are given.
    """
    path = Path(path)
    return parse_permissions(path.read_text(encoding="utf-8"), str(path))
