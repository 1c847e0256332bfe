"""Runtime configuration for the vault sync server.

Reads GitHub connection and vault settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    VAULT_SYNC_GITHUB_TOKEN: GitHub personal access token (required)
    VAULT_SYNC_REPOSITORY: Remote repository as ``owner/name`` (required)
    VAULT_SYNC_ROOT: Local vault directory (optional, default: CWD)
    VAULT_SYNC_DEVICE_NAME: Label used in commit messages (optional)
    VAULT_SYNC_BRANCHES: Comma-separated branch names tried in order
        (optional, default: main,master)
    VAULT_SYNC_API_URL: GitHub API base URL (optional)
    VAULT_SYNC_TIMEOUT: Read timeout in seconds (optional, default: 60)
    VAULT_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_BRANCHES: tuple[str, ...] = ("main", "master")
DEFAULT_EXTENSION = ".md"

_REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


@dataclass
class Config:
    github_token: str
    repository: str
    vault_root: str = "."
    device_name: str = ""
    branches: tuple[str, ...] = DEFAULT_BRANCHES
    extension: str = DEFAULT_EXTENSION
    api_url: str = DEFAULT_API_URL
    request_timeout: int = 60
    debug: bool = False

    @property
    def vault_path(self) -> Path:
        """Resolved vault root directory."""
        return Path(self.vault_root).expanduser().resolve()


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the token is empty, the repository is not
            ``owner/name``, the API URL is malformed, or the vault root
            is not a directory.
    """
    if not config.github_token.strip():
        raise ValueError(
            "GitHub token cannot be empty. Set VAULT_SYNC_GITHUB_TOKEN environment variable."
        )
    config.github_token = config.github_token.strip()

    config.repository = config.repository.strip().strip("/")
    if not _REPOSITORY_PATTERN.match(config.repository):
        raise ValueError(
            f"Invalid repository '{config.repository}': expected 'owner/name'"
        )

    config.api_url = config.api_url.strip()
    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )
    if not urlparse(config.api_url).hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )
    config.api_url = config.api_url.removesuffix("/")

    if not config.branches or not all(b.strip() for b in config.branches):
        raise ValueError("At least one non-empty branch name is required")

    if not config.extension.startswith("."):
        config.extension = f".{config.extension}"

    if not config.vault_path.is_dir():
        raise ValueError(
            f"Vault root '{config.vault_root}' is not a directory"
        )

    if config.api_url.startswith("http://"):
        logger.warning(
            "WARNING: GitHub API URL is not using TLS. Use only for development."
        )


def _split_branches(raw: str | list | tuple | None) -> tuple[str, ...] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        items = raw.split(",")
    else:
        items = list(raw)
    branches = tuple(str(b).strip() for b in items if str(b).strip())
    return branches or None


def load_config(
    token: str | None = None,
    repository: str | None = None,
    vault_root: str | None = None,
    device_name: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        token: Override GitHub token.
        repository: Override repository (``owner/name``).
        vault_root: Override vault directory.
        device_name: Override device label for commit messages.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values merged from the YAML
            ``github`` and ``vault`` sections.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (token, repository) is missing
            after checking all sources, or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    final_token = (
        token or os.getenv("VAULT_SYNC_GITHUB_TOKEN") or fb.get("token")
    )
    if not final_token:
        raise ValueError(
            "GitHub token not found. Set VAULT_SYNC_GITHUB_TOKEN environment variable, "
            "pass --token CLI argument, or add 'token' to config.yml."
        )

    final_repository = (
        repository
        or os.getenv("VAULT_SYNC_REPOSITORY")
        or fb.get("repository")
    )
    if not final_repository:
        raise ValueError(
            "Repository not found. Set VAULT_SYNC_REPOSITORY environment variable, "
            "pass --repository CLI argument, or add 'repository' to config.yml."
        )

    final_root = (
        vault_root or os.getenv("VAULT_SYNC_ROOT") or fb.get("root") or "."
    )

    final_device = device_name
    if final_device is None:
        final_device = os.getenv("VAULT_SYNC_DEVICE_NAME")
    if final_device is None:
        final_device = fb.get("device_name") or ""

    branches = (
        _split_branches(os.getenv("VAULT_SYNC_BRANCHES"))
        or _split_branches(fb.get("branches"))
        or DEFAULT_BRANCHES
    )

    api_url = (
        os.getenv("VAULT_SYNC_API_URL") or fb.get("api_url") or DEFAULT_API_URL
    )

    extension = fb.get("extension") or DEFAULT_EXTENSION

    def get_bool_env(key: str) -> bool | None:
        """Return True/False from env var, or None if unset."""
        val = os.getenv(key)
        if val is None:
            return None
        return val.lower() in ("true", "1", "yes", "on")

    if debug:
        final_debug = True
    else:
        env_debug = get_bool_env("VAULT_SYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    timeout_raw = os.getenv("VAULT_SYNC_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = int(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid VAULT_SYNC_TIMEOUT '{timeout_raw}': must be a number between 1 and 600"
            ) from None
        if not (1 <= final_timeout <= 600):
            raise ValueError(
                f"Invalid VAULT_SYNC_TIMEOUT '{timeout_raw}': must be a number between 1 and 600"
            )
    elif "request_timeout" in fb:
        final_timeout = int(fb["request_timeout"])
    else:
        final_timeout = 60

    config = Config(
        github_token=final_token,
        repository=final_repository,
        vault_root=final_root,
        device_name=final_device.strip(),
        branches=branches,
        extension=extension,
        api_url=api_url,
        request_timeout=final_timeout,
        debug=final_debug,
    )

    validate_config(config)

    return config
