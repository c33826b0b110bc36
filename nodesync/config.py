"""Configuration helpers for loading environment variables.

Variables defined in a project-level ``.env`` file are loaded once before
any lookup. Consumers should go through :func:`get_env` or
:class:`SyncSettings` instead of reading :data:`os.environ` directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DIAGNOSTIC_NODE_THRESHOLD = 100_000

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@lru_cache(maxsize=1)
def _load_environment() -> None:
    """Load environment variables from the project's ``.env`` file.

    Falls back to :func:`load_dotenv`'s own discovery when the repository
    root has no ``.env``. Cached so the file is read once per process;
    values already present in the process environment are never overridden.
    """

    project_root = Path(__file__).resolve().parents[1]
    env_path = project_root / ".env"

    if env_path.exists():
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return the value for ``key`` from the environment.

    Parameters
    ----------
    key:
        The name of the environment variable to look up.
    default:
        The value to return when ``key`` is not present.
    """

    _load_environment()
    return os.environ.get(key, default)


def get_int(key: str, default: int) -> int:
    raw = get_env(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


def get_bool(key: str, default: bool) -> bool:
    raw = get_env(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{key} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class SyncSettings:
    """Tunables for a sync pass."""

    diagnostic_node_threshold: int = DEFAULT_DIAGNOSTIC_NODE_THRESHOLD
    high_volume_backend: bool = False

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Read ``NODESYNC_*`` variables, falling back to the defaults."""

        return cls(
            diagnostic_node_threshold=get_int(
                "NODESYNC_DIAGNOSTIC_NODE_THRESHOLD", DEFAULT_DIAGNOSTIC_NODE_THRESHOLD
            ),
            high_volume_backend=get_bool("NODESYNC_HIGH_VOLUME_BACKEND", False),
        )


__all__ = ["DEFAULT_DIAGNOSTIC_NODE_THRESHOLD", "SyncSettings", "get_bool", "get_env", "get_int"]
