"""Project root and config directory resolution."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from policystack.core.exceptions import ConfigError

PROJECT_CONFIG_DIRNAME = ".policystack"
PROJECT_ROOT_ENV = "POLICYSTACK_PROJECT_ROOT"


def resolve_project_root(start: Optional[Path] = None) -> Path:
    """Resolve the project root.

    Resolution priority:
    1. POLICYSTACK_PROJECT_ROOT environment variable (must exist)
    2. Nearest ancestor of ``start`` (default: cwd) holding a ``.policystack``
       directory, then the nearest holding ``.git``
    3. ``start`` itself

    Raises:
        ConfigError: If the environment override points at a missing path
    """
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        path = Path(env_root).expanduser().resolve()
        if not path.exists():
            raise ConfigError(
                f"{PROJECT_ROOT_ENV} points at missing path: {path}",
                context={"path": str(path)},
            )
        return path

    origin = Path(start or Path.cwd()).resolve()
    for marker in (PROJECT_CONFIG_DIRNAME, ".git"):
        for candidate in (origin, *origin.parents):
            if (candidate / marker).exists():
                return candidate
    return origin


def get_project_config_dir(repo_root: Path) -> Path:
    return Path(repo_root) / PROJECT_CONFIG_DIRNAME


__all__ = ["PROJECT_CONFIG_DIRNAME", "PROJECT_ROOT_ENV", "resolve_project_root", "get_project_config_dir"]
