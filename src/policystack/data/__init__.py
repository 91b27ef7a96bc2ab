"""
policystack data resource helpers.

Provides access to bundled configuration defaults, schemas and the bundled
policy corpus using importlib.resources.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Example:
        >>> get_data_path("config", "defaults.yaml")
        PosixPath('/path/to/policystack/data/config/defaults.yaml')
    """
    pkg = resources.files("policystack.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


__all__ = ["get_data_path"]
