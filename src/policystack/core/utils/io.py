"""File reading helpers.

Policy sources and configuration are read wholesale; nothing here writes.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    """Read a UTF-8 text file."""
    return Path(path).read_text(encoding="utf-8")


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns ``default`` if the file is missing or invalid, unless
    ``raise_on_error`` is True.

    Examples:
        >>> cfg = read_yaml(Path("defaults.yaml"), default={})
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if data is not None else default
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default


__all__ = ["read_text", "read_yaml"]
