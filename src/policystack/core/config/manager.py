"""
policystack configuration management (YAML-only, no silent fallbacks).
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from policystack.core.exceptions import ConfigError
from policystack.core.models import MergeMode
from policystack.core.schemas.validation import SchemaValidationError, validate_payload
from policystack.core.utils.io import read_yaml
from policystack.core.utils.merge import deep_merge
from policystack.data import get_data_path

from .paths import get_project_config_dir, resolve_project_root

logger = logging.getLogger(__name__)

ENV_PREFIX = "POLICYSTACK_"


@dataclass(frozen=True)
class PolicyStackConfig:
    """Typed view over the merged configuration."""

    repo_root: Path
    include_bundled: bool
    directories: Tuple[Path, ...]
    pattern: str
    default_merge_mode: MergeMode
    strict_partial_order: bool
    log_level: str

    def policy_directories(self) -> List[Path]:
        """Policy source directories, low → high (bundled corpus first when enabled)."""
        dirs: List[Path] = []
        if self.include_bundled:
            dirs.append(get_data_path("policies"))
        dirs.extend(self.directories)
        return dirs


class ConfigManager:
    """Load, merge, and validate policystack configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: POLICYSTACK_<section>__<key>
    2. Project config: <repo>/.policystack/config/*.yaml (alphabetical order)
    3. Bundled defaults: policystack.data/config/defaults.yaml
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root).resolve() if repo_root else resolve_project_root()
        self.core_config_path = get_data_path("config", "defaults.yaml")
        self.project_config_dir = get_project_config_dir(self.repo_root) / "config"

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = read_yaml(path, default={}, raise_on_error=True)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must parse to a mapping", context={"path": str(path)})
        return data

    def _project_files(self) -> List[Path]:
        if not self.project_config_dir.is_dir():
            return []
        return sorted(
            p for p in self.project_config_dir.iterdir() if p.is_file() and p.suffix in (".yaml", ".yml")
        )

    # ---------- environment overrides ----------

    def _coerce_type(self, value: str) -> Any:
        s = value.strip()
        low = s.lower()
        if low in {"true", "false"}:
            return low == "true"
        if re.fullmatch(r"[-+]?\d+", s):
            return int(s)
        if (s.startswith("[") and s.endswith("]")) or (s.startswith("{") and s.endswith("}")):
            try:
                return json.loads(s)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Malformed JSON in environment override: {s}") from exc
        return s

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ):
            if not key.startswith(ENV_PREFIX) or "__" not in key:
                continue
            raw = key[len(ENV_PREFIX):]
            segs = raw.split("__")
            if any(not seg for seg in segs):
                raise ConfigError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
            yield segs, self._coerce_type(os.environ[key])

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, value in self._iter_env_overrides():
            cur = cfg
            for part in path[:-1]:
                match = {k.lower(): k for k in cur}.get(part.lower(), part)
                nxt = cur.setdefault(match, {})
                if not isinstance(nxt, dict):
                    raise ConfigError(f"Environment override path traverses a non-mapping: {'.'.join(path)}")
                cur = nxt
            leaf = {k.lower(): k for k in cur}.get(path[-1].lower(), path[-1])
            logger.debug("config override from environment: %s", ".".join(path))
            cur[leaf] = value

    # ---------- loading ----------

    def load_config(self, *, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration mapping.

        Raises:
            ConfigError: On unreadable YAML or schema violations
        """
        cfg = self.load_yaml(self.core_config_path)
        for path in self._project_files():
            logger.debug("config layer: %s", path)
            cfg = deep_merge(cfg, self.load_yaml(path))
        self.apply_env_overrides(cfg)
        if validate:
            try:
                validate_payload(cfg, "config")
            except SchemaValidationError as exc:
                raise ConfigError(str(exc), context={"errors": exc.errors}) from exc
        return cfg

    def settings(self) -> PolicyStackConfig:
        cfg = self.load_config()
        policies = cfg["policies"]
        composition = cfg["composition"]
        directories = []
        for raw in policies["directories"]:
            p = Path(os.path.expandvars(str(raw))).expanduser()
            directories.append(p if p.is_absolute() else (self.repo_root / p).resolve())
        return PolicyStackConfig(
            repo_root=self.repo_root,
            include_bundled=bool(policies["includeBundled"]),
            directories=tuple(directories),
            pattern=str(policies["pattern"]),
            default_merge_mode=MergeMode.parse(composition["defaultMergeMode"]),
            strict_partial_order=bool(composition["strictPartialOrder"]),
            log_level=str((cfg.get("logging") or {}).get("level") or "WARNING"),
        )


def load_settings(repo_root: Optional[Path] = None) -> PolicyStackConfig:
    """Convenience wrapper: ``ConfigManager(repo_root).settings()``."""
    return ConfigManager(repo_root).settings()


__all__ = ["ConfigManager", "PolicyStackConfig", "load_settings", "ENV_PREFIX"]
