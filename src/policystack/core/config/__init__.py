"""
policystack configuration (YAML-only).

Sources, lowest to highest priority:
  bundled defaults → <repo>/.policystack/config/*.yaml → POLICYSTACK_* env vars
"""
from __future__ import annotations

from .manager import ConfigManager, PolicyStackConfig, load_settings
from .paths import PROJECT_CONFIG_DIRNAME, get_project_config_dir, resolve_project_root

__all__ = [
    "ConfigManager",
    "PolicyStackConfig",
    "load_settings",
    "PROJECT_CONFIG_DIRNAME",
    "get_project_config_dir",
    "resolve_project_root",
]
