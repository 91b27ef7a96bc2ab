"""Shared CLI utility functions."""
from __future__ import annotations

import argparse
from pathlib import Path

from policystack.core.config import ConfigManager, PolicyStackConfig, resolve_project_root
from policystack.core.documents import read_sources
from policystack.core.query import PolicySnapshot

from ._logging import configure_logging


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get repository root from --repo-root or auto-detect."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def get_settings(args: argparse.Namespace) -> PolicyStackConfig:
    """Load settings for the invocation and configure logging from them."""
    settings = ConfigManager(repo_root=get_repo_root(args)).settings()
    configure_logging(
        level="DEBUG" if getattr(args, "verbose", False) else settings.log_level,
        json_mode=bool(getattr(args, "json", False)),
    )
    return settings


def load_snapshot(settings: PolicyStackConfig) -> PolicySnapshot:
    """Read the configured policy directories and build a snapshot."""
    sources = read_sources(settings.policy_directories(), settings.pattern)
    return PolicySnapshot.from_sources(
        sources,
        default_mode=settings.default_merge_mode,
        strict_partial_order=settings.strict_partial_order,
    )


__all__ = ["get_repo_root", "get_settings", "load_snapshot"]
