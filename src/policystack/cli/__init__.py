"""
policystack CLI package.

Commands are auto-discovered from domain subfolders (policy/, ...).

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities (repo root, settings, snapshot loading)
- _logging: stderr logging setup
"""
from ._output import OutputFormatter
from ._args import add_json_flag, add_repo_root_flag, add_verbose_flag, add_standard_flags
from ._utils import get_repo_root, get_settings, load_snapshot

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_repo_root_flag",
    "add_verbose_flag",
    "add_standard_flags",
    "get_repo_root",
    "get_settings",
    "load_snapshot",
]
