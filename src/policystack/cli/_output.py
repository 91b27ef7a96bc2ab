"""Unified CLI output formatting utilities.

Every command supports a JSON mode (machine-readable stdout) and a text mode.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Optional

from policystack.core.exceptions import PolicyStackError


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output an error result.

        Structured policystack errors keep their own code and context in JSON mode.
        """
        msg = message or str(error)
        if self.json_mode:
            if isinstance(error, PolicyStackError):
                output = error.to_json_error()
                if message:
                    output["message"] = message
            else:
                output = {"error": error_code, "message": msg}
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str))

    def text(self, message: str) -> None:
        print(message)

    def text_kv(self, key: str, value: Any, prefix: str = "  ") -> None:
        """Output key-value pair in text mode."""
        if not self.json_mode:
            print(f"{prefix}{key}: {value}")


__all__ = ["OutputFormatter"]
