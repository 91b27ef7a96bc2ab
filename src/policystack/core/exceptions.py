from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence


class PolicyStackError(Exception):
    """Base exception for policystack."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "error": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
        }


class SchemaError(PolicyStackError, ValueError):
    """Raised when a policy document's metadata or body is malformed.

    Fatal at load time: the whole store construction is aborted.
    """

    def __init__(
        self,
        message: str,
        *,
        document: str | None = None,
        origin: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if document:
            ctx["document"] = document
        if origin:
            ctx["origin"] = origin
        PolicyStackError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)
        self.document = document
        self.origin = origin


class NotFoundError(PolicyStackError, LookupError):
    """Raised when a queried or referenced document name does not exist."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if name:
            ctx["name"] = name
        PolicyStackError.__init__(self, message, context=ctx)
        LookupError.__init__(self, message)
        self.name = name


class CycleError(PolicyStackError, ValueError):
    """Raised when the relation graph contains a cycle.

    ``path`` lists the documents along the cycle with the first one repeated
    at the end, e.g. ``["a", "b", "a"]``.
    """

    def __init__(self, path: Sequence[str]) -> None:
        self.path = list(path)
        message = "Cycle detected in policy relations: " + " -> ".join(self.path)
        PolicyStackError.__init__(self, message, context={"path": self.path})
        ValueError.__init__(self, message)


class ConfigError(PolicyStackError):
    """Raised when configuration cannot be loaded or fails validation."""


__all__ = [
    "PolicyStackError",
    "SchemaError",
    "NotFoundError",
    "CycleError",
    "ConfigError",
]
