"""Query API.

``query(snapshot, context)`` is a pure function of an immutable snapshot and
a context. ``PolicyResolver`` owns the current snapshot: a rebuild constructs
a complete new store and graph, then swaps the pointer under a lock, so a
query only ever sees one whole snapshot.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from policystack.core.composition import Composer
from policystack.core.config import PolicyStackConfig
from policystack.core.documents import DocumentStore, PolicySource, read_sources
from policystack.core.documents.store import fingerprint_sources
from policystack.core.exceptions import PolicyStackError, SchemaError
from policystack.core.graph import PrecedenceGraph, build
from policystack.core.matching import match
from policystack.core.models import CompositionResult, Context, MergeMode
from policystack.core.schemas.validation import schema_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicySnapshot:
    """A document store together with its precedence graph. Never mutated."""

    store: DocumentStore
    graph: PrecedenceGraph
    strict_partial_order: bool = True

    @classmethod
    def from_store(cls, store: DocumentStore, *, strict_partial_order: bool = True) -> "PolicySnapshot":
        return cls(store=store, graph=build(store.documents()), strict_partial_order=strict_partial_order)

    @classmethod
    def from_sources(
        cls,
        sources: Iterable[PolicySource],
        *,
        default_mode: MergeMode = MergeMode.OVERRIDE,
        strict_partial_order: bool = True,
    ) -> "PolicySnapshot":
        store = DocumentStore.load(sources, default_mode=default_mode)
        return cls.from_store(store, strict_partial_order=strict_partial_order)

    @property
    def fingerprint(self) -> str:
        return self.store.fingerprint()


def query(snapshot: Union[PolicySnapshot, DocumentStore], context: Context) -> CompositionResult:
    """Resolve the composed ruleset for ``context``.

    Raises:
        NotFoundError: If the context declares a document the store lacks.
    """
    if isinstance(snapshot, DocumentStore):
        snapshot = PolicySnapshot.from_store(snapshot)
    matched = match(snapshot.graph, context)
    composer = Composer(snapshot.graph, strict_partial_order=snapshot.strict_partial_order)
    return composer.compose(matched)


def parse_context(payload: Any) -> Context:
    """Validate and convert a serialized context record.

    Raises:
        SchemaError: If the record is not a mapping or has malformed fields.
    """
    if not isinstance(payload, Mapping):
        raise SchemaError(f"Context record must be a mapping, got {type(payload).__name__}")
    errors = schema_errors(payload, "context")
    if errors:
        raise SchemaError(
            "Invalid context record:\n" + "\n".join(f"- {e}" for e in errors),
            context={"errors": errors},
        )
    return Context.from_dict(payload)


def handle_query(snapshot: Union[PolicySnapshot, DocumentStore], payload: Any) -> Dict[str, Any]:
    """Serialized boundary: context record in, result or structured failure out.

    Success: ``{appliedDocuments, directives, conflicts}``.
    Failure: ``{error, message, context}`` (never an empty/default result).
    """
    try:
        return query(snapshot, parse_context(payload)).to_dict()
    except PolicyStackError as exc:
        logger.info("Query failed: %s", exc)
        return exc.to_json_error()


class PolicyResolver:
    """Holds the current snapshot and swaps it atomically on rebuild.

    Queries read the snapshot pointer once, so in-flight queries keep the
    snapshot they started with.
    """

    def __init__(
        self,
        snapshot: Optional[PolicySnapshot] = None,
        *,
        settings: Optional[PolicyStackConfig] = None,
    ) -> None:
        self._snapshot = snapshot
        self._settings = settings
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: PolicyStackConfig) -> "PolicyResolver":
        resolver = cls(settings=settings)
        resolver.refresh()
        return resolver

    @property
    def snapshot(self) -> PolicySnapshot:
        snap = self._snapshot
        if snap is None:
            raise PolicyStackError("No policy snapshot loaded; call rebuild() or refresh() first")
        return snap

    def _mode_options(self) -> Dict[str, Any]:
        if self._settings is None:
            return {}
        return {
            "default_mode": self._settings.default_merge_mode,
            "strict_partial_order": self._settings.strict_partial_order,
        }

    def rebuild(self, sources: Iterable[PolicySource]) -> PolicySnapshot:
        """Build a new snapshot from ``sources`` and make it current.

        On failure the previous snapshot stays current and the error propagates.
        """
        fresh = PolicySnapshot.from_sources(list(sources), **self._mode_options())
        with self._lock:
            previous = self._snapshot
            self._snapshot = fresh
        logger.info(
            "Policy snapshot swapped (%d documents, fingerprint %s -> %s)",
            len(fresh.store),
            previous.fingerprint[:12] if previous else "none",
            fresh.fingerprint[:12],
        )
        return fresh

    def refresh(self) -> bool:
        """Reload the configured directories; rebuild only when content changed.

        Returns:
            True when a new snapshot was swapped in.
        """
        if self._settings is None:
            raise PolicyStackError("refresh() requires settings with policy directories")
        sources = read_sources(self._settings.policy_directories(), self._settings.pattern)
        current = self._snapshot
        if current is not None and current.fingerprint == fingerprint_sources(sources):
            logger.debug("Policy sources unchanged; keeping current snapshot")
            return False
        self.rebuild(sources)
        return True

    def query(self, context: Context) -> CompositionResult:
        return query(self.snapshot, context)

    def handle(self, payload: Any) -> Dict[str, Any]:
        try:
            snap = self.snapshot
        except PolicyStackError as exc:
            return exc.to_json_error()
        return handle_query(snap, payload)


__all__ = ["PolicySnapshot", "PolicyResolver", "query", "handle_query", "parse_context"]
