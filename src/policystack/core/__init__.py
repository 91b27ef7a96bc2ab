"""policystack core library.

Pipeline: documents (store) → graph (tiers) → matching → composition
(+ conflicts) → query.
"""

from . import exceptions  # noqa: F401
from .models import (
    CompositionResult,
    ConflictReport,
    Context,
    Directive,
    MergeMode,
    PolicyDocument,
    Relation,
    RelationKind,
)
from .documents import DocumentStore, PolicySource
from .graph import PrecedenceGraph, build
from .matching import match
from .composition import compose
from .conflicts import resolve
from .query import PolicyResolver, PolicySnapshot, handle_query, query

__all__ = [
    "exceptions",
    "CompositionResult",
    "ConflictReport",
    "Context",
    "Directive",
    "MergeMode",
    "PolicyDocument",
    "Relation",
    "RelationKind",
    "DocumentStore",
    "PolicySource",
    "PrecedenceGraph",
    "build",
    "match",
    "compose",
    "resolve",
    "PolicyResolver",
    "PolicySnapshot",
    "handle_query",
    "query",
]
