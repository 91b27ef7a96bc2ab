"""
Document Store: loads policy documents and their declared metadata.

Loading is the only I/O-bearing step of the engine. A store is built
wholesale from a batch of sources and is read-only afterwards; a content
change produces a new store rather than mutating this one.
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Sequence

from policystack.core.exceptions import NotFoundError, SchemaError
from policystack.core.models import MergeMode, PolicyDocument
from policystack.core.utils.io import read_text

from .parser import PolicySource, parse_source

logger = logging.getLogger(__name__)


class DocumentStore:
    """Immutable collection of PolicyDocuments keyed by name."""

    def __init__(self, documents: Iterable[PolicyDocument], *, fingerprint: str = "") -> None:
        docs = {}
        for doc in documents:
            if doc.name in docs:
                raise SchemaError(f"Duplicate policy document name: '{doc.name}'", document=doc.name)
            docs[doc.name] = doc
        self._documents: Mapping[str, PolicyDocument] = MappingProxyType(dict(sorted(docs.items())))
        self._fingerprint = fingerprint

    @classmethod
    def load(
        cls,
        sources: Iterable[PolicySource],
        *,
        default_mode: MergeMode = MergeMode.OVERRIDE,
    ) -> "DocumentStore":
        """Parse and validate a batch of sources.

        Every relation target must name a document in the same batch.

        Raises:
            SchemaError: On the first malformed document; no partial store is built.
        """
        batch = list(sources)
        documents: List[PolicyDocument] = []
        origins = {}
        for source in batch:
            doc = parse_source(source, default_mode=default_mode)
            if doc.name in origins:
                raise SchemaError(
                    f"Duplicate policy document name '{doc.name}' "
                    f"(defined in {origins[doc.name]} and {source.origin})",
                    document=doc.name,
                    origin=source.origin,
                )
            origins[doc.name] = source.origin
            documents.append(doc)

        for doc in documents:
            for relation in doc.relations:
                if relation.target not in origins:
                    raise SchemaError(
                        f"Policy document '{doc.name}' {relation.kind.value} unknown document "
                        f"'{relation.target}'",
                        document=doc.name,
                        origin=doc.origin,
                        context={"target": relation.target},
                    )

        store = cls(documents, fingerprint=fingerprint_sources(batch))
        logger.info("Loaded %d policy documents", len(store))
        return store

    def get(self, name: str) -> PolicyDocument:
        """Return the document called ``name``.

        Raises:
            NotFoundError: If no such document was loaded.
        """
        try:
            return self._documents[name]
        except KeyError:
            raise NotFoundError(
                f"Policy document not found: '{name}'",
                name=name,
                context={"available": list(self._documents)},
            ) from None

    def names(self) -> List[str]:
        return list(self._documents)

    def documents(self) -> List[PolicyDocument]:
        return list(self._documents.values())

    def fingerprint(self) -> str:
        return self._fingerprint

    def __contains__(self, name: object) -> bool:
        return name in self._documents

    def __iter__(self) -> Iterator[PolicyDocument]:
        return iter(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"DocumentStore({', '.join(self._documents)})"


def fingerprint_sources(sources: Sequence[PolicySource]) -> str:
    """SHA-256 over source origins and contents (order-insensitive)."""
    digest = hashlib.sha256()
    for source in sorted(sources, key=lambda s: s.origin):
        digest.update(source.origin.encode("utf-8"))
        digest.update(b"\0")
        digest.update(source.text.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def read_sources(directories: Iterable[Path], pattern: str = "*.md") -> List[PolicySource]:
    """Read every file matching ``pattern`` in each directory (low → high, sorted within).

    Missing directories are skipped with a warning.

    Raises:
        SchemaError: If a file cannot be read or is not valid UTF-8.
    """
    sources: List[PolicySource] = []
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("Policy directory does not exist: %s", directory)
            continue
        for path in sorted(p for p in directory.glob(pattern) if p.is_file()):
            try:
                text = read_text(path)
            except (OSError, UnicodeDecodeError) as exc:
                raise SchemaError(f"Cannot read policy source {path}: {exc}", origin=str(path)) from exc
            sources.append(PolicySource(origin=str(path), text=text))
    return sources


def load(sources: Iterable[PolicySource], *, default_mode: MergeMode = MergeMode.OVERRIDE) -> DocumentStore:
    """Module-level alias for :meth:`DocumentStore.load`."""
    return DocumentStore.load(sources, default_mode=default_mode)


def load_directories(
    directories: Iterable[Path],
    pattern: str = "*.md",
    *,
    default_mode: MergeMode = MergeMode.OVERRIDE,
) -> DocumentStore:
    """Read all sources from ``directories`` and build a store from them."""
    return DocumentStore.load(read_sources(directories, pattern), default_mode=default_mode)


__all__ = ["DocumentStore", "fingerprint_sources", "read_sources", "load", "load_directories"]
