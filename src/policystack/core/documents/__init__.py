"""Policy documents: source parsing and the Document Store."""
from __future__ import annotations

from .parser import PolicySource, parse_body, parse_source
from .store import DocumentStore, load, load_directories, read_sources

__all__ = [
    "PolicySource",
    "parse_source",
    "parse_body",
    "DocumentStore",
    "load",
    "load_directories",
    "read_sources",
]
