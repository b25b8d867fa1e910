"""Persistence layer for enrichment results and provenance tracking."""

from generelate.persistence.duckdb_store import ResultStore
from generelate.persistence.provenance import ProvenanceTracker

__all__ = ["ResultStore", "ProvenanceTracker"]
