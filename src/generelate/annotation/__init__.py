"""Per-species annotation indexes (GO terms and KEGG pathways)."""

from generelate.annotation.builders import (
    build_go_index,
    build_kegg_index,
    resolve_kegg_gene_id,
)
from generelate.annotation.index import AnnotationIndex
from generelate.annotation.models import KEGG_CATEGORY, TermAnnotation, TermBackground

__all__ = [
    "AnnotationIndex",
    "TermAnnotation",
    "TermBackground",
    "KEGG_CATEGORY",
    "build_go_index",
    "build_kegg_index",
    "resolve_kegg_gene_id",
]
