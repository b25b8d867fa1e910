"""Data models for per-species term annotations."""

from dataclasses import dataclass

from pydantic import BaseModel

# Category label assigned to KEGG pathway terms
KEGG_CATEGORY = "KEGG Pathway"


class TermAnnotation(BaseModel):
    """A single annotation term attached to a gene.

    Attributes:
        term: Term identifier (e.g., GO:0006915 or path:fgr00010)
        description: Human-readable term name (empty string if unknown)
        category: Category label, e.g. "Biological Process" or "KEGG Pathway"
    """

    term: str
    description: str = ""
    category: str = ""


@dataclass(frozen=True)
class TermBackground:
    """Backward view of one term: its metadata and full background gene set."""

    term: str
    description: str
    category: str
    genes: frozenset[str]

    @property
    def size(self) -> int:
        return len(self.genes)
