"""Result containers for enrichment runs."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

# Field order consumed by CSV export and plot renderers
RECORD_FIELDS = (
    "term",
    "description",
    "category",
    "pValue",
    "fdr",
    "fold",
    "geneCount",
    "bgCount",
    "genes",
)


@dataclass(frozen=True)
class EnrichmentRecord:
    """One tested term of an enrichment run.

    Attributes:
        term: Term identifier
        description: Human-readable term name
        category: Category label (GO namespace or "KEGG Pathway")
        p_value: Raw hypergeometric p-value, in (0, 1]
        fdr: Benjamini-Hochberg q-value, in (0, 1]
        fold: Observed/expected proportion ratio; inf is kept as-is
        gene_count: Query genes carrying the term (>= 1)
        bg_count: Background genes carrying the term
        genes: Matched query gene identifiers, in query order
    """

    term: str
    description: str
    category: str
    p_value: float
    fdr: float
    fold: float
    gene_count: int
    bg_count: int
    genes: tuple[str, ...]

    def is_significant(self, threshold: float = 0.05) -> bool:
        return self.fdr < threshold

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dict keyed by the export field names, in export order."""
        return {
            "term": self.term,
            "description": self.description,
            "category": self.category,
            "pValue": self.p_value,
            "fdr": self.fdr,
            "fold": self.fold,
            "geneCount": self.gene_count,
            "bgCount": self.bg_count,
            "genes": list(self.genes),
        }


@dataclass
class EnrichmentSummary:
    """Summary statistics for one enrichment run.

    Attributes:
        total: Distinct query genes submitted
        mapped: Query genes with at least one annotation term
        terms_total: Terms in the annotation index (the term universe)
        terms_tested: Terms with at least one hit that produced a record
        terms_skipped: Candidate terms rejected by the test engine
    """

    total: int
    mapped: int
    terms_total: int
    terms_tested: int
    terms_skipped: int = 0

    @property
    def mapping_rate(self) -> float:
        return self.mapped / self.total if self.total else 0.0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "mapped": self.mapped,
            "terms_total": self.terms_total,
            "terms_tested": self.terms_tested,
            "terms_skipped": self.terms_skipped,
        }


def count_significant(records: Iterable[EnrichmentRecord], threshold: float = 0.05) -> int:
    """Number of records with FDR strictly below ``threshold``."""
    return sum(1 for record in records if record.is_significant(threshold))


@dataclass
class EnrichmentResult:
    """Ranked records plus summary for one run."""

    records: list[EnrichmentRecord] = field(default_factory=list)
    summary: EnrichmentSummary = field(
        default_factory=lambda: EnrichmentSummary(total=0, mapped=0, terms_total=0, terms_tested=0)
    )

    def significant(self, threshold: float = 0.05) -> list[EnrichmentRecord]:
        return [record for record in self.records if record.is_significant(threshold)]

    def top(self, n: int) -> list[EnrichmentRecord]:
        return self.records[:max(n, 0)]
