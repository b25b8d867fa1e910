"""Over-representation statistics: hypergeometric test, BH correction and run orchestration."""

from generelate.enrichment.fdr import benjamini_hochberg, rank_order
from generelate.enrichment.hypergeom import (
    InvalidParameters,
    hypergeometric_test,
    log_binomial,
    validate_counts,
)
from generelate.enrichment.models import (
    RECORD_FIELDS,
    EnrichmentRecord,
    EnrichmentResult,
    EnrichmentSummary,
    count_significant,
)
from generelate.enrichment.orchestrator import (
    deduplicate,
    fold_enrichment,
    run_enrichment,
    run_go_enrichment,
    run_kegg_enrichment,
)

__all__ = [
    "InvalidParameters",
    "hypergeometric_test",
    "log_binomial",
    "validate_counts",
    "benjamini_hochberg",
    "rank_order",
    "RECORD_FIELDS",
    "EnrichmentRecord",
    "EnrichmentResult",
    "EnrichmentSummary",
    "count_significant",
    "deduplicate",
    "fold_enrichment",
    "run_enrichment",
    "run_go_enrichment",
    "run_kegg_enrichment",
]
