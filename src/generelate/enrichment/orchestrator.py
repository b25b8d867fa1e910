"""Over-representation analysis over an AnnotationIndex."""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from generelate.annotation.index import AnnotationIndex
from generelate.enrichment.fdr import benjamini_hochberg, rank_order
from generelate.enrichment.hypergeom import InvalidParameters, hypergeometric_test
from generelate.enrichment.models import (
    EnrichmentRecord,
    EnrichmentResult,
    EnrichmentSummary,
)
from generelate.species.loader import SpeciesData

logger = structlog.get_logger(__name__)


@dataclass
class _TermTest:
    """Per-term statistics before FDR correction."""

    term: str
    description: str
    category: str
    p_value: float
    fold: float
    gene_count: int
    bg_count: int
    genes: tuple[str, ...]


def deduplicate(genes: Iterable[str]) -> list[str]:
    """Drop repeated identifiers, keeping first-seen order."""
    seen: set[str] = set()
    unique = []
    for gene in genes:
        if gene not in seen:
            seen.add(gene)
            unique.append(gene)
    return unique


def fold_enrichment(
    query_hits: int,
    query_total: int,
    term_background: int,
    population_total: int,
) -> float:
    """
    Ratio of the term's proportion in the query to its proportion in the population.

    Computed as ``(hits * N) / (n * K)`` so equal proportions give exactly 1.0.
    Returns inf when the term background (or the query) is empty.
    """
    denominator = query_total * term_background
    if denominator == 0:
        return float("inf")
    return (query_hits * population_total) / denominator


def run_enrichment(
    query: Iterable[str],
    index: AnnotationIndex,
    skip_invalid: bool = True,
) -> EnrichmentResult:
    """
    Run over-representation analysis of a query gene set against an index.

    Pipeline:
    1. Deduplicate the query; genes without annotation terms are counted but
       contribute no candidate terms
    2. Candidate terms = union of terms annotated to mapped query genes
    3. Per candidate: hits, background count, fold enrichment
    4. Hypergeometric upper-tail p-value per candidate
    5. Benjamini-Hochberg q-values; records returned in rank order
       (p-value ascending, term identifier ascending)

    Args:
        query: Resolved gene identifiers (duplicates allowed)
        index: Annotation index supplying forward/backward views and the
            population size
        skip_invalid: When True (default), terms whose counts are rejected by
            the test engine are logged and skipped; otherwise the
            InvalidParameters error propagates and aborts the run

    Returns:
        EnrichmentResult with ranked records and summary

    Notes:
        - The query size used for the test and for fold enrichment is the
          number of distinct query genes, since unannotated genes are members
          of the population too
        - Terms with zero hits are never emitted
        - Output is fully determined by the inputs
    """
    genes = deduplicate(query)
    query_total = len(genes)
    population_total = index.population_total

    mapped = [gene for gene in genes if index.terms_for(gene)]
    mapped_set = set(mapped)

    logger.info(
        "enrichment_start",
        source=index.source,
        query_total=query_total,
        mapped=len(mapped),
        population_total=population_total,
    )

    candidates: set[str] = set()
    for gene in mapped:
        candidates.update(annotation.term for annotation in index.terms_for(gene))

    tests: list[_TermTest] = []
    skipped = 0

    for term in sorted(candidates):
        background = index.background(term)
        if background is None:
            continue

        matched = tuple(gene for gene in mapped if gene in background.genes)
        query_hits = len(matched)
        if query_hits == 0:
            continue

        bg_count = background.size
        try:
            p_value = hypergeometric_test(query_hits, query_total, bg_count, population_total)
        except InvalidParameters as e:
            if not skip_invalid:
                raise
            skipped += 1
            logger.warning(
                "enrichment_term_skipped",
                term=term,
                query_hits=query_hits,
                query_total=query_total,
                bg_count=bg_count,
                population_total=population_total,
                reason=str(e),
            )
            continue

        tests.append(_TermTest(
            term=term,
            description=background.description,
            category=background.category,
            p_value=p_value,
            fold=fold_enrichment(query_hits, query_total, bg_count, population_total),
            gene_count=query_hits,
            bg_count=bg_count,
            genes=matched,
        ))

    p_values = [test.p_value for test in tests]
    q_values = benjamini_hochberg(p_values)
    order = rank_order(p_values, [test.term for test in tests])

    records = [
        EnrichmentRecord(
            term=tests[i].term,
            description=tests[i].description,
            category=tests[i].category,
            p_value=tests[i].p_value,
            fdr=q_values[i],
            fold=tests[i].fold,
            gene_count=tests[i].gene_count,
            bg_count=tests[i].bg_count,
            genes=tests[i].genes,
        )
        for i in order
    ]

    summary = EnrichmentSummary(
        total=query_total,
        mapped=len(mapped_set),
        terms_total=index.term_count,
        terms_tested=len(records),
        terms_skipped=skipped,
    )

    logger.info(
        "enrichment_complete",
        source=index.source,
        candidate_terms=len(candidates),
        **summary.to_dict(),
    )

    return EnrichmentResult(records=records, summary=summary)


def run_go_enrichment(
    protein_ids: Iterable[str],
    species: SpeciesData,
    skip_invalid: bool = True,
) -> EnrichmentResult:
    """GO term enrichment of resolved protein ids for one species."""
    return run_enrichment(protein_ids, species.go_index, skip_invalid=skip_invalid)


def run_kegg_enrichment(
    protein_ids: Iterable[str],
    species: SpeciesData,
    skip_invalid: bool = True,
) -> EnrichmentResult:
    """KEGG pathway enrichment of resolved protein ids for one species."""
    return run_enrichment(protein_ids, species.kegg_index, skip_invalid=skip_invalid)
