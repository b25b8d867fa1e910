"""Build GO and KEGG annotation indexes from pre-built species JSON data."""

from collections.abc import Mapping, Sequence

import structlog

from generelate.annotation.index import AnnotationIndex
from generelate.annotation.models import KEGG_CATEGORY, TermAnnotation

logger = structlog.get_logger(__name__)


def build_go_index(
    go_annotations: Mapping[str, Sequence[Mapping]],
    population_total: int,
) -> AnnotationIndex:
    """Build the GO index from ``go.json`` content ({protein: [{term, description, category}]})."""
    index = AnnotationIndex.from_records(go_annotations, population_total, source="go")
    logger.info(
        "go_index_built",
        annotated_genes=index.gene_count,
        population_total=population_total,
    )
    return index


def resolve_kegg_gene_id(
    protein_id: str,
    gene_pathways: Mapping[str, Sequence[str]],
    aliases: Mapping[str, Sequence[str]],
    info: Mapping[str, Mapping],
) -> str | None:
    """Find the KEGG gene identifier used for a protein in ``gene_pathways``.

    Lookup order:
    1. The protein identifier itself
    2. The protein's preferred name from ``info``
    3. Each alias of the protein, as-is and upper-cased

    Returns:
        Matching key of ``gene_pathways`` or None
    """
    if protein_id in gene_pathways:
        return protein_id

    preferred = (info.get(protein_id) or {}).get("name")
    if preferred and preferred in gene_pathways:
        return preferred

    for alias in aliases.get(protein_id, ()):
        if alias in gene_pathways:
            return alias
        upper = alias.upper()
        if upper in gene_pathways:
            return upper

    return None


def build_kegg_index(
    kegg_pathways: Mapping,
    aliases: Mapping[str, Sequence[str]],
    info: Mapping[str, Mapping],
    population_total: int,
) -> AnnotationIndex:
    """Build the KEGG pathway index keyed by protein identifier.

    Args:
        kegg_pathways: ``kegg_pathways.json`` content with ``pathways``
            ({pathway id: name}) and ``gene_pathways`` ({KEGG gene: ["path:..."]})
        aliases: ``aliases.json`` content ({protein: [alias, ...]})
        info: ``info.json`` content ({protein: {"name": preferred name}})
        population_total: Background universe size

    Returns:
        AnnotationIndex whose genes are protein identifiers

    Notes:
        - Proteins are enumerated from info.json and aliases.json; when both are
          empty the KEGG gene identifiers themselves are used as gene ids
        - Pathway descriptions fall back to the pathway identifier
    """
    gene_pathways = kegg_pathways.get("gene_pathways") or {}
    pathway_names = kegg_pathways.get("pathways") or {}

    proteins = sorted(set(info) | set(aliases))
    if not proteins:
        proteins = sorted(gene_pathways)

    forward: dict[str, list[TermAnnotation]] = {}
    for protein_id in proteins:
        kegg_id = resolve_kegg_gene_id(protein_id, gene_pathways, aliases, info)
        if kegg_id is None:
            continue

        annotations = []
        seen: set[str] = set()
        for pathway in gene_pathways[kegg_id]:
            if pathway in seen:
                continue
            seen.add(pathway)
            lookup = pathway.removeprefix("path:")
            annotations.append(TermAnnotation(
                term=pathway,
                description=pathway_names.get(lookup) or pathway,
                category=KEGG_CATEGORY,
            ))
        if annotations:
            forward[protein_id] = annotations

    logger.info(
        "kegg_index_built",
        proteins_considered=len(proteins),
        annotated_genes=len(forward),
        population_total=population_total,
    )
    return AnnotationIndex(forward, population_total, source="kegg")
