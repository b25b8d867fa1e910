"""Forward and backward views over per-species term annotations."""

from collections.abc import Iterable, Mapping, Sequence
from functools import cached_property

import structlog

from generelate.annotation.models import TermAnnotation, TermBackground

logger = structlog.get_logger(__name__)


class AnnotationIndex:
    """Read-only annotation index for one species and one term source.

    The forward view maps a gene identifier to its ordered annotation terms.
    The backward view maps a term to its metadata and the full set of
    background genes carrying it; it is derived from the forward view on
    first access unless supplied explicitly.

    ``population_total`` is the size of the whole gene universe of the
    species (annotated or not) and must be supplied by the caller.
    """

    def __init__(
        self,
        forward: Mapping[str, Sequence[TermAnnotation]],
        population_total: int,
        backward: Mapping[str, TermBackground] | None = None,
        source: str = "",
    ):
        if population_total < 1:
            raise ValueError(f"population_total must be >= 1, got {population_total}")
        self._forward = forward
        self.population_total = population_total
        self.source = source
        if backward is not None:
            # Pre-seed the cached_property slot
            self.__dict__["backward"] = dict(backward)

    @property
    def forward(self) -> Mapping[str, Sequence[TermAnnotation]]:
        return self._forward

    @cached_property
    def backward(self) -> dict[str, TermBackground]:
        """Term -> TermBackground, derived from the forward view."""
        members: dict[str, set[str]] = {}
        meta: dict[str, TermAnnotation] = {}

        # Sorted gene order keeps first-seen metadata deterministic
        for gene in sorted(self._forward):
            for annotation in self._forward[gene]:
                members.setdefault(annotation.term, set()).add(gene)
                meta.setdefault(annotation.term, annotation)

        backward = {
            term: TermBackground(
                term=term,
                description=meta[term].description,
                category=meta[term].category,
                genes=frozenset(genes),
            )
            for term, genes in members.items()
        }

        logger.debug(
            "annotation_backward_view_built",
            source=self.source,
            term_count=len(backward),
            gene_count=len(self._forward),
        )
        return backward

    def terms_for(self, gene: str) -> Sequence[TermAnnotation]:
        """Annotation terms of a gene (empty if the gene is unannotated)."""
        return self._forward.get(gene, ())

    def background(self, term: str) -> TermBackground | None:
        return self.backward.get(term)

    @property
    def term_count(self) -> int:
        return len(self.backward)

    @property
    def gene_count(self) -> int:
        return len(self._forward)

    def __contains__(self, gene: object) -> bool:
        return gene in self._forward

    def __repr__(self) -> str:
        return (
            f"AnnotationIndex(source={self.source!r}, genes={self.gene_count}, "
            f"population_total={self.population_total})"
        )

    @classmethod
    def from_records(
        cls,
        raw: Mapping[str, Iterable[Mapping | TermAnnotation]],
        population_total: int,
        source: str = "",
    ) -> "AnnotationIndex":
        """Build an index from loosely-typed ``{gene: [{term, description, category}]}`` data.

        Records without a term identifier are dropped.
        """
        forward: dict[str, list[TermAnnotation]] = {}
        dropped = 0

        for gene, records in raw.items():
            annotations = []
            for record in records or ():
                if isinstance(record, TermAnnotation):
                    annotations.append(record)
                    continue
                if not record or not record.get("term"):
                    dropped += 1
                    continue
                annotations.append(TermAnnotation(
                    term=str(record["term"]),
                    description=record.get("description") or "",
                    category=record.get("category") or "",
                ))
            if annotations:
                forward[gene] = annotations

        if dropped:
            logger.warning("annotation_records_dropped", source=source, dropped=dropped)

        return cls(forward, population_total, source=source)

    @classmethod
    def from_mappings(
        cls,
        gene_terms: Mapping[str, Sequence[TermAnnotation]],
        term_genes: Mapping[str, Iterable[str]],
        population_total: int,
        source: str = "",
    ) -> "AnnotationIndex":
        """Build an index from explicit forward and backward mappings.

        Term metadata is taken from the first forward record carrying the term;
        terms absent from the forward view get empty description and category.
        """
        meta: dict[str, TermAnnotation] = {}
        for gene in sorted(gene_terms):
            for annotation in gene_terms[gene]:
                meta.setdefault(annotation.term, annotation)

        backward = {}
        for term, genes in term_genes.items():
            annotation = meta.get(term)
            backward[term] = TermBackground(
                term=term,
                description=annotation.description if annotation else "",
                category=annotation.category if annotation else "",
                genes=frozenset(genes),
            )

        return cls(gene_terms, population_total, backward=backward, source=source)
