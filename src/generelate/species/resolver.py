"""Resolution of user-supplied gene names to species protein identifiers."""

import logging
import re
from dataclasses import dataclass, field

from generelate.species.loader import SpeciesData

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[,\n\r]+")


@dataclass
class ResolvedGene:
    """Single gene resolution result.

    Attributes:
        query: Gene name as entered
        protein_id: Resolved protein identifier (None if not found)
    """
    query: str
    protein_id: str | None = None


@dataclass
class ResolutionReport:
    """Summary of a batch resolution.

    Attributes:
        total: Number of names submitted
        resolved: Number of names resolved to a protein id
        unresolved: Names with no match
        success_rate: Fraction resolved (0-1)
    """
    total: int
    resolved: int
    unresolved: list[str] = field(default_factory=list)
    success_rate: float = 0.0

    def __post_init__(self):
        if self.total > 0:
            self.success_rate = self.resolved / self.total


def parse_gene_input(text: str) -> list[str]:
    """Split free-text gene input on commas and newlines, dropping blanks."""
    return [token.strip() for token in _SEPARATORS.split(text) if token.strip()]


def resolve_gene(name: str, species: SpeciesData) -> str | None:
    """Resolve one gene name.

    Lookup order:
    1. Case-insensitive name lookup table (first match wins)
    2. The name used directly as a protein id in aliases.json or info.json
    """
    key = name.lower().strip()
    matches = species.name_lookup.get(key)
    if matches:
        return matches[0]

    if name in species.aliases or name in species.info:
        return name

    return None


def resolve_genes(
    names: list[str],
    species: SpeciesData,
) -> tuple[list[ResolvedGene], ResolutionReport]:
    """Resolve a batch of gene names against one species.

    Returns:
        Tuple of (results in input order, report)
    """
    results = [ResolvedGene(query=name, protein_id=resolve_gene(name, species)) for name in names]
    unresolved = [r.query for r in results if r.protein_id is None]

    report = ResolutionReport(
        total=len(results),
        resolved=len(results) - len(unresolved),
        unresolved=unresolved,
    )

    logger.info(
        f"Resolved {report.resolved}/{report.total} genes for species {species.taxid} "
        f"({report.success_rate:.1%})"
    )
    if unresolved:
        logger.debug(f"Unresolved genes: {', '.join(unresolved)}")

    return results, report
