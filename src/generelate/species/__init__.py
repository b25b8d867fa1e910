"""Species data loading and gene name resolution.

Provides caller-owned caching of pre-built species JSON tables and
resolution of free-text gene names to protein identifiers.
"""

from generelate.species.loader import (
    SPECIES_FILES,
    SpeciesData,
    SpeciesDataCache,
    load_species_data,
)
from generelate.species.resolver import (
    ResolutionReport,
    ResolvedGene,
    parse_gene_input,
    resolve_gene,
    resolve_genes,
)

__all__ = [
    "SPECIES_FILES",
    "SpeciesData",
    "SpeciesDataCache",
    "load_species_data",
    "ResolvedGene",
    "ResolutionReport",
    "parse_gene_input",
    "resolve_gene",
    "resolve_genes",
]
