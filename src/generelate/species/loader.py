"""Loading of pre-built per-species annotation data.

Each species lives in ``{data_dir}/{taxid}/`` as a set of JSON files produced
upstream. Files that are missing or unreadable load as empty mappings so a
species without KEGG data can still run GO enrichment.
"""

import json
import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any

from generelate.annotation import AnnotationIndex, build_go_index, build_kegg_index

logger = logging.getLogger(__name__)

SPECIES_FILES = {
    "aliases": "aliases.json",
    "name_lookup": "name_lookup.json",
    "info": "info.json",
    "go": "go.json",
    "kegg_pathways": "kegg_pathways.json",
}


def _read_json(path: Path) -> dict[str, Any]:
    """Read a JSON object from disk, returning {} when absent or malformed."""
    if not path.exists():
        logger.warning(f"Species data file missing: {path}")
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Expected a JSON object in {path}, got {type(data).__name__}")
        return {}
    return data


@dataclass
class SpeciesData:
    """Annotation tables for one species.

    Attributes:
        taxid: NCBI taxonomy identifier (directory name)
        aliases: protein id -> list of alias names
        name_lookup: lower-cased gene name -> list of protein ids
        info: protein id -> {"name": preferred name, ...}; defines the gene universe
        go: protein id -> list of {term, description, category}
        kegg_pathways: {"pathways": {id: name}, "gene_pathways": {KEGG gene: [pathway, ...]}}
        population_override: Explicit background universe size (wins over info.json)
    """

    taxid: str
    aliases: dict = field(default_factory=dict)
    name_lookup: dict = field(default_factory=dict)
    info: dict = field(default_factory=dict)
    go: dict = field(default_factory=dict)
    kegg_pathways: dict = field(default_factory=dict)
    population_override: int | None = None

    @property
    def population_total(self) -> int:
        """Background universe size: override, else number of proteins in info.json.

        Raises:
            ValueError: If neither an override nor info.json data is available
        """
        if self.population_override is not None:
            return self.population_override
        if self.info:
            return len(self.info)
        raise ValueError(
            f"Cannot determine population size for species {self.taxid}: "
            "info.json is empty and no population_total override is configured"
        )

    @cached_property
    def go_index(self) -> AnnotationIndex:
        return build_go_index(self.go, self.population_total)

    @cached_property
    def kegg_index(self) -> AnnotationIndex:
        return build_kegg_index(
            self.kegg_pathways, self.aliases, self.info, self.population_total
        )

    def preferred_name(self, protein_id: str) -> str:
        """Preferred gene name of a protein, falling back to the identifier."""
        entry = self.info.get(protein_id) or {}
        return entry.get("name") or protein_id


def load_species_data(
    data_dir: Path | str,
    taxid: str,
    population_total: int | None = None,
) -> SpeciesData:
    """
    Load all annotation tables for one species.

    Args:
        data_dir: Root data directory containing one subdirectory per taxid
        taxid: Species taxonomy identifier
        population_total: Optional override for the background universe size

    Returns:
        SpeciesData instance

    Raises:
        FileNotFoundError: If the species directory does not exist
    """
    species_dir = Path(data_dir) / str(taxid)
    if not species_dir.is_dir():
        raise FileNotFoundError(f"Species data directory not found: {species_dir}")

    tables = {
        attr: _read_json(species_dir / filename)
        for attr, filename in SPECIES_FILES.items()
    }

    data = SpeciesData(taxid=str(taxid), population_override=population_total, **tables)

    logger.info(
        f"Loaded species {taxid}: {len(data.info)} proteins, "
        f"{len(data.go)} GO-annotated, "
        f"{len(data.kegg_pathways.get('gene_pathways') or {})} KEGG genes"
    )
    return data


class SpeciesDataCache:
    """Caller-owned cache of loaded species data, keyed by taxid.

    Loading is lazy and happens once per taxid for the lifetime of the cache.
    """

    def __init__(self, data_dir: Path | str, population_total: int | None = None):
        self.data_dir = Path(data_dir)
        self.population_total = population_total
        self._species: dict[str, SpeciesData] = {}

    def get(self, taxid: str) -> SpeciesData:
        taxid = str(taxid)
        if taxid not in self._species:
            self._species[taxid] = load_species_data(
                self.data_dir, taxid, population_total=self.population_total
            )
        return self._species[taxid]

    def available_species(self) -> list[str]:
        """Taxids with a data directory under data_dir."""
        if not self.data_dir.is_dir():
            return []
        return sorted(p.name for p in self.data_dir.iterdir() if p.is_dir())

    def clear(self) -> None:
        self._species.clear()

    def __contains__(self, taxid: object) -> bool:
        return str(taxid) in self._species

    def __len__(self) -> int:
        return len(self._species)

    @classmethod
    def from_config(cls, config: "AppConfig") -> "SpeciesDataCache":
        return cls(config.data_dir, population_total=config.enrichment.population_total)
