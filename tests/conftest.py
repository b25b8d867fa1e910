"""Shared fixtures: a small synthetic species data directory."""

import json

import pytest

TAXID = "9606"

NAMES = {
    "P1": "MYO7A",
    "P2": "USH2A",
    "P3": "CDH23",
    "P4": "PCDH15",
}


def _species_tables():
    info = {f"P{i}": {"name": NAMES.get(f"P{i}", f"GENE{i}")} for i in range(1, 21)}
    name_lookup = {entry["name"].lower(): [protein] for protein, entry in info.items()}
    aliases = {
        "P1": ["MYO7A", "USH1B"],
        "P3": ["cdh23", "ush1d"],
        "P4": ["PCDH15"],
    }

    def go(term, description, category):
        return {"term": term, "description": description, "category": category}

    sound = go("GO:0007605", "sensory perception of sound", "Biological Process")
    stereo = go("GO:0032420", "stereocilium", "Cellular Component")
    binding = go("GO:0005509", "calcium ion binding", "Molecular Function")
    metabolic = go("GO:0008152", "metabolic process", "Biological Process")

    go_table = {
        "P1": [sound, stereo],
        "P2": [sound, stereo],
        "P3": [sound, binding],
        "P4": [binding],
        "P5": [metabolic],
        "P6": [metabolic],
        "P7": [metabolic],
        "P8": [metabolic],
    }

    kegg = {
        "pathways": {
            "hsa04360": "Axon guidance",
            "hsa00010": "Glycolysis / Gluconeogenesis",
        },
        "gene_pathways": {
            # P1 by identifier, P2 by preferred name, P3 by upper-cased alias
            "P1": ["path:hsa04360"],
            "USH2A": ["path:hsa04360", "path:hsa04360"],
            "USH1D": ["path:hsa04360"],
            "GENE5": ["path:hsa00010"],
            "GENE6": ["path:hsa00010", "path:hsa99999"],
            "ORPHAN": ["path:hsa04360"],
        },
    }

    return {
        "info.json": info,
        "name_lookup.json": name_lookup,
        "aliases.json": aliases,
        "go.json": go_table,
        "kegg_pathways.json": kegg,
    }


@pytest.fixture
def species_data_dir(tmp_path):
    """Data directory with one species (9606) of 20 proteins."""
    data_dir = tmp_path / "data"
    species_dir = data_dir / TAXID
    species_dir.mkdir(parents=True)
    for filename, content in _species_tables().items():
        (species_dir / filename).write_text(json.dumps(content))
    return data_dir
