"""Conversion between enrichment records and polars DataFrames."""

from collections.abc import Sequence

import polars as pl

from generelate.enrichment.models import EnrichmentRecord

RECORD_SCHEMA = {
    "rank": pl.Int64,
    "term": pl.Utf8,
    "description": pl.Utf8,
    "category": pl.Utf8,
    "p_value": pl.Float64,
    "fdr": pl.Float64,
    "fold": pl.Float64,
    "gene_count": pl.Int64,
    "bg_count": pl.Int64,
    "genes": pl.List(pl.Utf8),
}


def records_to_frame(records: Sequence[EnrichmentRecord]) -> pl.DataFrame:
    """
    Tabulate records in rank order.

    Adds a 1-based ``rank`` column so order survives storage backends that do
    not preserve row order.
    """
    rows = {name: [] for name in RECORD_SCHEMA}
    for rank, record in enumerate(records, start=1):
        rows["rank"].append(rank)
        rows["term"].append(record.term)
        rows["description"].append(record.description)
        rows["category"].append(record.category)
        rows["p_value"].append(record.p_value)
        rows["fdr"].append(record.fdr)
        rows["fold"].append(record.fold)
        rows["gene_count"].append(record.gene_count)
        rows["bg_count"].append(record.bg_count)
        rows["genes"].append(list(record.genes))
    return pl.DataFrame(rows, schema=RECORD_SCHEMA)


def frame_to_records(df: pl.DataFrame) -> list[EnrichmentRecord]:
    """Rebuild records from a frame produced by records_to_frame (sorted by rank if present)."""
    if "rank" in df.columns:
        df = df.sort("rank")
    return [
        EnrichmentRecord(
            term=row["term"],
            description=row["description"] or "",
            category=row["category"] or "",
            p_value=row["p_value"],
            fdr=row["fdr"],
            fold=row["fold"],
            gene_count=row["gene_count"],
            bg_count=row["bg_count"],
            genes=tuple(row["genes"] or ()),
        )
        for row in df.iter_rows(named=True)
    ]
