"""CSV+Parquet writer for enrichment results with provenance sidecar."""

import math
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

import polars as pl
import yaml

from generelate.enrichment.models import EnrichmentRecord, EnrichmentSummary, count_significant
from generelate.output.frames import records_to_frame

# Column headers of the exported CSV; order is consumed by downstream tools
CSV_HEADERS = [
    "Term",
    "Description",
    "Category",
    "P-Value",
    "FDR",
    "Fold Enrichment",
    "Gene Count",
    "Background Count",
    "Genes",
]
# Free-text columns, always double-quoted with embedded quotes doubled
QUOTED_COLUMNS = ("Description", "Category", "Genes")


def format_exponential(value: float, digits: int = 4) -> str:
    """Exponential notation with an unpadded exponent, e.g. 1.2346e-5 or 1.0000e+0."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    mantissa, exponent = f"{value:.{digits}e}".split("e")
    exp = int(exponent)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def format_number(value: float) -> str:
    """Shortest round-trip text for a float; integral values without a decimal point."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def enrichment_csv_frame(
    records: Sequence[EnrichmentRecord],
    name_fn: Callable[[str], str] | None = None,
) -> pl.DataFrame:
    """
    Build the export table with CSV_HEADERS columns.

    Args:
        records: Records in rank order
        name_fn: Optional translation of gene ids to display names (e.g. preferred names)
    """
    translate = name_fn or (lambda gene: gene)
    return pl.DataFrame(
        {
            "Term": [r.term for r in records],
            "Description": [r.description or "" for r in records],
            "Category": [r.category or "" for r in records],
            "P-Value": [format_exponential(r.p_value) for r in records],
            "FDR": [format_exponential(r.fdr) for r in records],
            "Fold Enrichment": [format_number(r.fold) for r in records],
            "Gene Count": [r.gene_count for r in records],
            "Background Count": [r.bg_count for r in records],
            "Genes": [", ".join(translate(g) for g in r.genes) for r in records],
        },
        schema={
            "Term": pl.Utf8,
            "Description": pl.Utf8,
            "Category": pl.Utf8,
            "P-Value": pl.Utf8,
            "FDR": pl.Utf8,
            "Fold Enrichment": pl.Utf8,
            "Gene Count": pl.Int64,
            "Background Count": pl.Int64,
            "Genes": pl.Utf8,
        },
    )


def write_enrichment_csv(
    records: Sequence[EnrichmentRecord],
    output_path: Path,
    name_fn: Callable[[str], str] | None = None,
) -> Path:
    """
    Write records to CSV in rank order and return the path.

    Description, Category and Genes are always quoted; the remaining columns
    are written bare.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = enrichment_csv_frame(records, name_fn).with_columns([
        pl.concat_str([
            pl.lit('"'),
            pl.col(column).str.replace_all('"', '""', literal=True),
            pl.lit('"'),
        ]).alias(column)
        for column in QUOTED_COLUMNS
    ])
    df.write_csv(output_path, include_header=True, quote_style="never")
    return output_path


def write_enrichment_output(
    records: Sequence[EnrichmentRecord],
    output_dir: Path,
    filename_base: str = "enrichment",
    summary: EnrichmentSummary | None = None,
    name_fn: Callable[[str], str] | None = None,
    fdr_threshold: float = 0.05,
) -> dict:
    """
    Write enrichment records to CSV and Parquet with a provenance sidecar.

    Args:
        records: Ranked enrichment records
        output_dir: Directory to write output files (created if doesn't exist)
        filename_base: Base filename without extension (default: "enrichment")
        summary: Optional run summary recorded in the sidecar
        name_fn: Optional gene id -> display name translation for the CSV
        fdr_threshold: Threshold used for the significant-term count

    Returns:
        Dictionary with output file paths:
        {
            "csv": Path to CSV file,
            "parquet": Path to Parquet file,
            "provenance": Path to YAML provenance sidecar
        }

    Notes:
        - CSV holds formatted values in the export column order
        - Parquet keeps native types (float p-values, list of gene ids)
        - Record order is the rank order supplied by the caller
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    csv_path = output_dir / f"{filename_base}.csv"
    parquet_path = output_dir / f"{filename_base}.parquet"
    provenance_path = output_dir / f"{filename_base}.provenance.yaml"

    write_enrichment_csv(records, csv_path, name_fn=name_fn)

    df = records_to_frame(records)
    df.write_parquet(parquet_path, compression="snappy", use_pyarrow=True)

    categories = {}
    if df.height > 0:
        category_counts = df.group_by("category").agg(pl.len()).sort("category")
        categories = {row["category"]: row["len"] for row in category_counts.to_dicts()}

    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "output_files": [csv_path.name, parquet_path.name],
        "statistics": {
            "terms_reported": len(records),
            "significant_count": count_significant(records, fdr_threshold),
            "fdr_threshold": fdr_threshold,
            "category_counts": categories,
        },
        "column_names": CSV_HEADERS,
    }
    if summary is not None:
        provenance["summary"] = summary.to_dict()

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    return {
        "csv": csv_path,
        "parquet": parquet_path,
        "provenance": provenance_path,
    }
