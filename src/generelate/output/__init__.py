"""Output generation: CSV/Parquet export, record frames and plots."""

from generelate.output.frames import RECORD_SCHEMA, frame_to_records, records_to_frame
from generelate.output.visualizations import (
    PALETTE_CMAPS,
    generate_all_plots,
    plot_enrichment_bar,
    plot_enrichment_dot,
    plot_term_dendrogram,
)
from generelate.output.writers import (
    CSV_HEADERS,
    enrichment_csv_frame,
    format_exponential,
    format_number,
    write_enrichment_csv,
    write_enrichment_output,
)

__all__ = [
    "RECORD_SCHEMA",
    "records_to_frame",
    "frame_to_records",
    "CSV_HEADERS",
    "enrichment_csv_frame",
    "format_exponential",
    "format_number",
    "write_enrichment_csv",
    "write_enrichment_output",
    "PALETTE_CMAPS",
    "generate_all_plots",
    "plot_enrichment_bar",
    "plot_enrichment_dot",
    "plot_term_dendrogram",
]
