"""Pydantic models for generelate configuration."""

import hashlib
import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

# Palette names accepted by the plot renderers (mapped to matplotlib colormaps)
PLOT_PALETTES = ("Default", "Viridis", "Magma", "Plasma", "Blues", "Reds", "Greys")
PLOT_TYPES = ("bar", "dot")


class EnrichmentSettings(BaseModel):
    """Settings for over-representation analysis."""

    fdr_threshold: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="FDR cutoff used when counting significant terms",
    )
    skip_invalid_terms: bool = Field(
        default=True,
        description="Skip terms with malformed background counts instead of aborting the run",
    )
    population_total: int | None = Field(
        default=None,
        ge=1,
        description="Override for the background universe size (default: gene count in info.json)",
    )


class ClusteringSettings(BaseModel):
    """Settings for term dendrogram construction."""

    top_n: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Number of top-ranked terms to cluster",
    )


class PlotSettings(BaseModel):
    """Settings for enrichment plots."""

    top_n: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Number of top-ranked terms to plot",
    )
    palette: str = Field(
        default="Default",
        description="Colour palette name",
    )
    plot_type: str = Field(
        default="bar",
        description="Enrichment plot type: bar or dot",
    )
    dpi: int = Field(
        default=300,
        ge=50,
        le=1200,
        description="Resolution for raster output",
    )

    @field_validator("palette")
    @classmethod
    def check_palette(cls, v: str) -> str:
        """Accept known palette names case-insensitively."""
        for name in PLOT_PALETTES:
            if v.lower() == name.lower():
                return name
        raise ValueError(f"Unknown palette {v!r}; choose from {', '.join(PLOT_PALETTES)}")

    @field_validator("plot_type")
    @classmethod
    def check_plot_type(cls, v: str) -> str:
        v = v.lower()
        if v not in PLOT_TYPES:
            raise ValueError(f"plot_type must be one of {PLOT_TYPES}, got {v!r}")
        return v


class AppConfig(BaseModel):
    """Main generelate configuration."""

    data_dir: Path = Field(
        ...,
        description="Directory holding per-species annotation JSON files",
    )
    output_dir: Path = Field(
        ...,
        description="Directory for CSV, Parquet and plot output",
    )
    duckdb_path: Path = Field(
        ...,
        description="Path to DuckDB database file for persisted results",
    )
    enrichment: EnrichmentSettings = Field(
        default_factory=EnrichmentSettings,
        description="Enrichment analysis settings",
    )
    clustering: ClusteringSettings = Field(
        default_factory=ClusteringSettings,
        description="Dendrogram settings",
    )
    plots: PlotSettings = Field(
        default_factory=PlotSettings,
        description="Plot rendering settings",
    )

    @field_validator("output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tagging persisted results with the settings that produced them.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
