"""Plot rendering for enrichment results and term dendrograms."""

import logging
from collections.abc import Sequence
from pathlib import Path

import matplotlib
import numpy as np

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402
from matplotlib.cm import ScalarMappable  # noqa: E402
from matplotlib.colors import Normalize  # noqa: E402
from scipy.cluster.hierarchy import dendrogram  # noqa: E402

from generelate.clustering.tree import ClusterTree  # noqa: E402
from generelate.enrichment.models import EnrichmentRecord  # noqa: E402

logger = logging.getLogger(__name__)

# Palette name -> seaborn/matplotlib colormap
PALETTE_CMAPS = {
    "Default": "flare",
    "Viridis": "viridis",
    "Magma": "magma",
    "Plasma": "plasma",
    "Blues": "Blues",
    "Reds": "Reds",
    "Greys": "Greys",
}

LABEL_MAX_LENGTH = 50


def _cmap(palette: str):
    return sns.color_palette(PALETTE_CMAPS.get(palette, PALETTE_CMAPS["Default"]), as_cmap=True)


def term_label(record: EnrichmentRecord, max_length: int = LABEL_MAX_LENGTH) -> str:
    """Description (or term id) truncated for axis labels."""
    label = record.description or record.term
    if len(label) > max_length:
        label = label[: max_length - 1] + "…"
    return label


def neg_log10(values: Sequence[float]) -> np.ndarray:
    """-log10 of p/q-values; zeros are floored at the smallest positive double."""
    arr = np.asarray(values, dtype=np.float64)
    return -np.log10(np.clip(arr, np.finfo(np.float64).tiny, 1.0))


def cap_infinite_folds(folds: Sequence[float]) -> np.ndarray:
    """Replace infinite folds with the largest finite fold (1.0 if none are finite)."""
    arr = np.asarray(folds, dtype=np.float64)
    finite = arr[np.isfinite(arr)]
    cap = float(finite.max()) if finite.size else 1.0
    return np.where(np.isinf(arr), cap, arr)


def _save(fig, output_path: Path, dpi: int) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    # CRITICAL: Close figure to prevent memory leak
    plt.close(fig)
    return output_path


def plot_enrichment_bar(
    records: Sequence[EnrichmentRecord],
    output_path: Path,
    top_n: int = 20,
    palette: str = "Default",
    title: str = "Enrichment",
    dpi: int = 300,
) -> Path:
    """
    Horizontal bar chart of the top-N terms.

    Bar length is -log10(FDR); bar colour encodes fold enrichment (infinite
    folds drawn at the largest finite fold). Most significant term on top.
    """
    top = list(records[:top_n])
    sns.set_theme(style="whitegrid", context="paper")

    fig, ax = plt.subplots(figsize=(10, max(3.0, 0.35 * len(top) + 1.5)))

    if top:
        scores = neg_log10([r.fdr for r in top])
        folds = cap_infinite_folds([r.fold for r in top])
        cmap = _cmap(palette)
        norm = Normalize(vmin=float(folds.min()), vmax=float(folds.max()))
        positions = np.arange(len(top))[::-1]

        ax.barh(positions, scores, color=cmap(norm(folds)))
        ax.set_yticks(positions)
        ax.set_yticklabels([term_label(r) for r in top])

        sm = ScalarMappable(norm=norm, cmap=cmap)
        sm.set_array([])
        fig.colorbar(sm, ax=ax, label="Fold Enrichment")
    else:
        ax.text(0.5, 0.5, "No enriched terms", ha="center", va="center", transform=ax.transAxes)

    ax.set_xlabel("-log10(FDR)")
    ax.set_title(title)

    path = _save(fig, output_path, dpi)
    logger.info(f"Saved enrichment bar chart to {path}")
    return path


def plot_enrichment_dot(
    records: Sequence[EnrichmentRecord],
    output_path: Path,
    top_n: int = 20,
    palette: str = "Default",
    title: str = "Enrichment",
    dpi: int = 300,
) -> Path:
    """
    Dot plot of the top-N terms.

    X position is fold enrichment, dot size the matched gene count and dot
    colour -log10(FDR).
    """
    top = list(records[:top_n])
    sns.set_theme(style="whitegrid", context="paper")

    fig, ax = plt.subplots(figsize=(10, max(3.0, 0.35 * len(top) + 1.5)))

    if top:
        folds = cap_infinite_folds([r.fold for r in top])
        scores = neg_log10([r.fdr for r in top])
        counts = np.array([r.gene_count for r in top], dtype=np.float64)
        sizes = 40 + 160 * (counts / counts.max())
        positions = np.arange(len(top))[::-1]

        points = ax.scatter(folds, positions, s=sizes, c=scores, cmap=_cmap(palette), edgecolors="black", linewidths=0.5)
        ax.set_yticks(positions)
        ax.set_yticklabels([term_label(r) for r in top])
        fig.colorbar(points, ax=ax, label="-log10(FDR)")
    else:
        ax.text(0.5, 0.5, "No enriched terms", ha="center", va="center", transform=ax.transAxes)

    ax.set_xlabel("Fold Enrichment")
    ax.set_title(title)

    path = _save(fig, output_path, dpi)
    logger.info(f"Saved enrichment dot plot to {path}")
    return path


def plot_term_dendrogram(
    tree: ClusterTree,
    output_path: Path,
    title: str = "Term Similarity (Jaccard, UPGMA)",
    dpi: int = 300,
) -> Path:
    """
    Dendrogram of clustered terms drawn from the tree's linkage matrix.

    Leaves are labelled with term descriptions; the axis shows Jaccard distance.
    """
    sns.set_theme(style="white", context="paper")
    fig, ax = plt.subplots(figsize=(10, max(3.0, 0.35 * tree.leaf_count + 1.5)))

    dendrogram(
        tree.to_linkage(),
        labels=[term_label(r) for r in tree.records],
        orientation="left",
        color_threshold=0,
        above_threshold_color="#34495e",
        ax=ax,
    )
    ax.set_xlabel("Jaccard distance")
    ax.set_title(title)

    path = _save(fig, output_path, dpi)
    logger.info(f"Saved term dendrogram to {path}")
    return path


def generate_all_plots(
    records: Sequence[EnrichmentRecord],
    output_dir: Path,
    prefix: str = "enrichment",
    tree: ClusterTree | None = None,
    top_n: int = 20,
    palette: str = "Default",
    title: str = "Enrichment",
    formats: Sequence[str] = ("png",),
    dpi: int = 300,
    plot_types: Sequence[str] = ("bar", "dot"),
) -> dict[str, Path]:
    """
    Generate bar chart, dot plot and (when a tree is given) dendrogram.

    Args:
        records: Ranked enrichment records
        output_dir: Directory where plots will be saved
        prefix: Filename prefix, e.g. "go_enrichment"
        tree: Optional cluster tree for the dendrogram
        top_n: Number of top terms to draw
        palette: Palette name
        title: Plot title
        formats: File extensions to write (png, svg, pdf)
        dpi: Raster resolution
        plot_types: Which record plots to draw ("bar", "dot")

    Returns:
        Dictionary mapping "{plot}_{format}" to file path

    Notes:
        - Wraps each plot in try/except to continue on individual failures
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = {}
    for fmt in formats:
        if "bar" in plot_types:
            try:
                plots[f"bar_{fmt}"] = plot_enrichment_bar(
                    records, output_dir / f"{prefix}_bar.{fmt}", top_n=top_n,
                    palette=palette, title=title, dpi=dpi,
                )
            except Exception as e:
                logger.warning(f"Failed to create bar chart ({fmt}): {e}")

        if "dot" in plot_types:
            try:
                plots[f"dot_{fmt}"] = plot_enrichment_dot(
                    records, output_dir / f"{prefix}_dot.{fmt}", top_n=top_n,
                    palette=palette, title=title, dpi=dpi,
                )
            except Exception as e:
                logger.warning(f"Failed to create dot plot ({fmt}): {e}")

        if tree is not None:
            try:
                plots[f"dendrogram_{fmt}"] = plot_term_dendrogram(
                    tree, output_dir / f"{prefix}_dendrogram.{fmt}", dpi=dpi,
                )
            except Exception as e:
                logger.warning(f"Failed to create dendrogram ({fmt}): {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
