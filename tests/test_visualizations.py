"""Tests for enrichment plots and term dendrograms."""

import math

import numpy as np
import pytest

from generelate.clustering import cluster_records
from generelate.enrichment import EnrichmentRecord
from generelate.output.visualizations import (
    PALETTE_CMAPS,
    cap_infinite_folds,
    generate_all_plots,
    neg_log10,
    plot_enrichment_bar,
    plot_enrichment_dot,
    plot_term_dendrogram,
    term_label,
)


@pytest.fixture
def synthetic_records():
    """Thirty ranked records with overlapping gene lists."""
    records = []
    for i in range(30):
        p = 1e-8 * (i + 1) ** 3
        genes = tuple(f"G{j}" for j in range(i % 5, i % 5 + 3 + i % 4))
        records.append(EnrichmentRecord(
            term=f"GO:{i:07d}",
            description=f"synthetic process number {i}",
            category="Biological Process",
            p_value=p,
            fdr=min(1.0, p * 30 / (i + 1)),
            fold=math.inf if i == 3 else 1.5 + 10 / (i + 1),
            gene_count=len(genes),
            bg_count=len(genes) + 10,
            genes=genes,
        ))
    return records


def test_plot_enrichment_bar_creates_file(synthetic_records, tmp_path):
    output_path = tmp_path / "bar.png"

    result = plot_enrichment_bar(synthetic_records, output_path, top_n=10, dpi=72)

    assert result == output_path
    assert output_path.exists()
    assert output_path.stat().st_size > 0


def test_plot_enrichment_dot_creates_file(synthetic_records, tmp_path):
    output_path = tmp_path / "dot.png"

    result = plot_enrichment_dot(synthetic_records, output_path, palette="Viridis", dpi=72)

    assert result == output_path
    assert output_path.stat().st_size > 0


def test_plots_handle_empty_records(tmp_path):
    assert plot_enrichment_bar([], tmp_path / "bar.png", dpi=72).exists()
    assert plot_enrichment_dot([], tmp_path / "dot.png", dpi=72).exists()


def test_plot_term_dendrogram_creates_file(synthetic_records, tmp_path):
    tree = cluster_records(synthetic_records, top_n=12)
    output_path = tmp_path / "tree.png"

    result = plot_term_dendrogram(tree, output_path, dpi=72)

    assert result == output_path
    assert output_path.stat().st_size > 0


def test_generate_all_plots(synthetic_records, tmp_path):
    tree = cluster_records(synthetic_records, top_n=10)

    plots = generate_all_plots(
        synthetic_records, tmp_path / "plots", prefix="go_enrichment",
        tree=tree, palette="Magma", dpi=72,
    )

    assert set(plots) == {"bar_png", "dot_png", "dendrogram_png"}
    assert plots["bar_png"].name == "go_enrichment_bar.png"
    for path in plots.values():
        assert path.exists()


def test_generate_all_plots_selected_type_and_formats(synthetic_records, tmp_path):
    plots = generate_all_plots(
        synthetic_records, tmp_path, formats=("png", "svg"), plot_types=("dot",), dpi=72,
    )

    assert set(plots) == {"dot_png", "dot_svg"}


def test_every_palette_renders(synthetic_records, tmp_path):
    for palette in PALETTE_CMAPS:
        path = plot_enrichment_bar(
            synthetic_records, tmp_path / f"{palette}.png", top_n=5, palette=palette, dpi=50,
        )
        assert path.exists()


def test_neg_log10_floors_zero():
    values = neg_log10([1.0, 0.01, 0.0])

    assert values[0] == 0.0
    assert values[1] == pytest.approx(2.0)
    assert np.isfinite(values[2])


def test_cap_infinite_folds():
    assert cap_infinite_folds([2.0, math.inf, 5.0]).tolist() == [2.0, 5.0, 5.0]
    assert cap_infinite_folds([math.inf]).tolist() == [1.0]


def test_term_label_truncates():
    record = EnrichmentRecord(
        term="GO:1", description="x" * 80, category="", p_value=0.1, fdr=0.1,
        fold=1.0, gene_count=1, bg_count=1, genes=("a",),
    )
    label = term_label(record, max_length=20)

    assert len(label) == 20
    assert label.endswith("…")
