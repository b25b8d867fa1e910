"""Report command: Render enrichment plots and term dendrograms from stored results.

Reads the ranked records persisted by 'generelate enrich', clusters the top
terms by gene-set similarity and writes bar/dot plots, dendrograms and Newick
trees.
"""

import logging
import sys
from pathlib import Path

import click

from generelate.cli.enrich_cmd import ENRICHMENT_SOURCES, SUMMARY_TABLE
from generelate.clustering import cluster_records
from generelate.config.loader import load_config_with_overrides
from generelate.config.schema import PLOT_PALETTES, PLOT_TYPES
from generelate.output import generate_all_plots
from generelate.persistence import ProvenanceTracker, ResultStore

logger = logging.getLogger(__name__)


@click.command('report')
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: {output_dir}/plots)'
)
@click.option(
    '--top-n',
    type=click.IntRange(1, 100),
    default=None,
    help='Number of top-ranked terms to plot (default: plots.top_n from config)'
)
@click.option(
    '--palette',
    type=click.Choice(PLOT_PALETTES, case_sensitive=False),
    default=None,
    help='Colour palette (default: plots.palette from config)'
)
@click.option(
    '--plot-type',
    type=click.Choice(PLOT_TYPES, case_sensitive=False),
    default=None,
    help='Enrichment plot type (default: plots.plot_type from config)'
)
@click.option(
    '--format',
    'formats',
    type=click.Choice(['png', 'svg', 'pdf'], case_sensitive=False),
    multiple=True,
    default=('png',),
    help='Image format; repeat for several (default: png)'
)
@click.option(
    '--skip-dendrogram',
    is_flag=True,
    help='Skip term clustering and dendrogram output'
)
@click.pass_context
def report(ctx, output_dir, top_n, palette, plot_type, formats, skip_dendrogram):
    """Generate enrichment plots and term dendrograms.

    Run this after 'generelate enrich'. For each stored enrichment table
    (GO, KEGG) the top terms are drawn as a bar or dot plot and, unless
    --skip-dendrogram is given, the top clustering.top_n terms are grouped
    by Jaccard distance of their matched genes (UPGMA) and drawn as a
    dendrogram alongside a Newick tree file.

    Examples:

        # Plots with config defaults
        generelate report

        # Top 30 terms as a dot plot in SVG and PDF
        generelate report --top-n 30 --plot-type dot --format svg --format pdf
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Enrichment Report ===", bold=True))
    click.echo()

    store = None
    try:
        # Load config with CLI overrides
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, {
            'plots.top_n': top_n,
            'plots.palette': palette,
            'plots.plot_type': plot_type,
        })
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        store = ResultStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)

        if output_dir is None:
            output_dir = Path(config.output_dir) / "plots"
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        summary = store.read_table(SUMMARY_TABLE)
        taxid = summary["taxid"][0] if summary is not None and summary.height else None

        plots = config.plots
        click.echo(
            f"Plot settings: top {plots.top_n} terms, {plots.plot_type} plot, "
            f"{plots.palette} palette, {', '.join(formats)}"
        )
        click.echo()

        rendered = 0
        for source, (label, table) in ENRICHMENT_SOURCES.items():
            click.echo(click.style(f"{label} enrichment:", bold=True))
            records = store.load_records(table)
            if records is None:
                click.echo(click.style(f"  No '{table}' table found, skipping", fg='yellow'))
                click.echo()
                continue
            rendered += 1

            click.echo(f"  Loaded {len(records)} terms")

            tree = None
            if not skip_dendrogram:
                tree = cluster_records(records, config.clustering.top_n)
                if tree is None:
                    click.echo(click.style(
                        "  Fewer than two terms to cluster, skipping dendrogram", fg='yellow'
                    ))
                else:
                    newick_path = output_dir / f"{table}_dendrogram.nwk"
                    newick_path.write_text(tree.to_newick() + "\n", encoding="utf-8")
                    click.echo(click.style(
                        f"  Clustered {tree.leaf_count} terms (max height {tree.max_height:.3f})",
                        fg='green'
                    ))

            title = f"{label} Enrichment" + (f" (taxid {taxid})" if taxid else "")
            paths = generate_all_plots(
                records,
                output_dir,
                prefix=table,
                tree=tree,
                top_n=plots.top_n,
                palette=plots.palette,
                title=title,
                formats=[fmt.lower() for fmt in formats],
                dpi=plots.dpi,
                plot_types=(plots.plot_type,),
            )
            for name, path in sorted(paths.items()):
                click.echo(f"  {name}: {path}")
            click.echo()

            provenance.record_step(f'{source}_report', {
                'terms': len(records),
                'clustered': tree.leaf_count if tree is not None else 0,
                'plots': sorted(paths),
            })

        if rendered == 0:
            click.echo(click.style(
                "No enrichment results stored. Run 'generelate enrich' first.", fg='red'
            ), err=True)
            sys.exit(1)

        provenance_path = provenance.save_sidecar(output_dir / "report.json")
        click.echo(f"Output directory: {output_dir}")
        click.echo(f"Provenance: {provenance_path}")
        click.echo()
        click.echo(click.style("Report generation complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Report command failed: {e}", fg='red'), err=True)
        logger.exception("Report command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
