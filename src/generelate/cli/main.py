"""Main CLI entry point for generelate.

Provides command group with global options and subcommands for enrichment runs.
"""

import logging
from pathlib import Path

import click

from generelate import __version__
from generelate.config.loader import load_config
from generelate.cli.enrich_cmd import enrich
from generelate.cli.report_cmd import report
from generelate.species import SpeciesDataCache


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.version_option(__version__, prog_name='generelate')
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """generelate: GO and KEGG over-representation analysis for gene lists.

    Resolves gene names against pre-built species annotation data, runs
    hypergeometric enrichment with Benjamini-Hochberg correction, and
    renders plots and term dendrograms from the persisted results.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display configuration summary and available species."""
    config_path = ctx.obj['config_path']

    click.echo(f"generelate v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Data Directory:   {config.data_dir}")
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  DuckDB Path:      {config.duckdb_path}")
        click.echo()

        click.echo(click.style("Enrichment:", bold=True))
        click.echo(f"  FDR Threshold:      {config.enrichment.fdr_threshold}")
        click.echo(f"  Skip Invalid Terms: {config.enrichment.skip_invalid_terms}")
        population = config.enrichment.population_total
        click.echo(f"  Population Total:   {population if population is not None else 'from info.json'}")
        click.echo()

        click.echo(click.style("Clustering / Plots:", bold=True))
        click.echo(f"  Dendrogram Top-N: {config.clustering.top_n}")
        click.echo(f"  Plot Top-N:       {config.plots.top_n}")
        click.echo(f"  Palette:          {config.plots.palette}")
        click.echo(f"  Plot Type:        {config.plots.plot_type}")
        click.echo()

        species = SpeciesDataCache.from_config(config).available_species()
        click.echo(click.style("Available Species:", bold=True))
        if species:
            for taxid in species:
                click.echo(f"  {taxid}")
        else:
            click.echo(click.style(f"  none found under {config.data_dir}", fg='yellow'))

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


# Register commands
cli.add_command(enrich)
cli.add_command(report)


if __name__ == '__main__':
    cli()
