"""Enrich command: resolve a gene list and run GO/KEGG over-representation analysis.

Commands for:
- Resolving gene names against a species' name lookup tables
- Running GO term and KEGG pathway enrichment
- Persisting ranked records to DuckDB and exporting CSV/Parquet
"""

import hashlib
import logging
import sys
from pathlib import Path

import click
import polars as pl

from generelate.config.loader import load_config_with_overrides
from generelate.enrichment import (
    EnrichmentSummary,
    count_significant,
    run_go_enrichment,
    run_kegg_enrichment,
)
from generelate.output import write_enrichment_output
from generelate.persistence import ProvenanceTracker, ResultStore
from generelate.species import SpeciesDataCache, parse_gene_input, resolve_genes

logger = logging.getLogger(__name__)

# Enrichment source -> (display label, DuckDB table)
ENRICHMENT_SOURCES = {
    "go": ("GO", "go_enrichment"),
    "kegg": ("KEGG", "kegg_enrichment"),
}
SUMMARY_TABLE = "enrichment_summary"


def query_fingerprint(taxid: str, protein_ids: list[str]) -> str:
    """Stable hash of a species plus its resolved query set."""
    payload = "\n".join([str(taxid), *sorted(set(protein_ids))])
    return hashlib.sha256(payload.encode()).hexdigest()


def _has_matching_results(store: ResultStore, fingerprint: str, sources: list[str]) -> bool:
    summary = store.read_table(SUMMARY_TABLE)
    if summary is None or summary.height == 0:
        return False
    return (
        set(summary["query_hash"].to_list()) == {fingerprint}
        and set(summary["source"].to_list()) == set(sources)
    )


def _summary_from_row(row: dict) -> EnrichmentSummary:
    return EnrichmentSummary(
        total=row["total"],
        mapped=row["mapped"],
        terms_total=row["terms_total"],
        terms_tested=row["terms_tested"],
        terms_skipped=row["terms_skipped"],
    )


def _echo_summary(summary: pl.DataFrame) -> None:
    click.echo(click.style("=== Summary ===", bold=True))
    for row in summary.sort("source").iter_rows(named=True):
        label = ENRICHMENT_SOURCES[row["source"]][0]
        click.echo(
            f"{label}: {row['mapped']}/{row['total']} genes annotated, "
            f"{row['terms_tested']} terms tested, "
            f"{row['significant']} significant (FDR < {row['fdr_threshold']})"
        )


@click.command('enrich')
@click.option(
    '--species',
    'taxid',
    required=True,
    help='NCBI taxonomy id of the species (name of its data directory)'
)
@click.option(
    '--genes',
    default=None,
    help='Comma or newline separated gene names'
)
@click.option(
    '--genes-file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='File with gene names, one per line or comma separated'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.option(
    '--skip-go',
    is_flag=True,
    help='Skip GO term enrichment'
)
@click.option(
    '--skip-kegg',
    is_flag=True,
    help='Skip KEGG pathway enrichment'
)
@click.option(
    '--force',
    is_flag=True,
    help='Re-run enrichment even if results for the same query are stored'
)
@click.pass_context
def enrich(ctx, taxid, genes, genes_file, output_dir, skip_go, skip_kegg, force):
    """Run GO and KEGG enrichment for a list of genes.

    Gene names are resolved against the species name lookup (case-insensitive),
    falling back to direct protein identifiers. Unresolved names are reported
    and left out of the query.

    Results are stored in DuckDB (go_enrichment, kegg_enrichment,
    enrichment_summary) and exported to {output_dir}/{taxid}/ as CSV and
    Parquet. Nothing is stored unless every requested source succeeds. A
    stored result for the same species and query is reused (and exported
    again to the output directory) unless --force is given.

    Examples:

        # Enrich three genes in human
        generelate enrich --species 9606 --genes "MYO7A,USH2A,CDH23"

        # Gene list from a file, GO only
        generelate enrich --species 9606 --genes-file genes.txt --skip-kegg
    """
    if (genes is None) == (genes_file is None):
        raise click.UsageError("Provide exactly one of --genes or --genes-file")
    if skip_go and skip_kegg:
        raise click.UsageError("--skip-go and --skip-kegg together leave nothing to run")

    config_path = ctx.obj['config_path']
    sources = [s for s, skip in (("go", skip_go), ("kegg", skip_kegg)) if not skip]

    click.echo(click.style("=== Gene Set Enrichment ===", bold=True))
    click.echo()

    store = None
    try:
        # Load config
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, {'output_dir': output_dir})
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        # Initialize storage and provenance
        click.echo("Initializing storage and provenance tracking...")
        store = ResultStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)
        click.echo(click.style("  Storage initialized", fg='green'))
        click.echo()

        # Step 1: Load species data
        click.echo(click.style(f"Step 1: Loading species {taxid}...", bold=True))
        cache = SpeciesDataCache.from_config(config)
        species = cache.get(taxid)
        click.echo(click.style(
            f"  {len(species.info)} proteins, population size {species.population_total}",
            fg='green'
        ))
        click.echo()

        # Step 2: Resolve gene names
        click.echo(click.style("Step 2: Resolving gene names...", bold=True))
        text = genes if genes is not None else genes_file.read_text(encoding="utf-8")
        names = parse_gene_input(text)
        if not names:
            click.echo(click.style("  Error: no gene names given", fg='red'), err=True)
            sys.exit(1)

        results, resolution = resolve_genes(names, species)
        protein_ids = [r.protein_id for r in results if r.protein_id is not None]
        click.echo(click.style(
            f"  Resolved {resolution.resolved}/{resolution.total} genes "
            f"({resolution.success_rate:.1%})",
            fg='green' if resolution.resolved else 'yellow'
        ))
        if resolution.unresolved:
            click.echo(click.style(
                f"  Unresolved: {', '.join(resolution.unresolved)}", fg='yellow'
            ))
        click.echo()
        provenance.record_step('resolve_genes', {
            'taxid': taxid,
            'total': resolution.total,
            'resolved': resolution.resolved,
            'unresolved': resolution.unresolved,
        })

        threshold = config.enrichment.fdr_threshold
        species_dir = Path(config.output_dir) / str(taxid)

        # Check for stored results of the same query
        fingerprint = query_fingerprint(taxid, protein_ids)
        if not force and _has_matching_results(store, fingerprint, sources):
            click.echo(click.style(
                "Results for this query are already stored. Skipping (use --force to re-run).",
                fg='yellow'
            ))
            summary_df = store.read_table(SUMMARY_TABLE)
            for row in summary_df.iter_rows(named=True):
                table = ENRICHMENT_SOURCES[row["source"]][1]
                write_enrichment_output(
                    store.load_records(table),
                    species_dir,
                    filename_base=table,
                    summary=_summary_from_row(row),
                    name_fn=species.preferred_name,
                    fdr_threshold=row["fdr_threshold"],
                )
            click.echo(click.style(f"  Stored results exported to {species_dir}", fg='green'))
            click.echo()
            _echo_summary(summary_df)
            click.echo()
            click.echo(f"DuckDB Path: {config.duckdb_path}")
            click.echo(click.style("Enrichment complete (used stored results)", fg='green'))
            return

        # Step 3: Enrichment per source, held in memory until every source succeeds
        click.echo(click.style("Step 3: Running enrichment...", bold=True))
        runners = {"go": run_go_enrichment, "kegg": run_kegg_enrichment}
        results = {}

        for source, (label, table) in ENRICHMENT_SOURCES.items():
            if source not in sources:
                click.echo(click.style(f"  {label}: skipped", fg='yellow'))
                continue

            try:
                result = runners[source](
                    protein_ids, species, skip_invalid=config.enrichment.skip_invalid_terms
                )
            except Exception as e:
                click.echo(click.style(f"  Error running {label} enrichment: {e}", fg='red'), err=True)
                click.echo(click.style("  Stored results left unchanged", fg='yellow'), err=True)
                logger.exception(f"{label} enrichment failed")
                sys.exit(1)

            significant = count_significant(result.records, threshold)
            click.echo(click.style(
                f"  {label}: {result.summary.mapped}/{result.summary.total} genes annotated, "
                f"{result.summary.terms_tested} terms tested, {significant} significant",
                fg='green'
            ))
            if result.summary.terms_skipped:
                click.echo(click.style(
                    f"    {result.summary.terms_skipped} terms skipped (invalid counts)",
                    fg='yellow'
                ))
            results[source] = (result, significant)
            provenance.record_step(f'{source}_enrichment', {
                **result.summary.to_dict(),
                'significant': significant,
            })

        click.echo()

        # Step 4: Persist all tables in one transaction
        click.echo(click.style("Step 4: Persisting results...", bold=True))
        summary_rows = [
            {
                "source": source,
                "taxid": str(taxid),
                "query_hash": fingerprint,
                **result.summary.to_dict(),
                "significant": significant,
                "fdr_threshold": threshold,
            }
            for source, (result, significant) in results.items()
        ]
        summary_df = pl.DataFrame(summary_rows)

        with store.transaction():
            for source, (label, table) in ENRICHMENT_SOURCES.items():
                if source in results:
                    store.save_records(
                        results[source][0].records, table,
                        note=f"{label} enrichment for species {taxid}",
                    )
                else:
                    # Drop stale results so the report does not mix queries
                    store.drop_table(table)
            store.write_table(summary_df, SUMMARY_TABLE, note=f"Enrichment summary for species {taxid}")
        click.echo(click.style(
            f"  Saved {', '.join(ENRICHMENT_SOURCES[s][1] for s in results)} and '{SUMMARY_TABLE}'",
            fg='green'
        ))

        output_files = {}
        for source, (result, _) in results.items():
            output_files[source] = write_enrichment_output(
                result.records,
                species_dir,
                filename_base=ENRICHMENT_SOURCES[source][1],
                summary=result.summary,
                name_fn=species.preferred_name,
                fdr_threshold=threshold,
            )
        click.echo()

        provenance_path = provenance.save_sidecar(species_dir / "enrichment.json")

        _echo_summary(summary_df)
        click.echo()
        for source, paths in output_files.items():
            click.echo(f"{ENRICHMENT_SOURCES[source][0]} CSV: {paths['csv']}")
        click.echo(f"DuckDB Path: {config.duckdb_path}")
        click.echo(f"Provenance: {provenance_path}")
        click.echo()
        click.echo(click.style("Enrichment complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Enrich command failed: {e}", fg='red'), err=True)
        logger.exception("Enrich command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
