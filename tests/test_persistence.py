"""Tests for persistence layer (DuckDB result store and provenance sidecars)."""

import json
import math

import polars as pl
import pytest

from generelate.config.loader import load_config
from generelate.enrichment import EnrichmentRecord
from generelate.persistence import ProvenanceTracker, ResultStore
from generelate.persistence.provenance import ProvenanceStep


@pytest.fixture
def test_config(tmp_path):
    """Create a minimal test config."""
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text("""
data_dir: {data_dir}
output_dir: {output_dir}
duckdb_path: {duckdb_path}
enrichment:
  fdr_threshold: 0.05
""".format(
        data_dir=str(tmp_path / "data"),
        output_dir=str(tmp_path / "results"),
        duckdb_path=str(tmp_path / "results" / "test.duckdb"),
    ))
    return load_config(config_path)


@pytest.fixture
def records():
    return [
        EnrichmentRecord(
            term=f"GO:{i}",
            description=f"term {i}",
            category="Biological Process",
            p_value=0.001 * (i + 1),
            fdr=0.002 * (i + 1),
            fold=math.inf if i == 0 else 3.0 / (i + 1),
            gene_count=i + 1,
            bg_count=10 * (i + 1),
            genes=tuple(f"P{j}" for j in range(i + 1)),
        )
        for i in range(5)
    ]


# ============================================================================
# ResultStore
# ============================================================================

def test_store_creates_database(tmp_path):
    """Opening a store creates the .duckdb file and its parent directories."""
    db_path = tmp_path / "nested" / "test.duckdb"
    assert not db_path.exists()

    store = ResultStore(db_path)
    store.close()

    assert db_path.exists()


def test_write_and_read_table(tmp_path):
    store = ResultStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({
        "source": ["go", "kegg"],
        "mapped": [12, 8],
    })
    store.write_table(df, "summary", note="run summary")
    loaded = store.read_table("summary")

    assert loaded.sort("source").equals(df)
    store.close()


def test_read_missing_table_returns_none(tmp_path):
    with ResultStore(tmp_path / "test.duckdb") as store:
        assert store.read_table("nope") is None
        assert store.load_records("nope") is None
        assert not store.has_table("nope")


def test_write_rejects_non_polars(tmp_path):
    with ResultStore(tmp_path / "test.duckdb") as store:
        with pytest.raises(ValueError, match="polars"):
            store.write_table({"a": [1]}, "bad")
        assert not store.has_table("bad")


def test_append_adds_rows_and_updates_row_count(tmp_path):
    with ResultStore(tmp_path / "test.duckdb") as store:
        store.write_table(pl.DataFrame({"x": [1, 2]}), "t")
        store.write_table(pl.DataFrame({"x": [3]}), "t", append=True)

        assert store.read_table("t")["x"].sort().to_list() == [1, 2, 3]
        assert store.catalog().filter(pl.col("table_name") == "t")["row_count"][0] == 3


def test_write_without_append_replaces(tmp_path):
    with ResultStore(tmp_path / "test.duckdb") as store:
        store.write_table(pl.DataFrame({"x": [1, 2]}), "t")
        store.write_table(pl.DataFrame({"y": ["a"]}), "t")

        loaded = store.read_table("t")
        assert loaded.columns == ["y"]
        assert loaded.height == 1


def test_records_round_trip_in_rank_order(tmp_path, records):
    with ResultStore(tmp_path / "test.duckdb") as store:
        store.save_records(records, "go_enrichment")
        loaded = store.load_records("go_enrichment")

    assert loaded == records
    assert math.isinf(loaded[0].fold)


def test_empty_records_are_stored(tmp_path):
    with ResultStore(tmp_path / "test.duckdb") as store:
        store.save_records([], "kegg_enrichment")

        assert store.has_table("kegg_enrichment")
        assert store.load_records("kegg_enrichment") == []


def test_catalog_and_drop(tmp_path, records):
    with ResultStore(tmp_path / "test.duckdb") as store:
        store.save_records(records, "go_enrichment", note="GO")
        store.save_records(records[:2], "kegg_enrichment", note="KEGG")
        store.write_table(pl.DataFrame({"source": ["go"]}), "enrichment_summary")

        catalog = store.catalog()
        assert catalog["table_name"].to_list() == [
            "enrichment_summary", "go_enrichment", "kegg_enrichment",
        ]
        by_name = {row["table_name"]: row for row in catalog.iter_rows(named=True)}
        assert by_name["go_enrichment"]["row_count"] == 5
        assert by_name["go_enrichment"]["kind"] == "records"
        assert by_name["kegg_enrichment"]["note"] == "KEGG"
        assert by_name["enrichment_summary"]["kind"] == "table"

        store.drop_table("kegg_enrichment")
        assert not store.has_table("kegg_enrichment")
        assert store.read_table("kegg_enrichment") is None
        assert "kegg_enrichment" not in store.catalog()["table_name"].to_list()

        # Dropping twice is harmless
        store.drop_table("kegg_enrichment")


def test_transaction_commits_together(tmp_path, records):
    with ResultStore(tmp_path / "test.duckdb") as store:
        with store.transaction():
            store.save_records(records, "go_enrichment")
            store.write_table(pl.DataFrame({"source": ["go"]}), "enrichment_summary")

        assert store.has_table("go_enrichment")
        assert store.read_table("enrichment_summary").height == 1


def test_transaction_rolls_back_on_error(tmp_path, records):
    with ResultStore(tmp_path / "test.duckdb") as store:
        store.save_records(records, "go_enrichment")
        store.save_records(records[:1], "kegg_enrichment")

        with pytest.raises(RuntimeError, match="boom"):
            with store.transaction():
                store.save_records(records[:2], "go_enrichment")
                store.drop_table("kegg_enrichment")
                raise RuntimeError("boom")

        assert store.load_records("go_enrichment") == records
        assert store.load_records("kegg_enrichment") == records[:1]
        by_name = {row["table_name"]: row for row in store.catalog().iter_rows(named=True)}
        assert by_name["go_enrichment"]["row_count"] == 5


def test_persistence_across_connections(tmp_path, records):
    db_path = tmp_path / "test.duckdb"
    with ResultStore(db_path) as store:
        store.save_records(records, "go_enrichment")

    with ResultStore(db_path) as store:
        assert store.has_table("go_enrichment")
        assert [r.term for r in store.load_records("go_enrichment")] == [r.term for r in records]


def test_from_config(test_config):
    store = ResultStore.from_config(test_config)

    assert store.db_path == test_config.duckdb_path
    assert test_config.duckdb_path.exists()
    store.close()
    store.close()


# ============================================================================
# Provenance
# ============================================================================

def test_provenance_to_dict(test_config):
    tracker = ProvenanceTracker.from_config(test_config)

    data = tracker.to_dict()
    assert data["version"] == "0.1.0"
    assert data["config_hash"] == test_config.config_hash()
    assert data["settings"]["enrichment"]["fdr_threshold"] == 0.05
    assert "top_n" in data["settings"]["clustering"]
    assert data["steps"] == []
    assert data["started_at"]


def test_record_steps(test_config):
    tracker = ProvenanceTracker("9.9.9", test_config)
    first = tracker.record_step("go_enrichment", {"terms_tested": 12})
    tracker.record_step("kegg_enrichment")

    assert isinstance(first, ProvenanceStep)
    assert [s.step_name for s in tracker.steps] == ["go_enrichment", "kegg_enrichment"]
    assert tracker.steps[0].details == {"terms_tested": 12}
    assert tracker.steps[1].details == {}

    steps = tracker.to_dict()["steps"]
    assert steps[0]["details"] == {"terms_tested": 12}
    assert steps[0]["timestamp"]


def test_record_step_copies_details(test_config):
    tracker = ProvenanceTracker("9.9.9", test_config)
    details = {"resolved": 3}
    tracker.record_step("resolve_genes", details)
    details["resolved"] = 99

    assert tracker.steps[0].details == {"resolved": 3}


def test_sidecar_path():
    assert ProvenanceTracker.sidecar_path("results/go_enrichment.csv").name == (
        "go_enrichment.provenance.json"
    )


def test_save_and_load_sidecar(test_config, tmp_path):
    tracker = ProvenanceTracker.from_config(test_config)
    tracker.record_step("resolve_genes", {"resolved": 3})

    sidecar = tracker.save_sidecar(tmp_path / "out" / "enrichment.json")

    assert sidecar.name == "enrichment.provenance.json"
    assert sidecar.parent == tmp_path / "out"
    loaded = ProvenanceTracker.load_sidecar(sidecar)
    assert loaded["steps"][0]["step_name"] == "resolve_genes"
    assert loaded["steps"][0]["details"]["resolved"] == 3
    assert json.loads(sidecar.read_text())["version"] == "0.1.0"
