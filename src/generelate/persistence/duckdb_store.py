"""DuckDB storage for enrichment results and run summaries."""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import duckdb
import polars as pl

from generelate.enrichment.models import EnrichmentRecord
from generelate.output.frames import frame_to_records, records_to_frame

CATALOG_TABLE = "result_catalog"


class ResultStore:
    """
    Result tables of enrichment runs in a single DuckDB file.

    Every table written through the store gets a row in ``result_catalog``
    (kind, row count, note, time of writing). ``enrich`` writes one records
    table per annotation source plus a summary table; ``report`` reads them
    back to draw plots without re-running the statistics.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = duckdb.connect(str(self.db_path))
        self.conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {CATALOG_TABLE} (
                table_name VARCHAR PRIMARY KEY,
                kind VARCHAR,
                row_count BIGINT,
                note VARCHAR,
                saved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def _catalog(self, table_name: str, kind: str, note: str) -> None:
        row_count = self.conn.execute(f'SELECT COUNT(*) FROM "{table_name}"').fetchone()[0]
        self.conn.execute(
            f"INSERT OR REPLACE INTO {CATALOG_TABLE} "
            "(table_name, kind, row_count, note, saved_at) "
            "VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)",
            [table_name, kind, row_count, note],
        )

    def write_table(
        self,
        df: pl.DataFrame,
        table_name: str,
        note: str = "",
        append: bool = False,
        kind: str = "table",
    ) -> None:
        """
        Write a polars DataFrame as a DuckDB table.

        Args:
            df: Frame to store
            table_name: Target table
            note: Free-text note kept in the catalog
            append: Insert into an existing table instead of replacing it
            kind: Catalog label ("records" for enrichment records)
        """
        if not isinstance(df, pl.DataFrame):
            raise ValueError(f"expected a polars.DataFrame, got {type(df).__name__}")

        self.conn.register("_incoming", df.to_arrow())
        try:
            if append and self.has_table(table_name):
                self.conn.execute(f'INSERT INTO "{table_name}" SELECT * FROM _incoming')
            else:
                self.conn.execute(f'CREATE OR REPLACE TABLE "{table_name}" AS SELECT * FROM _incoming')
        finally:
            self.conn.unregister("_incoming")

        self._catalog(table_name, kind, note)

    def read_table(self, table_name: str) -> Optional[pl.DataFrame]:
        """Table as a polars DataFrame, or None when it was never written."""
        if not self.has_table(table_name):
            return None
        return self.conn.execute(f'SELECT * FROM "{table_name}"').pl()

    def save_records(
        self,
        records: Sequence[EnrichmentRecord],
        table_name: str,
        note: str = "",
    ) -> None:
        """Replace ``table_name`` with ranked records."""
        self.write_table(records_to_frame(records), table_name, note=note, kind="records")

    def load_records(self, table_name: str) -> Optional[list[EnrichmentRecord]]:
        """Records written by save_records, in rank order; None if absent."""
        df = self.read_table(table_name)
        return None if df is None else frame_to_records(df)

    @contextmanager
    def transaction(self) -> Iterator["ResultStore"]:
        """
        Group writes so they are committed together.

        Any exception inside the block rolls every write back and is re-raised.
        """
        self.conn.begin()
        try:
            yield self
        except Exception:
            self.conn.rollback()
            raise
        self.conn.commit()

    def has_table(self, table_name: str) -> bool:
        found = self.conn.execute(
            f"SELECT 1 FROM {CATALOG_TABLE} WHERE table_name = ?", [table_name]
        ).fetchone()
        return found is not None

    def catalog(self) -> pl.DataFrame:
        """Catalog rows (table_name, kind, row_count, note, saved_at) sorted by name."""
        return self.conn.execute(
            f"SELECT table_name, kind, row_count, note, saved_at FROM {CATALOG_TABLE} "
            "ORDER BY table_name"
        ).pl()

    def drop_table(self, table_name: str) -> None:
        """Remove a table and its catalog entry; missing tables are ignored."""
        self.conn.execute(f'DROP TABLE IF EXISTS "{table_name}"')
        self.conn.execute(f"DELETE FROM {CATALOG_TABLE} WHERE table_name = ?", [table_name])

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "ResultStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @classmethod
    def from_config(cls, config: "AppConfig") -> "ResultStore":
        return cls(config.duckdb_path)
