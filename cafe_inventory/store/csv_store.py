"""
CSV Table Store

One CSV file per table under a directory, read and written with polars.
Every cell is read as a string; numbers are parsed later at the ledger
boundary so "$16" or "16,000" survive the round trip untouched.
"""

import os
import tempfile
from pathlib import Path
from typing import List

import polars as pl
import structlog

from cafe_inventory.exceptions import FatalStoreError, TableNotFoundError, TransientStoreError
from cafe_inventory.store.base import Row, TableData, TabularStore

logger = structlog.get_logger(__name__)


class CsvTableStore(TabularStore):
    """
    Directory of CSV files acting as a tabular store.

    Overwrites go through a temp file in the same directory followed by
    ``os.replace``, so readers see either the old table or the new one.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, table: str) -> Path:
        return self.directory / f"{table}.csv"

    def has_table(self, table: str) -> bool:
        return self._path(table).exists()

    def read_table(self, table: str) -> TableData:
        path = self._path(table)
        if not path.exists():
            raise TableNotFoundError(table)
        if path.stat().st_size == 0:
            return TableData(name=table)

        try:
            df = pl.read_csv(path, infer_schema_length=0)
        except OSError as e:
            raise TransientStoreError(f"Failed to read {path}: {e}") from e
        except pl.exceptions.ComputeError as e:
            raise FatalStoreError(f"Corrupt table file {path}: {e}") from e

        df = df.fill_null("")
        return TableData(name=table, header=list(df.columns), rows=df.to_dicts())

    def _frame(self, header: List[str], rows: List[Row]) -> pl.DataFrame:
        schema = {h: pl.Utf8 for h in header}
        if not rows:
            return pl.DataFrame(schema=schema)
        return pl.DataFrame(
            {h: [r.get(h, "") for r in rows] for h in header},
            schema=schema,
        )

    def _ends_with_newline(self, path: Path) -> bool:
        with open(path, "rb") as fh:
            fh.seek(0, os.SEEK_END)
            if fh.tell() == 0:
                return True
            fh.seek(-1, os.SEEK_END)
            return fh.read(1) == b"\n"

    def _write(self, table: str, header: List[str], rows: List[Row], replace: bool) -> None:
        path = self._path(table)
        df = self._frame(header, rows)

        if not replace:
            if not path.exists():
                raise TableNotFoundError(table)
            try:
                # hand-edited files often lack the final newline
                missing_newline = not self._ends_with_newline(path)
                with open(path, "a", encoding="utf-8", newline="") as fh:
                    if missing_newline:
                        fh.write("\n")
                    df.write_csv(fh, include_header=False)
            except OSError as e:
                raise TransientStoreError(f"Failed to append to {path}: {e}") from e
            return

        fd, tmp_name = tempfile.mkstemp(prefix=f".{table}.", suffix=".csv", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                df.write_csv(fh, include_header=True)
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise TransientStoreError(f"Failed to overwrite {path}: {e}") from e

        logger.debug("Table overwritten", table=table, rows=len(rows), path=str(path))
