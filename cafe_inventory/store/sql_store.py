"""
SQL Table Store

Generic row storage on SQLAlchemy 2.0: one registry row per logical table
holding its header, and one row per record holding the cell map as JSON.
Appends and overwrites each run in a single transaction.
"""

from pathlib import Path
from typing import Any, Dict, List

import structlog
from sqlalchemy import (
    JSON,
    ForeignKey,
    Index,
    Integer,
    String,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from cafe_inventory.exceptions import FatalStoreError, TableNotFoundError, TransientStoreError
from cafe_inventory.store.base import Row, TableData, TabularStore

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for store models"""
    pass


class StoredTable(Base):
    """Registry of logical tables and their header layout"""
    __tablename__ = "stored_tables"

    name: Mapped[str] = mapped_column(String(128), primary_key=True)
    header: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)


class StoredRow(Base):
    """One record of a logical table"""
    __tablename__ = "stored_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_name: Mapped[str] = mapped_column(
        String(128), ForeignKey("stored_tables.name", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_stored_rows_table_position", "table_name", "position"),
    )


def create_store_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a sync engine for the store.

    In-memory SQLite shares one connection across threads; file-backed
    SQLite gets its parent directory created.
    """
    url = make_url(database_url)
    engine_config: Dict[str, Any] = {"echo": echo, "future": True}

    if url.get_backend_name() == "sqlite":
        engine_config["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            engine_config["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        engine_config["pool_pre_ping"] = True

    return create_engine(url, **engine_config)


class SqlTableStore(TabularStore):
    """Tabular store persisted through SQLAlchemy"""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
        Base.metadata.create_all(engine)
        logger.info("SQL table store ready", url=engine.url.render_as_string(hide_password=True))

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlTableStore":
        return cls(create_store_engine(database_url, echo=echo))

    def _translate(self, table: str, e: SQLAlchemyError) -> Exception:
        if isinstance(e, OperationalError):
            return TransientStoreError(f"Database unavailable for {table}: {e}")
        return FatalStoreError(f"Database error for {table}: {e}")

    def has_table(self, table: str) -> bool:
        try:
            with self._session_factory() as session:
                return session.get(StoredTable, table) is not None
        except SQLAlchemyError as e:
            raise self._translate(table, e) from e

    def read_table(self, table: str) -> TableData:
        try:
            with self._session_factory() as session:
                registry = session.get(StoredTable, table)
                if registry is None:
                    raise TableNotFoundError(table)
                payloads = session.scalars(
                    select(StoredRow.payload)
                    .where(StoredRow.table_name == table)
                    .order_by(StoredRow.position, StoredRow.id)
                ).all()
        except SQLAlchemyError as e:
            raise self._translate(table, e) from e

        header = list(registry.header or [])
        rows = [{h: str(p.get(h, "")) for h in header} for p in payloads]
        return TableData(name=table, header=header, rows=rows)

    def _write(self, table: str, header: List[str], rows: List[Row], replace: bool) -> None:
        try:
            with self._session_factory() as session, session.begin():
                registry = session.get(StoredTable, table)
                if replace:
                    if registry is None:
                        session.add(StoredTable(name=table, header=list(header)))
                    else:
                        registry.header = list(header)
                    session.execute(delete(StoredRow).where(StoredRow.table_name == table))
                    start = 0
                else:
                    if registry is None:
                        raise TableNotFoundError(table)
                    last = session.scalar(
                        select(func.max(StoredRow.position)).where(StoredRow.table_name == table)
                    )
                    start = 0 if last is None else last + 1

                session.add_all(
                    StoredRow(table_name=table, position=start + i, payload=dict(r))
                    for i, r in enumerate(rows)
                )
        except SQLAlchemyError as e:
            raise self._translate(table, e) from e

        logger.debug(
            "Rows written",
            table=table,
            rows=len(rows),
            mode="overwrite" if replace else "append",
        )
