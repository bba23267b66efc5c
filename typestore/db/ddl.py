import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import (
    Boolean, Column, Date, Float, ForeignKey, Integer, MetaData, String, Table, Text, inspect
)

from typestore.db.executor import Bind, connectionScope

logger = logging.getLogger(__name__)

COLUMN_TYPES = {
    "integer": Integer,
    "string": lambda: String(255),
    "text": Text,
    "date": Date,
    "float": Float,
    "boolean": Boolean,
}


@dataclass(frozen=True)
class ForeignKeyReference:
    table: str
    column: str = "id"
    onDelete: Optional[str] = "CASCADE"
    onUpdate: Optional[str] = "CASCADE"


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    kind: str  # "increments" or a key of COLUMN_TYPES
    unique: bool = False
    nullable: bool = False
    references: Optional[ForeignKeyReference] = None


def buildColumn(spec: ColumnSpec) -> Column:
    if spec.kind == "increments":
        return Column(spec.name, Integer, primary_key=True, autoincrement=True)
    if spec.kind not in COLUMN_TYPES:
        raise ValueError(f"Unsupported column kind '{spec.kind}' for column '{spec.name}'")

    args = [spec.name, COLUMN_TYPES[spec.kind]()]
    if spec.references is not None:
        ref = spec.references
        args.append(ForeignKey(f"{ref.table}.{ref.column}", ondelete=ref.onDelete, onupdate=ref.onUpdate))
    return Column(*args, unique=spec.unique, nullable=spec.nullable)


def buildTable(name: str, columnSpecs: List[ColumnSpec]) -> Table:
    metadata = MetaData()
    # Referenced tables already exist; a key-only stand-in lets the FK resolve at compile time
    for spec in columnSpecs:
        ref = spec.references
        if ref is not None and ref.table != name and ref.table not in metadata.tables:
            Table(ref.table, metadata, Column(ref.column, Integer, primary_key=True))
    return Table(name, metadata, *(buildColumn(spec) for spec in columnSpecs))


class SqlAlchemyDdl:
    def __init__(self, bind: Bind):
        self.bind = bind

    async def tableExists(self, name: str) -> bool:
        async with connectionScope(self.bind) as conn:
            return await conn.run_sync(lambda syncConn: inspect(syncConn).has_table(name))

    async def createTable(self, name: str, columnSpecs: List[ColumnSpec]) -> None:
        table = buildTable(name, columnSpecs)
        async with connectionScope(self.bind) as conn:
            await conn.run_sync(table.create)
        logger.info("Created table %s (%s)", name, ", ".join(spec.name for spec in columnSpecs))
