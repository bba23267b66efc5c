import logging
from typing import Iterable, List, Protocol

from typestore.db.ddl import ColumnSpec, ForeignKeyReference
from typestore.models.type_models import (
    ArrayType, PropertyDef, PropertyType, ReferenceType, ScalarType, TypeDef
)
from typestore.schema.resolver import resolveTypes

logger = logging.getLogger(__name__)


class DdlCollaborator(Protocol):
    async def tableExists(self, name: str) -> bool: ...

    async def createTable(self, name: str, columnSpecs: List[ColumnSpec]) -> None: ...


def _valueColumn(name: str, propertyType: PropertyType, uniq: bool = False, nullable: bool = False) -> ColumnSpec:
    if isinstance(propertyType, ScalarType):
        return ColumnSpec(name=name, kind=propertyType.kind.columnKind, unique=uniq, nullable=nullable)
    if isinstance(propertyType, ReferenceType):
        return ColumnSpec(
            name=name,
            kind="integer",
            unique=uniq,
            nullable=nullable,
            references=ForeignKeyReference(table=propertyType.targetName, onDelete=None, onUpdate=None),
        )
    raise TypeError(f"Column '{name}' cannot hold a value of type {propertyType!r}")


def primaryTableColumns(typeDef: TypeDef) -> List[ColumnSpec]:
    columns = [ColumnSpec(name="id", kind="increments")]
    for prop in typeDef.nativeProperties:
        columns.append(_valueColumn(prop.name, prop.type, uniq=prop.uniq, nullable=prop.nullable))
    return columns


def sideTableColumns(typeDef: TypeDef, prop: PropertyDef) -> List[ColumnSpec]:
    if not isinstance(prop.type, ArrayType):
        raise TypeError(f"Property '{typeDef.name}.{prop.name}' is not an array property")
    return [
        ColumnSpec(name="id", kind="increments"),
        ColumnSpec(name=typeDef.name, kind="integer", references=ForeignKeyReference(table=typeDef.name)),
        _valueColumn("value", prop.type.element),
    ]


class SchemaMaterializer:
    def __init__(self, ddl: DdlCollaborator):
        self.ddl = ddl

    async def _ensureTable(self, name: str, columns: List[ColumnSpec]) -> bool:
        if await self.ddl.tableExists(name):
            logger.debug("Table %s already exists, skipping", name)
            return False
        await self.ddl.createTable(name, columns)
        return True

    async def materialize(self, typeDef: TypeDef) -> None:
        await self._ensureTable(typeDef.name, primaryTableColumns(typeDef))
        for prop in typeDef.arrayProperties:
            await self._ensureTable(typeDef.sideTableName(prop), sideTableColumns(typeDef, prop))

    async def materializeSchema(self, types: Iterable[TypeDef]) -> List[TypeDef]:
        order = await resolveTypes(types, self.materialize)
        logger.info("Materialized schema: %s", ", ".join(t.name for t in order))
        return order
