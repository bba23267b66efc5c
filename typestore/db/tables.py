"""SQLAlchemy table shapes for reading and writing materialized types.

Each call builds its table against a fresh ``MetaData`` so the same type can be
used more than once in a single statement (self-references, aliases).
"""

from typing import Optional

from sqlalchemy import Boolean, Column, Date, Float, Integer, MetaData, String, Table, Text

from typestore.models.type_models import (
    ArrayType, PropertyDef, PropertyType, ReferenceType, ScalarKind, ScalarType, TypeDef
)

SQL_TYPES = {
    ScalarKind.INTEGER: Integer,
    ScalarKind.STRING: String,
    ScalarKind.TEXT: Text,
    ScalarKind.DATE: Date,
    ScalarKind.FLOAT: Float,
    ScalarKind.BOOLEAN: Boolean,
}


def sqlType(propertyType: PropertyType):
    if isinstance(propertyType, ScalarType):
        return SQL_TYPES[propertyType.kind]
    if isinstance(propertyType, ReferenceType):
        return Integer
    raise TypeError(f"{propertyType!r} has no column representation")


def primaryTable(typeDef: TypeDef, metadata: Optional[MetaData] = None) -> Table:
    return Table(
        typeDef.name,
        metadata if metadata is not None else MetaData(),
        Column("id", Integer, primary_key=True),
        *(Column(p.name, sqlType(p.type)) for p in typeDef.nativeProperties),
    )


def sideTable(typeDef: TypeDef, prop: PropertyDef, metadata: Optional[MetaData] = None) -> Table:
    if not isinstance(prop.type, ArrayType):
        raise TypeError(f"Property '{typeDef.name}.{prop.name}' has no side table")
    return Table(
        typeDef.sideTableName(prop),
        metadata if metadata is not None else MetaData(),
        Column("id", Integer, primary_key=True),
        Column(typeDef.name, Integer),
        Column("value", sqlType(prop.type.element)),
    )
