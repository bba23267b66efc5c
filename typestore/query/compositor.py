"""Composition of list queries.

A list query is a single SELECT built in three layers:

1. a base subquery over the primary table carrying filters and pagination,
   aliased with the type name;
2. one LEFT OUTER JOIN per array property against its side table, projecting
   ``side.value AS <property>``;
3. one LEFT OUTER JOIN per expand against the related primary table, projecting
   its columns as ``<property>_<column>``.

Array joins multiply rows; ``typestore.query.reconstructor`` folds them back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Tuple

from sqlalchemy import Table, exists, select
from sqlalchemy.sql.expression import Select

from typestore.core.exceptions import InvalidQueryError
from typestore.db.tables import primaryTable, sideTable
from typestore.models.type_models import ArrayType, PropertyDef, ReferenceType, TypeDef
from typestore.query.filters import Filter, partitionFilters

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def sideRowLabel(prop: PropertyDef) -> str:
    """Label of the side-table row id projected next to each array value."""
    return f"_{prop.name}_row"


def expandLabel(prop: PropertyDef, columnName: str) -> str:
    return f"{prop.name}_{columnName}"


def projectedLabels(typeDef: TypeDef) -> List[str]:
    """Every result label a list query over ``typeDef`` can project, with all relations expanded."""
    labels = list(typeDef.nativeColumnNames)
    for prop in typeDef.arrayProperties:
        labels.extend([prop.name, sideRowLabel(prop)])
    for prop in typeDef.properties:
        if prop.isRelation:
            labels.extend(expandLabel(prop, name) for name in prop.referencedType.nativeColumnNames)
    return labels


@dataclass(frozen=True)
class ListQuery:
    type: TypeDef
    filters: Tuple[str, ...] = ()
    expands: Tuple[str, ...] = ()
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def withFilters(self, *filters: str) -> ListQuery:
        return replace(self, filters=self.filters + tuple(filters))

    def withExpands(self, *expands: str) -> ListQuery:
        return replace(self, expands=self.expands + tuple(expands))

    def withLimit(self, limit: int) -> ListQuery:
        return replace(self, limit=limit)

    def withOffset(self, offset: int) -> ListQuery:
        return replace(self, offset=offset)

    @property
    def expandProperties(self) -> List[PropertyDef]:
        """Requested expands that name relation properties, in request order."""
        result = []
        for name in self.expands:
            prop = self.type.getProperty(name)
            if prop is None or not prop.isRelation:
                logger.debug("Ignoring expand '%s' on type %s: not a relation", name, self.type.name)
                continue
            if prop not in result:
                result.append(prop)
        return result


def _buildBaseQuery(query: ListQuery, directFilters: List[Filter], arrayFilters: List[Filter]):
    typeDef = query.type
    baseTable = primaryTable(typeDef)
    stmt = select(*baseTable.c)

    for f in directFilters:
        stmt = stmt.where(f.compare(baseTable.c[f.name], f.value))

    for index, f in enumerate(arrayFilters):
        side = sideTable(typeDef, f.prop).alias(f"{typeDef.sideTableName(f.prop)}_match{index}")
        stmt = stmt.where(
            exists()
            .where(side.c[typeDef.name] == baseTable.c.id)
            .where(f.compare(side.c.value, f.value))
        )

    return stmt.order_by(baseTable.c.id).limit(query.limit).offset(query.offset).subquery(typeDef.name)


def composeListQuery(query: ListQuery) -> Select:
    if query.limit < 0 or query.offset < 0:
        raise InvalidQueryError(f"limit and offset must be non-negative, got {query.limit}/{query.offset}")

    typeDef = query.type
    directFilters, arrayFilters = partitionFilters(query.filters, typeDef)
    base = _buildBaseQuery(query, directFilters, arrayFilters)

    columns = [base.c.id]
    columns.extend(base.c[p.name] for p in typeDef.nativeProperties)
    fromClause = base
    usedNames = {typeDef.name}

    sideTables: Dict[str, Table] = {}
    for prop in typeDef.arrayProperties:
        side = sideTable(typeDef, prop)
        sideTables[prop.name] = side
        usedNames.add(side.name)
        columns.append(side.c.value.label(prop.name))
        columns.append(side.c.id.label(sideRowLabel(prop)))
        fromClause = fromClause.outerjoin(side, side.c[typeDef.name] == base.c.id)

    for prop in query.expandProperties:
        target = prop.referencedType
        aliasName = f"{target.name}_{prop.name}"
        # A self-referencing array expand would otherwise reuse its own side table's name
        while aliasName in usedNames:
            aliasName = f"{aliasName}_expand"
        usedNames.add(aliasName)
        targetTable = primaryTable(target).alias(aliasName)

        columns.extend(targetTable.c[name].label(expandLabel(prop, name)) for name in target.nativeColumnNames)

        if isinstance(prop.type, ArrayType):
            onClause = sideTables[prop.name].c.value == targetTable.c.id
        elif isinstance(prop.type, ReferenceType):
            onClause = base.c[prop.name] == targetTable.c.id
        else:
            raise TypeError(f"Cannot expand scalar property '{prop.name}'")
        fromClause = fromClause.outerjoin(targetTable, onClause)

    orderBy = [base.c.id, *(side.c.id for side in sideTables.values())]
    return select(*columns).select_from(fromClause).order_by(*orderBy)
