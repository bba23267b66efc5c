import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import delete, insert, update

from typestore.db.executor import StatementExecutor
from typestore.db.tables import primaryTable, sideTable
from typestore.models.type_models import (
    ArrayType, PropertyDef, PropertyType, ReferenceType, ScalarKind, ScalarType, TypeDef
)

logger = logging.getLogger(__name__)


def _prepareValue(propertyType: PropertyType, value: Any) -> Any:
    # JSON payloads carry dates as ISO strings
    if isinstance(propertyType, ScalarType) and propertyType.kind is ScalarKind.DATE and isinstance(value, str):
        return date.fromisoformat(value)
    return value


class CRUDRecord:
    def restrictAttributes(self, typeDef: TypeDef, data: Dict[str, Any]) -> Dict[str, Any]:
        known = {p.name for p in typeDef.properties}
        unknown = [key for key in data if key not in known]
        if unknown:
            logger.debug("Dropping unknown attributes for %s: %s", typeDef.name, unknown)
        return {key: value for key, value in data.items() if key in known}

    def splitAttributes(
        self, typeDef: TypeDef, data: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], Dict[PropertyDef, Any]]:
        baseData: Dict[str, Any] = {}
        arrayData: Dict[PropertyDef, Any] = {}
        for prop in typeDef.properties:
            if prop.name not in data:
                continue
            value = data[prop.name]
            if isinstance(prop.type, ArrayType):
                if value is not None and not isinstance(value, list):
                    raise ValueError(
                        f"Array property '{typeDef.name}.{prop.name}' expects a list, got {type(value).__name__}"
                    )
                arrayData[prop] = value
            elif isinstance(prop.type, (ScalarType, ReferenceType)):
                baseData[prop.name] = _prepareValue(prop.type, value)
            else:
                raise TypeError(f"Unsupported property type {prop.type!r} on '{prop.name}'")
        return baseData, arrayData

    async def replaceArrayValues(
        self, executor: StatementExecutor, typeDef: TypeDef, prop: PropertyDef, recordId: Any, values: Optional[List[Any]]
    ) -> None:
        side = sideTable(typeDef, prop)
        await executor.execute(delete(side).where(side.c[typeDef.name] == recordId))

        rows = [
            {typeDef.name: recordId, "value": _prepareValue(prop.type.element, value)}
            for value in (values or [])
        ]
        await executor.insertMany(insert(side), rows)

    async def upsert(
        self, executor: StatementExecutor, typeDef: TypeDef, data: Dict[str, Any], recordId: Optional[Any] = None
    ) -> List[Any]:
        attributes = self.restrictAttributes(typeDef, data)
        baseData, arrayData = self.splitAttributes(typeDef, attributes)
        table = primaryTable(typeDef)

        if recordId is None:
            stmt = insert(table).values(baseData) if baseData else insert(table)
            recordId = await executor.insert(stmt)
            logger.debug("Inserted %s %s", typeDef.name, recordId)
        elif baseData:
            await executor.execute(update(table).where(table.c.id == recordId).values(baseData))
            logger.debug("Updated %s %s", typeDef.name, recordId)

        for prop, values in arrayData.items():
            await self.replaceArrayValues(executor, typeDef, prop, recordId, values)

        return [recordId]

    async def remove(self, executor: StatementExecutor, typeDef: TypeDef, recordId: Any) -> int:
        table = primaryTable(typeDef)
        return await executor.execute(delete(table).where(table.c.id == recordId))

crudRecord = CRUDRecord()
