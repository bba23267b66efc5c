import logging
from typing import Any, Dict, Iterable, List, Sequence

from typestore.crud.crud_record import crudRecord
from typestore.db.ddl import SqlAlchemyDdl
from typestore.db.executor import Bind, StatementExecutor
from typestore.models.type_models import TypeDef
from typestore.query.compositor import DEFAULT_LIMIT, ListQuery, composeListQuery
from typestore.query.reconstructor import reconstructRecords
from typestore.schema.materializer import DdlCollaborator, SchemaMaterializer

logger = logging.getLogger(__name__)


class TypeStoreAdapter:
    """Typed list/get/insert/update/remove over a relational engine.

    Built over an engine, every statement runs in its own short transaction.
    Built over a connection, statements join whatever transaction the caller
    has open on it; that is the only way to make a write atomic.
    """

    def __init__(self, executor: StatementExecutor, ddl: DdlCollaborator):
        self.executor = executor
        self.materializer = SchemaMaterializer(ddl)

    @classmethod
    def fromBind(cls, bind: Bind) -> "TypeStoreAdapter":
        return cls(StatementExecutor(bind), SqlAlchemyDdl(bind))

    async def materializeSchema(self, types: Iterable[TypeDef]) -> List[TypeDef]:
        return await self.materializer.materializeSchema(types)

    async def list(
        self,
        typeDef: TypeDef,
        filters: Sequence[str] = (),
        expands: Sequence[str] = (),
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        query = (
            ListQuery(type=typeDef)
            .withFilters(*filters)
            .withExpands(*expands)
            .withLimit(limit)
            .withOffset(offset)
        )
        rows = await self.executor.fetchAll(composeListQuery(query))
        records = reconstructRecords(rows, typeDef, query.expandProperties)
        logger.debug("Listed %d %s record(s) from %d row(s)", len(records), typeDef.name, len(rows))
        return records

    async def get(self, typeDef: TypeDef, recordId: Any, expands: Sequence[str] = ()) -> List[Dict[str, Any]]:
        return await self.list(typeDef, filters=[f"id={recordId}"], expands=expands)

    async def insert(self, typeDef: TypeDef, data: Dict[str, Any]) -> List[Any]:
        return await crudRecord.upsert(self.executor, typeDef, data)

    async def update(self, typeDef: TypeDef, recordId: Any, data: Dict[str, Any]) -> List[Any]:
        return await crudRecord.upsert(self.executor, typeDef, data, recordId=recordId)

    async def remove(self, typeDef: TypeDef, recordId: Any) -> int:
        return await crudRecord.remove(self.executor, typeDef, recordId)
