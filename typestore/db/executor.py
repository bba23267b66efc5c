from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Union

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from sqlalchemy.sql.expression import Delete, Executable, Insert, Update


Bind = Union[AsyncEngine, AsyncConnection]


@asynccontextmanager
async def connectionScope(bind: Bind) -> AsyncIterator[AsyncConnection]:
    """Yield a connection for one statement.

    An engine gets a short transaction per statement. A caller-supplied
    connection is used as is, so the caller's transaction (if any) applies.
    """
    if isinstance(bind, AsyncConnection):
        yield bind
    else:
        async with bind.begin() as conn:
            yield conn


class StatementExecutor:
    def __init__(self, bind: Bind):
        self.bind = bind

    async def fetchAll(self, stmt: Executable) -> List[Dict[str, Any]]:
        async with connectionScope(self.bind) as conn:
            result = await conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    async def insert(self, stmt: Insert) -> Any:
        """Execute an INSERT and return the generated primary key."""
        async with connectionScope(self.bind) as conn:
            result = await conn.execute(stmt)
            return result.inserted_primary_key[0]

    async def insertMany(self, stmt: Insert, rows: List[Dict[str, Any]]) -> None:
        if not rows:
            return
        async with connectionScope(self.bind) as conn:
            await conn.execute(stmt, rows)

    async def execute(self, stmt: Union[Update, Delete]) -> int:
        async with connectionScope(self.bind) as conn:
            result = await conn.execute(stmt)
            return result.rowcount
