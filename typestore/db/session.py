from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from typestore.core.config import Settings

def _enableSqliteForeignKeys(dbapiConnection, connectionRecord):
    cursor = dbapiConnection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def createEngine(settings: Settings) -> AsyncEngine:
    engine = create_async_engine(settings.databaseUrl, echo=settings.echoSql)
    if engine.dialect.name == "sqlite":
        # Side-table cascades rely on foreign key enforcement, which sqlite leaves off by default
        event.listen(engine.sync_engine, "connect", _enableSqliteForeignKeys)
    return engine
