from typing import Dict, List, Tuple

import pytest

from typestore.core.config import Settings
from typestore.db.ddl import ColumnSpec
from typestore.db.session import createEngine
from typestore.models.api_models import SchemaDefinition, buildTypeGraph
from typestore.services.type_adapter import TypeStoreAdapter


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeDdl:
    """In-memory DDL collaborator recording every request it receives."""

    def __init__(self, existing=()):
        self.tables: Dict[str, List[ColumnSpec]] = {name: [] for name in existing}
        self.existsCalls: List[str] = []
        self.createCalls: List[Tuple[str, List[ColumnSpec]]] = []

    async def tableExists(self, name: str) -> bool:
        self.existsCalls.append(name)
        return name in self.tables

    async def createTable(self, name: str, columnSpecs: List[ColumnSpec]) -> None:
        self.createCalls.append((name, list(columnSpecs)))
        self.tables[name] = list(columnSpecs)

    @property
    def createdNames(self) -> List[str]:
        return [name for name, _ in self.createCalls]


def makeTypes(*definitions):
    """Build linked types from compact ``(name, [property dicts])`` tuples."""
    document = SchemaDefinition.model_validate({
        "types": [{"name": name, "properties": props} for name, props in definitions]
    })
    return buildTypeGraph(document)


PET_SCHEMA = [
    ("User", [
        {"name": "name", "type": "String", "uniq": True},
        {"name": "age", "type": "Integer", "nullable": True},
        {"name": "tags", "type": ["Integer"]},
        {"name": "pets", "type": ["Pet"]},
        {"name": "bestFriend", "type": "Pet", "nullable": True},
    ]),
    ("Pet", [
        {"name": "name", "type": "String"},
    ]),
]


@pytest.fixture
def fakeDdl() -> FakeDdl:
    return FakeDdl()


@pytest.fixture
def petTypes():
    return makeTypes(*PET_SCHEMA)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(databaseUrl=f"sqlite+aiosqlite:///{tmp_path / 'typestore.db'}", logLevel="DEBUG")


@pytest.fixture
async def engine(settings):
    engine = createEngine(settings)
    yield engine
    await engine.dispose()


@pytest.fixture
async def adapter(engine) -> TypeStoreAdapter:
    return TypeStoreAdapter.fromBind(engine)


@pytest.fixture
async def petAdapter(adapter, petTypes) -> TypeStoreAdapter:
    await adapter.materializeSchema(petTypes.values())
    return adapter
