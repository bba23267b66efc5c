import pytest

from conftest import FakeDdl, makeTypes
from typestore.core.exceptions import CyclicTypeDependencyError
from typestore.db.ddl import ColumnSpec, ForeignKeyReference
from typestore.schema.materializer import SchemaMaterializer, primaryTableColumns, sideTableColumns


def test_primary_table_columns(petTypes):
    columns = primaryTableColumns(petTypes["User"])

    assert columns == [
        ColumnSpec(name="id", kind="increments"),
        ColumnSpec(name="name", kind="string", unique=True),
        ColumnSpec(name="age", kind="integer", nullable=True),
        ColumnSpec(
            name="bestFriend",
            kind="integer",
            nullable=True,
            references=ForeignKeyReference(table="Pet", onDelete=None, onUpdate=None),
        ),
    ]


def test_scalar_kinds_map_to_column_kinds():
    types = makeTypes(("Everything", [
        {"name": "i", "type": "Integer"},
        {"name": "s", "type": "String"},
        {"name": "t", "type": "Text"},
        {"name": "d", "type": "Date"},
        {"name": "f", "type": "Float"},
        {"name": "b", "type": "Boolean"},
    ]))
    kinds = [spec.kind for spec in primaryTableColumns(types["Everything"])]
    assert kinds == ["increments", "integer", "string", "text", "date", "float", "boolean"]


def test_side_table_columns_for_scalar_and_reference_arrays(petTypes):
    user = petTypes["User"]

    tags = sideTableColumns(user, user.getProperty("tags"))
    assert tags == [
        ColumnSpec(name="id", kind="increments"),
        ColumnSpec(name="User", kind="integer", references=ForeignKeyReference(table="User")),
        ColumnSpec(name="value", kind="integer"),
    ]
    assert tags[1].references.onDelete == "CASCADE"
    assert tags[1].references.onUpdate == "CASCADE"

    pets = sideTableColumns(user, user.getProperty("pets"))
    assert pets[2] == ColumnSpec(
        name="value", kind="integer", references=ForeignKeyReference(table="Pet", onDelete=None, onUpdate=None)
    )


def test_side_table_columns_reject_non_array_property(petTypes):
    user = petTypes["User"]
    with pytest.raises(TypeError):
        sideTableColumns(user, user.getProperty("name"))


async def test_materialize_schema_creates_tables_in_dependency_order(fakeDdl, petTypes):
    materializer = SchemaMaterializer(fakeDdl)

    order = await materializer.materializeSchema(petTypes.values())

    assert [t.name for t in order] == ["Pet", "User"]
    assert fakeDdl.createdNames == ["Pet", "User", "User_tags", "User_pets"]


async def test_second_materialization_issues_no_create_requests(fakeDdl, petTypes):
    materializer = SchemaMaterializer(fakeDdl)
    await materializer.materializeSchema(petTypes.values())
    createdFirst = len(fakeDdl.createCalls)

    await materializer.materializeSchema(petTypes.values())

    assert len(fakeDdl.createCalls) == createdFirst
    assert fakeDdl.existsCalls.count("User_pets") == 2


async def test_side_tables_created_when_primary_table_exists(petTypes):
    ddl = FakeDdl(existing=["Pet", "User", "User_tags"])

    await SchemaMaterializer(ddl).materializeSchema(petTypes.values())

    assert ddl.createdNames == ["User_pets"]


async def test_cyclic_schema_issues_no_ddl(fakeDdl):
    types = makeTypes(
        ("A", [{"name": "b", "type": "B"}]),
        ("B", [{"name": "a", "type": "A"}]),
    )
    with pytest.raises(CyclicTypeDependencyError):
        await SchemaMaterializer(fakeDdl).materializeSchema(types.values())
    assert fakeDdl.existsCalls == []
    assert fakeDdl.createCalls == []


async def test_ddl_failure_propagates(petTypes):
    class FailingDdl(FakeDdl):
        async def createTable(self, name, columnSpecs):
            if name == "User":
                raise RuntimeError("conflicting constraint")
            await super().createTable(name, columnSpecs)

    ddl = FailingDdl()
    with pytest.raises(RuntimeError, match="conflicting constraint"):
        await SchemaMaterializer(ddl).materializeSchema(petTypes.values())
    assert ddl.createdNames == ["Pet"]
