import pytest
from sqlalchemy.dialects import sqlite

from conftest import makeTypes
from typestore.core.exceptions import InvalidFilterError, InvalidQueryError
from typestore.query.compositor import ListQuery, composeListQuery, projectedLabels


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=sqlite.dialect()))


def test_list_query_is_immutable(petTypes):
    query = ListQuery(type=petTypes["User"])
    filtered = query.withFilters("age>=18")
    paged = filtered.withLimit(5).withOffset(10)

    assert query.filters == ()
    assert filtered.filters == ("age>=18",)
    assert (filtered.limit, filtered.offset) == (100, 0)
    assert (paged.limit, paged.offset) == (5, 10)
    assert paged.withExpands("pets").expands == ("pets",)
    assert paged.expands == ()


def test_plain_type_selects_native_columns_only():
    types = makeTypes(("Pet", [{"name": "name", "type": "String"}]))
    stmt = composeListQuery(ListQuery(type=types["Pet"]))

    assert list(stmt.selected_columns.keys()) == ["id", "name"]
    assert "JOIN" not in _sql(stmt)


def test_array_properties_are_joined_and_projected(petTypes):
    stmt = composeListQuery(ListQuery(type=petTypes["User"]))
    sql = _sql(stmt)

    assert list(stmt.selected_columns.keys()) == [
        "id", "name", "age", "bestFriend", "tags", "_tags_row", "pets", "_pets_row",
    ]
    assert sql.count("LEFT OUTER JOIN") == 2
    assert '"User_tags"' in sql and '"User_pets"' in sql


def test_expands_project_prefixed_target_columns(petTypes):
    query = ListQuery(type=petTypes["User"], expands=("pets", "bestFriend"))
    stmt = composeListQuery(query)
    keys = list(stmt.selected_columns.keys())
    sql = _sql(stmt)

    assert keys[-4:] == ["pets_id", "pets_name", "bestFriend_id", "bestFriend_name"]
    assert sql.count("LEFT OUTER JOIN") == 4
    assert '"Pet" AS "Pet_pets"' in sql
    assert '"Pet" AS "Pet_bestFriend"' in sql


def test_projected_labels_cover_every_expandable_column(petTypes):
    user = petTypes["User"]
    query = ListQuery(type=user, expands=("pets", "bestFriend"))

    assert sorted(composeListQuery(query).selected_columns.keys()) == sorted(projectedLabels(user))


def test_invalid_expands_are_ignored(petTypes):
    query = ListQuery(type=petTypes["User"], expands=("name", "missing", "pets", "pets"))

    assert [p.name for p in query.expandProperties] == ["pets"]
    assert _sql(composeListQuery(query)).count('AS "Pet_pets"') == 1


def test_direct_filters_and_pagination_live_in_base_subquery(petTypes):
    query = ListQuery(type=petTypes["User"], filters=("age>=18",), limit=5, offset=10)
    sql = _sql(composeListQuery(query))

    base = sql[sql.index("(SELECT"):sql.index(') AS "User"')]
    assert "age >=" in base
    assert "LIMIT" in base and "OFFSET" in base
    assert "JOIN" not in base


def test_array_filters_become_exists_against_side_table(petTypes):
    sql = _sql(composeListQuery(ListQuery(type=petTypes["User"], filters=("tags=3",))))

    assert "EXISTS (SELECT" in sql
    assert '"User_tags_match0"' in sql


def test_self_referencing_array_expand_gets_distinct_alias():
    types = makeTypes(("Person", [
        {"name": "name", "type": "String"},
        {"name": "friends", "type": ["Person"]},
    ]))
    sql = _sql(composeListQuery(ListQuery(type=types["Person"], expands=("friends",))))

    assert 'LEFT OUTER JOIN "Person_friends" ON' in sql
    assert '"Person" AS "Person_friends_expand"' in sql


def test_negative_pagination_is_rejected(petTypes):
    with pytest.raises(InvalidQueryError):
        composeListQuery(ListQuery(type=petTypes["User"], limit=-1))
    with pytest.raises(InvalidQueryError):
        composeListQuery(ListQuery(type=petTypes["User"], offset=-5))


def test_bad_filter_fails_composition(petTypes):
    with pytest.raises(InvalidFilterError):
        composeListQuery(ListQuery(type=petTypes["User"], filters=("nope=1",)))
