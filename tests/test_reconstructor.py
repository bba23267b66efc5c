from conftest import makeTypes
from typestore.query.reconstructor import reconstructRecords


def _expands(typeDef, *names):
    return [typeDef.getProperty(name) for name in names]


def test_plain_rows_map_one_to_one():
    pet = makeTypes(("Pet", [{"name": "name", "type": "String"}]))["Pet"]
    rows = [{"id": 2, "name": "Rex"}, {"id": 1, "name": "Tom"}]

    assert reconstructRecords(rows, pet) == [{"id": 2, "name": "Rex"}, {"id": 1, "name": "Tom"}]


def test_scalar_array_keeps_stored_duplicates(petTypes):
    user = petTypes["User"]
    rows = [
        {"id": 1, "name": "Ann", "age": None, "bestFriend": None,
         "tags": value, "_tags_row": rowId, "pets": None, "_pets_row": None}
        for rowId, value in [(10, 1), (11, 2), (12, 2)]
    ]

    [record] = reconstructRecords(rows, user)

    assert record == {"id": 1, "name": "Ann", "age": None, "bestFriend": None, "tags": [1, 2, 2], "pets": []}


def test_join_multiplication_is_folded_away(petTypes):
    user = petTypes["User"]
    rows = []
    for tagRow, tag in [(10, 5), (11, 5)]:
        for petRow, pet in [(20, 7), (21, 8)]:
            rows.append({"id": 1, "name": "Ann", "age": 30, "bestFriend": None,
                         "tags": tag, "_tags_row": tagRow, "pets": pet, "_pets_row": petRow})

    [record] = reconstructRecords(rows, user)

    assert record["tags"] == [5, 5]
    assert record["pets"] == [7, 8]


def test_groups_follow_first_appearance_order(petTypes):
    user = petTypes["User"]
    base = {"age": None, "bestFriend": None, "pets": None, "_pets_row": None}
    rows = [
        {**base, "id": 3, "name": "C", "tags": 1, "_tags_row": 1},
        {**base, "id": 1, "name": "A", "tags": None, "_tags_row": None},
        {**base, "id": 3, "name": "C", "tags": 2, "_tags_row": 2},
    ]

    records = reconstructRecords(rows, user)

    assert [r["id"] for r in records] == [3, 1]
    assert records[0]["tags"] == [1, 2]
    assert records[1]["tags"] == []


def test_object_array_expand_is_deduplicated_by_id(petTypes):
    user = petTypes["User"]
    rows = [
        {"id": 1, "name": "Ann", "age": None, "bestFriend": None, "tags": None, "_tags_row": None,
         "pets": petId, "_pets_row": rowId, "pets_id": petId, "pets_name": petName}
        for rowId, petId, petName in [(1, 4, "Rex"), (2, 4, "Rex"), (3, 5, "Tom")]
    ]

    [record] = reconstructRecords(rows, user, _expands(user, "pets"))

    assert record["pets"] == [{"id": 4, "name": "Rex"}, {"id": 5, "name": "Tom"}]
    assert "pets_id" not in record and "pets_name" not in record


def test_empty_to_one_expand_drops_the_key(petTypes):
    user = petTypes["User"]
    rows = [{"id": 1, "name": "Ann", "age": None, "bestFriend": None, "tags": None, "_tags_row": None,
             "pets": None, "_pets_row": None, "bestFriend_id": None, "bestFriend_name": None}]

    [record] = reconstructRecords(rows, user, _expands(user, "bestFriend"))

    assert "bestFriend" not in record
    assert record["pets"] == []


def test_to_one_expand_builds_nested_object(petTypes):
    user = petTypes["User"]
    rows = [{"id": 1, "name": "Ann", "age": None, "bestFriend": 9, "tags": None, "_tags_row": None,
             "pets": None, "_pets_row": None, "bestFriend_id": 9, "bestFriend_name": "Rex"}]

    [record] = reconstructRecords(rows, user, _expands(user, "bestFriend"))

    assert record["bestFriend"] == {"id": 9, "name": "Rex"}


def test_unexpanded_to_one_keeps_null_reference(petTypes):
    user = petTypes["User"]
    rows = [{"id": 1, "name": "Ann", "age": None, "bestFriend": None,
             "tags": None, "_tags_row": None, "pets": None, "_pets_row": None}]

    [record] = reconstructRecords(rows, user)

    assert "bestFriend" in record and record["bestFriend"] is None


def test_no_rows_yield_no_records(petTypes):
    assert reconstructRecords([], petTypes["User"]) == []
