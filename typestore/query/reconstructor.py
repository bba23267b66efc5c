"""Folding of flat joined rows back into nested records.

Scalar arrays keep one value per side-table row, so values stored twice stay
twice while copies produced by joining other array properties are dropped.
Object arrays are de-duplicated by object id.
"""

from typing import Any, Dict, Iterable, List, Mapping

from typestore.models.type_models import ArrayType, PropertyDef, ReferenceType, ScalarType, TypeDef
from typestore.query.compositor import expandLabel, sideRowLabel


def _foldExpand(row: Dict[str, Any], prop: PropertyDef) -> Dict[str, Any]:
    """Replace the ``<property>_<column>`` columns of one row with a nested object."""
    columnNames = prop.referencedType.nativeColumnNames
    labels = {expandLabel(prop, name): name for name in columnNames}
    folded = {key: value for key, value in row.items() if key not in labels}

    if row.get(prop.name) is None:
        folded.pop(prop.name, None)
    else:
        folded[prop.name] = {name: row.get(label) for label, name in labels.items()}
    return folded


def _mergeArray(group: List[Dict[str, Any]], prop: PropertyDef) -> List[Any]:
    element = prop.type.element
    values = []

    if isinstance(element, ScalarType):
        # One value per side-table row: drops copies made by other array joins, keeps stored duplicates
        seenRows = set()
        rowLabel = sideRowLabel(prop)
        for row in group:
            value = row.get(prop.name)
            if value is None:
                continue
            rowId = row.get(rowLabel)
            if rowId is not None:
                if rowId in seenRows:
                    continue
                seenRows.add(rowId)
            values.append(value)
    elif isinstance(element, ReferenceType):
        seenIds = set()
        for row in group:
            value = row.get(prop.name)
            if value is None:
                continue
            objectId = value.get("id") if isinstance(value, Mapping) else value
            if objectId in seenIds:
                continue
            seenIds.add(objectId)
            values.append(value)
    else:
        raise TypeError(f"Unsupported array element {element!r} on '{prop.name}'")
    return values


def _mergeGroup(group: List[Dict[str, Any]], typeDef: TypeDef) -> Dict[str, Any]:
    first = group[0]
    record = {"id": first["id"]}
    for prop in typeDef.properties:
        if isinstance(prop.type, ArrayType):
            record[prop.name] = _mergeArray(group, prop)
        elif isinstance(prop.type, (ScalarType, ReferenceType)):
            # Absent when an expanded to-one relation is empty
            if prop.name in first:
                record[prop.name] = first[prop.name]
        else:
            raise TypeError(f"Unsupported property type {prop.type!r} on '{prop.name}'")
    return record


def reconstructRecords(
    rows: Iterable[Mapping[str, Any]], typeDef: TypeDef, expands: Iterable[PropertyDef] = ()
) -> List[Dict[str, Any]]:
    """Rebuild one nested record per distinct id, in order of first appearance."""
    groups: Dict[Any, List[Dict[str, Any]]] = {}
    for row in rows:
        groups.setdefault(row["id"], []).append(dict(row))

    for prop in expands:
        for recordId, group in groups.items():
            groups[recordId] = [_foldExpand(row, prop) for row in group]

    return [_mergeGroup(group, typeDef) for group in groups.values()]
