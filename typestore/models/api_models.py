from collections import Counter
from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Any, Union

from typestore.core.exceptions import SchemaDefinitionError
from typestore.models.type_models import (
    SCALAR_KIND_NAMES, ArrayType, PropertyDef, ReferenceType, ScalarType, TypeDef
)
from typestore.query.compositor import projectedLabels

class PropertyDefinition(BaseModel):
    name: str = Field(min_length=1)
    # A scalar kind or type name, or a one-element list of either for array properties
    type: Union[str, List[str]]
    uniq: bool = False
    nullable: bool = False

    @field_validator("type")
    @classmethod
    def checkArrayShape(cls, value):
        if isinstance(value, list) and len(value) != 1:
            raise ValueError("array property types must contain exactly one element type")
        return value

class TypeDefinition(BaseModel):
    name: str = Field(min_length=1)
    properties: List[PropertyDefinition] = Field(default_factory=list)

class SchemaDefinition(BaseModel):
    types: List[TypeDefinition]

class RecordIdsResponse(BaseModel):
    ids: List[int]

class DeleteRecordResponse(BaseModel):
    deleted: int

class MaterializeSchemaResponse(BaseModel):
    types: List[str]

Record = Dict[str, Any]


def _buildPropertyType(typeName: str, propertyName: str, declared: str, typesByName: Dict[str, TypeDef]):
    if declared in SCALAR_KIND_NAMES:
        return ScalarType(SCALAR_KIND_NAMES[declared])
    if declared in typesByName:
        return ReferenceType(typesByName[declared])
    raise SchemaDefinitionError(
        f"Property '{typeName}.{propertyName}' references unknown type '{declared}'"
    )

def buildTypeGraph(schema: SchemaDefinition) -> Dict[str, TypeDef]:
    """Link a schema document into ``TypeDef`` objects keyed by type name."""
    typesByName: Dict[str, TypeDef] = {}
    for definition in schema.types:
        if definition.name in typesByName:
            raise SchemaDefinitionError(f"Duplicate type name '{definition.name}'")
        typesByName[definition.name] = TypeDef(name=definition.name)

    sideTableNames = set()
    for definition in schema.types:
        typeDef = typesByName[definition.name]
        for propDefinition in definition.properties:
            if propDefinition.name == "id":
                raise SchemaDefinitionError(f"Type '{definition.name}' declares reserved property 'id'")
            if typeDef.getProperty(propDefinition.name) is not None:
                raise SchemaDefinitionError(
                    f"Duplicate property '{propDefinition.name}' on type '{definition.name}'"
                )

            if isinstance(propDefinition.type, list):
                element = _buildPropertyType(
                    definition.name, propDefinition.name, propDefinition.type[0], typesByName
                )
                propertyType = ArrayType(element)
            else:
                propertyType = _buildPropertyType(
                    definition.name, propDefinition.name, propDefinition.type, typesByName
                )

            prop = PropertyDef(
                name=propDefinition.name,
                type=propertyType,
                uniq=propDefinition.uniq,
                nullable=propDefinition.nullable,
            )
            typeDef.properties.append(prop)
            if prop.isArray:
                sideTableNames.add(typeDef.sideTableName(prop))

    collisions = sorted(sideTableNames & set(typesByName))
    if collisions:
        raise SchemaDefinitionError(
            f"Side tables collide with declared type names: {', '.join(collisions)}"
        )

    # Every label a list query can project must be unique per type
    for typeDef in typesByName.values():
        labelCounts = Counter(projectedLabels(typeDef))
        ambiguous = sorted(label for label, count in labelCounts.items() if count > 1)
        if ambiguous:
            raise SchemaDefinitionError(
                f"Type '{typeDef.name}' has ambiguous result columns: {', '.join(ambiguous)}"
            )
    return typesByName
