"""Domain model for declarative object types.

A ``TypeDef`` owns an ordered list of ``PropertyDef``. The shape of each property
is one of three variants:

* ``ScalarType``    -- a native column (Integer, String, Text, Date, Float, Boolean)
* ``ReferenceType`` -- a to-one relation stored as an integer foreign key column
* ``ArrayType``     -- a to-many relation stored in a side table ``{type}_{property}``

``ReferenceType`` holds the target ``TypeDef`` itself, so a linked schema is an
object graph (possibly self-referential).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class ScalarKind(str, Enum):
    INTEGER = "Integer"
    STRING = "String"
    TEXT = "Text"
    DATE = "Date"
    FLOAT = "Float"
    BOOLEAN = "Boolean"

    @property
    def columnKind(self) -> str:
        return self.value.lower()


SCALAR_KIND_NAMES = {kind.value: kind for kind in ScalarKind}


@dataclass(frozen=True)
class ScalarType:
    kind: ScalarKind


@dataclass(frozen=True, eq=False)
class ReferenceType:
    target: "TypeDef" = field(repr=False)

    @property
    def targetName(self) -> str:
        return self.target.name

    def __repr__(self) -> str:
        return f"ReferenceType(target={self.target.name!r})"


@dataclass(frozen=True, eq=False)
class ArrayType:
    element: Union[ScalarType, ReferenceType]


PropertyType = Union[ScalarType, ReferenceType, ArrayType]


@dataclass(eq=False)
class PropertyDef:
    name: str
    type: PropertyType
    uniq: bool = False
    nullable: bool = False

    @property
    def isArray(self) -> bool:
        return isinstance(self.type, ArrayType)

    @property
    def referencedType(self) -> Optional["TypeDef"]:
        """The related type for to-one and to-many relations, None for scalars."""
        propertyType = self.type
        if isinstance(propertyType, ArrayType):
            propertyType = propertyType.element
        if isinstance(propertyType, ReferenceType):
            return propertyType.target
        return None

    @property
    def isRelation(self) -> bool:
        return self.referencedType is not None


@dataclass(eq=False)
class TypeDef:
    name: str
    properties: List[PropertyDef] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"TypeDef(name={self.name!r}, properties={[p.name for p in self.properties]!r})"

    def getProperty(self, name: str) -> Optional[PropertyDef]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    @property
    def arrayProperties(self) -> List[PropertyDef]:
        return [p for p in self.properties if p.isArray]

    @property
    def nativeProperties(self) -> List[PropertyDef]:
        """Properties stored as columns of the primary table."""
        return [p for p in self.properties if not p.isArray]

    @property
    def nativeColumnNames(self) -> List[str]:
        return ["id", *(p.name for p in self.nativeProperties)]

    def sideTableName(self, prop: PropertyDef) -> str:
        return f"{self.name}_{prop.name}"

    def dependencies(self) -> List["TypeDef"]:
        """Distinct referenced types in property order, excluding self-references."""
        seen = set()
        result = []
        for prop in self.properties:
            target = prop.referencedType
            if target is None or target.name == self.name or target.name in seen:
                continue
            seen.add(target.name)
            result.append(target)
        return result
