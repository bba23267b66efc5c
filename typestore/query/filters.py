import operator
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, List, Optional, Tuple

from typestore.core.exceptions import InvalidFilterError
from typestore.models.type_models import (
    ArrayType, PropertyDef, PropertyType, ReferenceType, ScalarKind, ScalarType, TypeDef
)

# Two-character operators come first so "age<=3" is not read as "age<" "=3"
FILTER_PATTERN = re.compile(r"^([^<>=]+)(<=|>=|<|>|=)([^<>=]+)$")

OPERATORS: dict = {
    "<": operator.lt,
    ">": operator.gt,
    "=": operator.eq,
    "<=": operator.le,
    ">=": operator.ge,
}

_BOOLEAN_LITERALS = {"true": True, "1": True, "false": False, "0": False}


@dataclass(frozen=True)
class Filter:
    name: str
    operation: str
    value: Any
    prop: Optional[PropertyDef] = None  # None for the implicit id column

    @property
    def isArrayFilter(self) -> bool:
        return self.prop is not None and self.prop.isArray

    @property
    def compare(self) -> Callable[[Any, Any], Any]:
        return OPERATORS[self.operation]


def _coerce(text: str, propertyType: Optional[PropertyType]) -> Any:
    if propertyType is None or isinstance(propertyType, ReferenceType):
        return int(text)
    if isinstance(propertyType, ArrayType):
        return _coerce(text, propertyType.element)
    if isinstance(propertyType, ScalarType):
        kind = propertyType.kind
        if kind is ScalarKind.INTEGER:
            return int(text)
        if kind is ScalarKind.FLOAT:
            return float(text)
        if kind is ScalarKind.BOOLEAN:
            if text.lower() not in _BOOLEAN_LITERALS:
                raise ValueError(f"'{text}' is not a boolean literal")
            return _BOOLEAN_LITERALS[text.lower()]
        if kind is ScalarKind.DATE:
            return date.fromisoformat(text)
        if kind in (ScalarKind.STRING, ScalarKind.TEXT):
            return text
    raise TypeError(f"Cannot coerce filter value for {propertyType!r}")


def parseFilter(filterText: str, typeDef: TypeDef) -> Filter:
    match = FILTER_PATTERN.match(filterText)
    if match is None:
        raise InvalidFilterError(filterText, "expected <name><op><value> with op one of <, >, =, <=, >=")
    name, operation, rawValue = match.group(1), match.group(2), match.group(3)

    prop = None
    if name != "id":
        prop = typeDef.getProperty(name)
        if prop is None:
            raise InvalidFilterError(filterText, f"type '{typeDef.name}' has no property '{name}'")

    try:
        value = _coerce(rawValue, prop.type if prop is not None else None)
    except ValueError as e:
        raise InvalidFilterError(filterText, str(e)) from e
    return Filter(name=name, operation=operation, value=value, prop=prop)


def partitionFilters(filters: Iterable[str], typeDef: TypeDef) -> Tuple[List[Filter], List[Filter]]:
    """Parse filter strings and split them into (direct, array) filters."""
    direct, arrays = [], []
    for filterText in filters:
        parsed = parseFilter(filterText, typeDef)
        (arrays if parsed.isArrayFilter else direct).append(parsed)
    return direct, arrays
