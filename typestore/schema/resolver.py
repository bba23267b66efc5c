"""Dependency ordering for type definitions.

Every type referenced by a property (directly or as an array element) must be
materialized before the type that references it, because its primary table is
the target of a foreign key. Self-references are allowed; cycles between
distinct types are rejected before any callback runs.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List

from typestore.core.exceptions import CyclicTypeDependencyError
from typestore.models.type_models import TypeDef

logger = logging.getLogger(__name__)

MaterializeCallback = Callable[[TypeDef], Awaitable[None]]


class _VisitState(Enum):
    VISITING = 1
    VISITED = 2


def resolveOrder(types: Iterable[TypeDef]) -> List[TypeDef]:
    states: Dict[str, _VisitState] = {}
    order: List[TypeDef] = []
    path: List[str] = []

    def visit(typeDef: TypeDef) -> None:
        state = states.get(typeDef.name)
        if state is _VisitState.VISITED:
            return
        if state is _VisitState.VISITING:
            cycleStart = path.index(typeDef.name)
            raise CyclicTypeDependencyError(path[cycleStart:] + [typeDef.name])

        states[typeDef.name] = _VisitState.VISITING
        path.append(typeDef.name)
        for dependency in typeDef.dependencies():
            visit(dependency)
        path.pop()
        states[typeDef.name] = _VisitState.VISITED
        order.append(typeDef)

    for typeDef in types:
        visit(typeDef)
    return order


async def resolveTypes(types: Iterable[TypeDef], materialize: MaterializeCallback) -> List[TypeDef]:
    order = resolveOrder(types)
    logger.debug("Resolved type order: %s", [t.name for t in order])
    for typeDef in order:
        await materialize(typeDef)
    return order
