from fastapi import Request, Path
from typing import Dict

from typestore.core.config import Settings
from typestore.core.exceptions import NoSuchTypeException
from typestore.models.type_models import TypeDef
from typestore.services.type_adapter import TypeStoreAdapter

def getSettings(request: Request) -> Settings:
    return request.app.state.settings

def getAdapter(request: Request) -> TypeStoreAdapter:
    return request.app.state.adapter

def getTypes(request: Request) -> Dict[str, TypeDef]:
    return request.app.state.types

def getType(request: Request, typeName: str = Path(..., description="Declared type name, e.g. 'User'")) -> TypeDef:
    typeDef = getTypes(request).get(typeName)
    if typeDef is None:
        raise NoSuchTypeException(typeName)
    return typeDef
