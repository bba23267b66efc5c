import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict

from typestore.api.deps import getAdapter, getTypes
from typestore.core.exceptions import (
    BaseTypeStoreException, ErrorResponse, TypeStoreError, ValidationException, translateDatabaseError
)
from typestore.models.api_models import MaterializeSchemaResponse, SchemaDefinition
from typestore.models.type_models import TypeDef
from typestore.services.type_adapter import TypeStoreAdapter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/schema",
    tags=["Schema"],
    responses={
        400: {"model": ErrorResponse}, 500: {"model": ErrorResponse, "description": "Internal Server Error"}
    }
)

@router.get("", response_model=SchemaDefinition, response_model_exclude_defaults=True)
async def getSchemaEndpoint(request: Request):
    return request.app.state.schemaDocument

@router.post("/materialize", response_model=MaterializeSchemaResponse)
async def materializeSchemaEndpoint(
    adapter: TypeStoreAdapter = Depends(getAdapter),
    types: Dict[str, TypeDef] = Depends(getTypes)
):
    try:
        order = await adapter.materializeSchema(types.values())
        return MaterializeSchemaResponse(types=[t.name for t in order])
    except BaseTypeStoreException as e:
        raise e
    except TypeStoreError as e:
        raise ValidationException(message=str(e))
    except SQLAlchemyError as e:
        logger.exception("Schema materialization failed")
        raise translateDatabaseError(e)
