import logging
from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, Optional

from typestore.api.deps import getAdapter, getSettings, getType
from typestore.core.config import Settings
from typestore.core.exceptions import (
    BaseTypeStoreException, ErrorResponse, NoSuchRecordException, TypeStoreError,
    ValidationException, translateDatabaseError
)
from typestore.models.api_models import DeleteRecordResponse, Record, RecordIdsResponse
from typestore.models.type_models import TypeDef
from typestore.services.type_adapter import TypeStoreAdapter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/types/{typeName}/records",
    tags=["Records"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request"},
        404: {"model": ErrorResponse, "description": "Not Found"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    }
)

def _databaseFailure(e: SQLAlchemyError, action: str, typeDef: TypeDef) -> BaseTypeStoreException:
    translated = translateDatabaseError(e)
    if translated.status_code >= 500:
        logger.exception("Failed to %s %s records", action, typeDef.name)
    else:
        logger.warning("Rejected %s on %s: %s", action, typeDef.name, translated.message)
    return translated


@router.get("", response_model=List[Record])
async def listRecordsEndpoint(
    filter: List[str] = Query([], description="Filter such as 'age>=18'; repeatable"),
    expand: List[str] = Query([], description="Relation property to embed; repeatable"),
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    typeDef: TypeDef = Depends(getType),
    adapter: TypeStoreAdapter = Depends(getAdapter),
    settings: Settings = Depends(getSettings)
):
    effectiveLimit = min(settings.defaultLimit if limit is None else limit, settings.maxLimit)
    try:
        return await adapter.list(typeDef, filters=filter, expands=expand, limit=effectiveLimit, offset=offset)
    except BaseTypeStoreException as e:
        raise e
    except TypeStoreError as e:
        raise ValidationException(message=str(e))
    except SQLAlchemyError as e:
        raise _databaseFailure(e, "list", typeDef)

@router.get("/{recordId}", response_model=Record)
async def getRecordEndpoint(
    recordId: int = Path(..., description="Record identifier"),
    expand: List[str] = Query([], description="Relation property to embed; repeatable"),
    typeDef: TypeDef = Depends(getType),
    adapter: TypeStoreAdapter = Depends(getAdapter)
):
    try:
        records = await adapter.get(typeDef, recordId, expands=expand)
        if not records:
            raise NoSuchRecordException(typeDef.name, recordId)
        return records[0]
    except BaseTypeStoreException as e:
        raise e
    except TypeStoreError as e:
        raise ValidationException(message=str(e))
    except SQLAlchemyError as e:
        raise _databaseFailure(e, "get", typeDef)

@router.post("", response_model=RecordIdsResponse)
async def insertRecordEndpoint(
    data: Dict[str, Any] = Body(...),
    typeDef: TypeDef = Depends(getType),
    adapter: TypeStoreAdapter = Depends(getAdapter)
):
    try:
        ids = await adapter.insert(typeDef, data)
        return RecordIdsResponse(ids=ids)
    except BaseTypeStoreException as e:
        raise e
    except (TypeStoreError, ValueError) as e:
        raise ValidationException(message=str(e))
    except SQLAlchemyError as e:
        raise _databaseFailure(e, "insert", typeDef)

@router.put("/{recordId}", response_model=RecordIdsResponse)
async def updateRecordEndpoint(
    recordId: int = Path(..., description="Record identifier"),
    data: Dict[str, Any] = Body(...),
    typeDef: TypeDef = Depends(getType),
    adapter: TypeStoreAdapter = Depends(getAdapter)
):
    try:
        ids = await adapter.update(typeDef, recordId, data)
        return RecordIdsResponse(ids=ids)
    except BaseTypeStoreException as e:
        raise e
    except (TypeStoreError, ValueError) as e:
        raise ValidationException(message=str(e))
    except SQLAlchemyError as e:
        raise _databaseFailure(e, "update", typeDef)

@router.delete("/{recordId}", response_model=DeleteRecordResponse)
async def removeRecordEndpoint(
    recordId: int = Path(..., description="Record identifier"),
    typeDef: TypeDef = Depends(getType),
    adapter: TypeStoreAdapter = Depends(getAdapter)
):
    try:
        deleted = await adapter.remove(typeDef, recordId)
        return DeleteRecordResponse(deleted=deleted)
    except BaseTypeStoreException as e:
        raise e
    except SQLAlchemyError as e:
        raise _databaseFailure(e, "remove", typeDef)
