import re
from fastapi import HTTPException
from fastapi import status as httpStatus
from typing import List, Optional, Any
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

class TypeStoreErrorModel(BaseModel):
    message: str
    type: str
    code: int
    field: Optional[str] = None

class ErrorResponse(BaseModel):
    error: TypeStoreErrorModel

class BaseTypeStoreException(HTTPException):
    def __init__(self, statusCode: int, message: str, errorType: str, field: Optional[str] = None):
        self.errorType = errorType
        self.message = message
        self.field = field
        error = {
            "message": message,
            "type": errorType,
            "code": statusCode,
        }
        if field is not None:
            error["field"] = field
        super().__init__(status_code=statusCode, detail={"error": error})

class BadRequestException(BaseTypeStoreException):
    def __init__(self, message: str = "The request was malformed or contained invalid parameters."):
        super().__init__(
            statusCode=httpStatus.HTTP_400_BAD_REQUEST,
            message=message,
            errorType="BadRequestException"
        )

class ValidationException(BadRequestException):
    def __init__(self, message: str):
        super().__init__(
            message=message
        )
        self.errorType = "ValidationException"
        self.detail["error"]["type"] = self.errorType

class ConstraintViolationException(BaseTypeStoreException):
    def __init__(self, field: Optional[str] = None):
        super().__init__(
            statusCode=httpStatus.HTTP_400_BAD_REQUEST,
            message="constraint_violation",
            errorType="ConstraintViolationException",
            field=field
        )

class NotFoundException(BaseTypeStoreException):
    def __init__(self, resourceType: str, identifier: Any):
        super().__init__(
            statusCode=httpStatus.HTTP_404_NOT_FOUND,
            message=f"{resourceType} with identifier '{identifier}' not found.",
            errorType="NotFoundException"
        )

class NoSuchTypeException(NotFoundException):
    def __init__(self, typeName: str):
        super().__init__(resourceType="Type", identifier=typeName)
        self.errorType = "NoSuchTypeException"
        self.detail["error"]["type"] = self.errorType

class NoSuchRecordException(NotFoundException):
    def __init__(self, typeName: str, recordId: Any):
        super().__init__(resourceType=typeName, identifier=recordId)
        self.errorType = "NoSuchRecordException"
        self.detail["error"]["type"] = self.errorType

class UnknownErrorException(BaseTypeStoreException):
    def __init__(self):
        super().__init__(
            statusCode=httpStatus.HTTP_500_INTERNAL_SERVER_ERROR,
            message="unknown_error",
            errorType="UnknownErrorException"
        )


# Errors raised by the core itself. They carry no HTTP semantics; the API layer maps them.

class TypeStoreError(Exception):
    pass

class SchemaDefinitionError(TypeStoreError):
    pass

class CyclicTypeDependencyError(SchemaDefinitionError):
    def __init__(self, path: List[str]):
        self.path = path
        super().__init__(f"Cyclic type dependency: {' -> '.join(path)}")

class InvalidFilterError(TypeStoreError):
    def __init__(self, filterText: str, reason: str):
        self.filterText = filterText
        super().__init__(f"Invalid filter '{filterText}': {reason}")

class InvalidQueryError(TypeStoreError):
    pass


_FIELD_PATTERNS = [
    re.compile(r"constraint failed: [^\s.]+\.(\w+)"),  # sqlite
    re.compile(r"Key \(([^)=,]+)\)="),  # postgresql DETAIL line
    re.compile(r'column "([^"]+)"'),  # postgresql not-null
    re.compile(r"Column '([^']+)'"),  # mysql not-null
    re.compile(r"for key '(?:[^'.]+\.)?([^']+)'"),  # mysql duplicate entry
]

def extractConstraintField(message: str) -> Optional[str]:
    for pattern in _FIELD_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1).strip('"')
    return None

def translateDatabaseError(exc: Exception) -> BaseTypeStoreException:
    if isinstance(exc, IntegrityError):
        message = str(exc.orig) if exc.orig is not None else str(exc)
        return ConstraintViolationException(field=extractConstraintField(message))
    return UnknownErrorException()
