import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional

from typestore.api.router import apiRouter
from typestore.core.config import Settings, settings as defaultSettings
from typestore.core.exceptions import (
    BaseTypeStoreException, TypeStoreError, UnknownErrorException, ValidationException,
    translateDatabaseError
)
from typestore.core.logging_config import configureLogging
from typestore.db.session import createEngine
from typestore.models.api_models import SchemaDefinition
from typestore.services.schema_loader import schemaLoader
from typestore.services.type_adapter import TypeStoreAdapter

logger = logging.getLogger(__name__)

def createApp(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or defaultSettings

    app = FastAPI(
        title="typestore",
        version="0.1.0",
        description="Typed object records over a relational store, driven by a declarative type schema.",
    )
    app.state.settings = settings
    app.state.schemaDocument = SchemaDefinition(types=[])
    app.state.types = {}

    @app.on_event("startup")
    async def onStartup():
        configureLogging(settings.logLevel)
        app.state.engine = createEngine(settings)
        app.state.adapter = TypeStoreAdapter.fromBind(app.state.engine)

        if settings.schemaPath:
            app.state.schemaDocument, app.state.types = await schemaLoader.loadSchema(settings.schemaPath)
            if settings.materializeOnStartup:
                await app.state.adapter.materializeSchema(app.state.types.values())
        else:
            logger.warning("No schemaPath configured; serving an empty schema")

    @app.on_event("shutdown")
    async def onShutdown():
        await app.state.engine.dispose()

    @app.exception_handler(BaseTypeStoreException)
    async def typeStoreExceptionHandler(request: Request, exc: BaseTypeStoreException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail["error"]}
        )

    @app.exception_handler(RequestValidationError)
    async def validationExceptionHandler(request: Request, exc: RequestValidationError):
        errorMessages = []
        for error in exc.errors():
            loc = []
            for item in error["loc"]:
                if isinstance(item, int): # handle list indices
                    loc.append(f"[{item}]")
                else:
                    loc.append(str(item))

            locPath = ".".join(loc).replace(".[", "[") # body.[0].field -> body[0].field
            errorMessages.append(f"Field '{locPath}': {error['msg']}")

        validationError = ValidationException(message="Validation Error: " + "; ".join(errorMessages))

        return JSONResponse(
            status_code=validationError.status_code,
            content={"error": validationError.detail["error"]}
        )

    @app.exception_handler(TypeStoreError)
    async def coreExceptionHandler(request: Request, exc: TypeStoreError):
        validationError = ValidationException(message=str(exc))
        return JSONResponse(
            status_code=validationError.status_code,
            content={"error": validationError.detail["error"]}
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemyExceptionHandler(request: Request, exc: SQLAlchemyError):
        logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
        serverError = translateDatabaseError(exc)
        return JSONResponse(
            status_code=serverError.status_code,
            content={"error": serverError.detail["error"]}
        )

    @app.exception_handler(Exception)
    async def genericExceptionHandler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        serverError = UnknownErrorException()
        return JSONResponse(
            status_code=serverError.status_code,
            content={"error": serverError.detail["error"]}
        )

    app.include_router(apiRouter)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "typestore is running", "types": sorted(app.state.types)}

    return app

app = createApp()
