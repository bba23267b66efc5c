from fastapi import APIRouter
from typestore.api.v1 import records_router, schema_router

apiRouter = APIRouter()

apiRouter.include_router(schema_router.router)
apiRouter.include_router(records_router.router)
