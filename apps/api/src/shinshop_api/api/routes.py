from fastapi import APIRouter

from .v1 import api_router as v1_router
from .v1.endpoints import health

api_router = APIRouter()
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(v1_router, prefix="/api/v1")
