from fastapi import APIRouter, Depends

from shinshop_api.api.dependencies.notifications import get_app_settings
from shinshop_api.core.settings import Settings
from shinshop_api.version import APP_VERSION

router = APIRouter()


@router.get("/healthz", summary="Service health check")
async def service_health(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": APP_VERSION,
    }
