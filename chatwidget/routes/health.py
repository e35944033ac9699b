from fastapi import APIRouter, Depends

from chatwidget.api.deps import AppServices, get_services

router = APIRouter()


@router.get("/health")
async def health_check(services: AppServices = Depends(get_services)):
    """
    Liveness plus the configuration state of each backing service.
    """
    return {
        "status": "ok",
        "message": "Server is running",
        "services": {
            "database": "connected" if services.store is not None else "not configured",
            "ai": "configured" if services.completion is not None else "not configured",
            "whatsapp": "configured" if services.whatsapp.configured else "not configured",
        },
    }
