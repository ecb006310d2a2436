from fastapi import APIRouter, Depends
from metafield_proxy.core.config import Settings
from metafield_proxy.api.deps import get_settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Liveness check; never calls BigCommerce"""
    return {
        "status": "healthy",
        "service": "metafield-proxy",
        "version": settings.version,
        "adminConfigured": settings.admin_configured,
        "storefrontConfigured": settings.storefront_configured,
    }
