from typing import Optional

from fastapi import Depends, Header, Request

from metafield_proxy.core.config import Settings
from metafield_proxy.core.security import verify_caller
from metafield_proxy.services.bigcommerce_service import BigCommerceService
from metafield_proxy.services.metafield_service import MetafieldService, metafield_service


def get_settings(request: Request) -> Settings:
    """Dependency for the settings the app was created with"""
    return request.app.state.settings


def get_bigcommerce_service(settings: Settings = Depends(get_settings)) -> BigCommerceService:
    """Dependency for BigCommerce service"""
    return BigCommerceService(settings)


def get_metafield_service() -> MetafieldService:
    """Dependency for metafield projection service"""
    return metafield_service


def require_caller(
    settings: Settings = Depends(get_settings),
    origin: Optional[str] = Header(None),
    x_proxy_key: Optional[str] = Header(None),
) -> None:
    """Dependency enforcing the origin allow-list and the shared proxy key"""
    verify_caller(settings, origin, x_proxy_key)
