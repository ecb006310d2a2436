from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from metafield_proxy.core.config import Settings
from metafield_proxy.core.exceptions import BadRequest, ConfigurationError
from metafield_proxy.services.bigcommerce_service import BigCommerceService
from metafield_proxy.api.deps import get_settings, get_bigcommerce_service, require_caller
from metafield_proxy.models.metafield import ErrorResponse, StorefrontMetafieldsResponse
from metafield_proxy.utils.helpers import mask_token, parse_numeric_id
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    dependencies=[Depends(require_caller)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


async def _diagnostics(mode: str, settings: Settings, bigcommerce: BigCommerceService):
    if mode == "env":
        return {
            "hasStoreHash": bool(settings.bc_store_hash),
            "hasSfToken": bool(settings.bc_sf_token),
            "tokenPreview": mask_token(settings.bc_sf_token),
            "endpoint": (settings.storefront_graphql_endpoint
                         if settings.bc_store_hash or settings.bc_sf_graphql_endpoint else None),
            "channelId": settings.bc_channel_id,
        }
    logger.info("Pinging storefront GraphQL endpoint")
    return await bigcommerce.ping_storefront()


@router.get("/variant-metafields-sf", response_model=StorefrontMetafieldsResponse)
async def get_storefront_variant_metafields(
    productId: Optional[str] = None,
    debug: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    bigcommerce: BigCommerceService = Depends(get_bigcommerce_service),
):
    """Variant metafields as the storefront channel sees them (Storefront GraphQL).

    ``debug=env`` and ``debug=ping`` answer only when diagnostics are enabled;
    otherwise the parameter is ignored.
    """
    if debug in ("env", "ping"):
        if settings.enable_diagnostics:
            return JSONResponse(await _diagnostics(debug, settings, bigcommerce))
        logger.warning(f"Ignoring debug={debug}: diagnostics are disabled")

    product_id = parse_numeric_id(productId)
    if product_id is None:
        raise BadRequest("Missing or invalid productId")
    if not settings.storefront_configured:
        logger.error("Storefront lookup requested but BC_STORE_HASH or BC_SF_TOKEN is missing")
        raise ConfigurationError({
            "hasStoreHash": bool(settings.bc_store_hash),
            "hasSfToken": bool(settings.bc_sf_token),
        })

    variants = await bigcommerce.fetch_storefront_variant_metafields(
        product_id, settings.metafield_namespace, settings.storefront_keys
    )
    return StorefrontMetafieldsResponse(productId=product_id, variants=variants)
