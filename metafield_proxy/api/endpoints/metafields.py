from fastapi import APIRouter, Depends
from metafield_proxy.core.config import Settings
from metafield_proxy.core.exceptions import BadRequest, ConfigurationError
from metafield_proxy.services.bigcommerce_service import BigCommerceService
from metafield_proxy.services.metafield_service import MetafieldService
from metafield_proxy.api.deps import get_settings, get_bigcommerce_service, get_metafield_service, require_caller
from metafield_proxy.models.metafield import (
    ErrorResponse,
    ProductMetafieldsResponse,
    ProductVariantMetafields,
    VariantMetafieldResponse,
)
from metafield_proxy.utils.helpers import parse_numeric_id
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


def _require_admin_config(settings: Settings) -> None:
    if not settings.admin_configured:
        logger.error("Admin API lookup requested but BC_STORE_HASH or BC_ADMIN_API_TOKEN is missing")
        raise ConfigurationError({
            "hasStoreHash": bool(settings.bc_store_hash),
            "hasAdminToken": bool(settings.bc_admin_api_token),
        })


@router.get("/variant-metafield", response_model=VariantMetafieldResponse)
async def get_variant_metafield(
    variantId: Optional[str] = None,
    namespace: Optional[str] = None,
    key: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    bigcommerce: BigCommerceService = Depends(get_bigcommerce_service),
    metafields: MetafieldService = Depends(get_metafield_service),
):
    """Single metafield of one variant; value is null when the variant has no such field."""
    variant_id = parse_numeric_id(variantId)
    if variant_id is None:
        raise BadRequest("variantId is required and must be a number")

    mf_namespace = namespace or settings.metafield_namespace
    mf_key = key or settings.metafield_key
    _require_admin_config(settings)

    items = await bigcommerce.fetch_variant_metafields(variant_id)
    return VariantMetafieldResponse(**metafields.project_variant(variant_id, items, mf_namespace, mf_key))


@router.get(
    "/variant-metafields",
    response_model=ProductMetafieldsResponse,
    response_model_exclude_unset=True,
)
async def get_product_variant_metafields(
    productId: Optional[str] = None,
    key: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    bigcommerce: BigCommerceService = Depends(get_bigcommerce_service),
    metafields: MetafieldService = Depends(get_metafield_service),
):
    """Metafields of the configured namespace for every variant of a product.

    Variants whose metafields could not be read are still listed, with an
    empty field set, their upstream ``status`` and an ``error`` marker.
    """
    product_id = parse_numeric_id(productId)
    if product_id is None:
        raise BadRequest("Missing or invalid productId")
    _require_admin_config(settings)

    namespace = settings.metafield_namespace
    key = key or None
    entries = await bigcommerce.fetch_product_variant_metafields(product_id)

    variants = []
    for entry in entries:
        variant = {
            "variantId": entry.get("variantId"),
            "sku": entry.get("sku"),
            "metafields": metafields.filter_metafields(entry.get("metafields"), namespace, key),
            "fields": metafields.fields_by_key(entry.get("metafields"), namespace, key),
        }
        if "status" in entry:
            variant["status"] = entry["status"]
        if "error" in entry:
            variant["error"] = entry["error"]
        variants.append(ProductVariantMetafields(**variant))

    failed = sum(1 for v in variants if v.error)
    if failed:
        logger.warning(f"Product {product_id}: {failed} of {len(variants)} variant lookups failed")

    response = {"productId": product_id, "namespace": namespace, "variants": variants}
    if key:
        response["key"] = key
    return ProductMetafieldsResponse(**response)
