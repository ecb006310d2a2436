from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


class Metafield(BaseModel):
    namespace: str
    key: str
    value: Optional[str] = None


class StorefrontMetafield(BaseModel):
    key: str
    value: Optional[str] = None


class VariantMetafieldResponse(BaseModel):
    variantId: int
    namespace: str
    key: str
    value: Optional[str] = None


class ProductVariantMetafields(BaseModel):
    variantId: Optional[int] = None
    sku: Optional[str] = None
    metafields: List[Metafield] = []
    fields: Dict[str, Optional[str]] = {}
    status: Optional[int] = Field(default=None, description="Upstream HTTP status when this variant's lookup failed")
    error: Optional[str] = None


class ProductMetafieldsResponse(BaseModel):
    productId: int
    namespace: str
    key: Optional[str] = None
    variants: List[ProductVariantMetafields] = []


class StorefrontVariantMetafields(BaseModel):
    variantId: Optional[int] = None
    sku: Optional[str] = None
    metafields: List[StorefrontMetafield] = []


class StorefrontMetafieldsResponse(BaseModel):
    productId: int
    variants: List[StorefrontVariantMetafields] = []


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
    hint: Optional[str] = None
