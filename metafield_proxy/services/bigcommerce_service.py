import httpx
import asyncio
from typing import List, Dict, Any, Optional
from metafield_proxy.core.config import Settings
from metafield_proxy.core.exceptions import InvalidUpstreamPayload, UpstreamError
from metafield_proxy.utils.helpers import truncate
import logging

logger = logging.getLogger(__name__)


VARIANT_METAFIELDS_QUERY = (
    "query VariantMetafields($productId: Int!, $namespace: String!, $keys: [String!]!, $after: String) { "
    "  site { "
    "    product(entityId: $productId) { "
    "      entityId "
    "      variants(first: 250, after: $after) { "
    "        pageInfo { hasNextPage endCursor } "
    "        edges { "
    "          node { "
    "            entityId sku "
    "            metafields(namespace: $namespace, keys: $keys) { "
    "              edges { node { key value } } "
    "            } "
    "          } "
    "        } "
    "      } "
    "    } "
    "  } "
    "}"
)

PING_QUERY = "query { site { settings { storeName } } }"

PRODUCT_FETCH_HINTS = {
    404: "productId may not exist in this store",
    401: "check the admin token and its scopes",
    403: "check the admin token and its scopes",
}


class BigCommerceService:
    """Read-only access to variant metafields through the Admin REST and Storefront GraphQL APIs.

    Nothing is retried: a non-2xx answer becomes an ``UpstreamError`` carrying the
    upstream status and body, and a 2xx answer that is not JSON becomes an
    ``InvalidUpstreamPayload``.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport
        self.store_url = f"{settings.bc_api_base_url.rstrip('/')}/{settings.bc_store_hash}"

    @property
    def admin_headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'X-Auth-Token': self.settings.bc_admin_api_token or '',
        }
        if self.settings.bc_oauth_client_id:
            headers['X-Auth-Client'] = self.settings.bc_oauth_client_id
        return headers

    @property
    def storefront_headers(self) -> Dict[str, str]:
        token = self.settings.bc_sf_token or ''
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {token}',
            'X-Auth-Token': token,
        }
        if self.settings.bc_channel_id:
            headers['X-Channel-Id'] = str(self.settings.bc_channel_id)
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.settings.http_timeout)

    async def _rest_get(self, client: httpx.AsyncClient, path: str,
                        params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """GET against the store's Admin API. Path should be like "/v3/catalog/..."."""
        return await client.get(f"{self.store_url}{path}", headers=self.admin_headers, params=params)

    async def _graphql(self, client: httpx.AsyncClient, query: str,
                       variables: Optional[Dict[str, Any]] = None) -> httpx.Response:
        payload: Dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables
        return await client.post(
            self.settings.storefront_graphql_endpoint,
            headers=self.storefront_headers,
            json=payload,
        )

    @staticmethod
    def _ensure_ok(resp: httpx.Response, error: str, hint: Optional[str] = None) -> None:
        if resp.is_success:
            return
        logger.error(f"{error}: {resp.status_code} - {truncate(resp.text, 300)}")
        raise UpstreamError(error, resp.status_code, resp.text, hint=hint)

    @staticmethod
    def _parse_json(resp: httpx.Response) -> Any:
        text = resp.text
        if not text:
            return {}
        try:
            return resp.json()
        except ValueError:
            logger.error(f"Non-JSON payload from BigCommerce: {truncate(text, 300)}")
            raise InvalidUpstreamPayload("Invalid JSON from BigCommerce", details=text)

    @staticmethod
    def _object(value: Any, resp: httpx.Response) -> Dict[str, Any]:
        """A JSON object from the payload; missing means empty, any other shape is a bad payload."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            logger.error(f"Unexpected payload shape from BigCommerce: {truncate(resp.text, 300)}")
            raise InvalidUpstreamPayload("Invalid JSON from BigCommerce", details=resp.text)
        return value

    @classmethod
    def _array(cls, value: Any, resp: httpx.Response) -> List[Dict[str, Any]]:
        if value is None:
            return []
        if not isinstance(value, list):
            logger.error(f"Unexpected payload shape from BigCommerce: {truncate(resp.text, 300)}")
            raise InvalidUpstreamPayload("Invalid JSON from BigCommerce", details=resp.text)
        return [cls._object(item, resp) for item in value]

    @staticmethod
    def _data_list(payload: Any) -> List[Dict[str, Any]]:
        data = payload.get('data') if isinstance(payload, dict) else None
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    # ----------------- Admin REST -----------------
    async def fetch_variant_metafields(self, variant_id: int) -> List[Dict[str, Any]]:
        """Raw metafield list of a single variant, in upstream order."""
        async with self._client() as client:
            resp = await self._rest_get(client, f"/v3/catalog/variants/{variant_id}/metafields",
                                        params={"limit": 250})
            self._ensure_ok(resp, "BigCommerce error")
            items = self._data_list(self._parse_json(resp))
        logger.info(f"Fetched {len(items)} metafields for variant {variant_id}")
        return items

    async def _get_product(self, client: httpx.AsyncClient, product_id: int) -> Dict[str, Any]:
        resp = await self._rest_get(client, f"/v3/catalog/products/{product_id}")
        self._ensure_ok(resp, "BigCommerce product fetch failed",
                        hint=PRODUCT_FETCH_HINTS.get(resp.status_code))
        payload = self._object(self._parse_json(resp), resp)
        return self._object(payload.get('data'), resp)

    async def _get_product_variants(self, client: httpx.AsyncClient, product_id: int) -> List[Dict[str, Any]]:
        variants: List[Dict[str, Any]] = []
        page = 1
        while True:
            resp = await self._rest_get(
                client,
                f"/v3/catalog/products/{product_id}/variants",
                params={"limit": self.settings.variants_page_limit, "page": page},
            )
            self._ensure_ok(resp, "BigCommerce variants fetch failed")
            payload = self._object(self._parse_json(resp), resp)
            variants.extend(self._data_list(payload))

            meta = self._object(payload.get('meta'), resp)
            pagination = self._object(meta.get('pagination'), resp)
            total_pages = pagination.get('total_pages')
            if not isinstance(total_pages, int) or page >= total_pages:
                break
            page += 1
        return variants

    async def _get_variant_entry(self, client: httpx.AsyncClient, variant: Dict[str, Any]) -> Dict[str, Any]:
        """One variant of the fan-out. Upstream failures degrade to an annotated empty entry."""
        entry: Dict[str, Any] = {"variantId": variant.get('id'), "sku": variant.get('sku')}
        resp = await self._rest_get(client, f"/v3/catalog/variants/{variant.get('id')}/metafields",
                                    params={"limit": 250})
        if not resp.is_success:
            logger.warning(f"Metafields fetch for variant {variant.get('id')} failed: {resp.status_code}")
            return {**entry, "metafields": [], "status": resp.status_code, "error": f"HTTP {resp.status_code}"}
        try:
            payload = resp.json()
        except ValueError:
            logger.warning(f"Metafields for variant {variant.get('id')} were not JSON")
            return {**entry, "metafields": [], "status": 502, "error": "Invalid JSON from BigCommerce"}
        return {**entry, "metafields": self._data_list(payload)}

    async def fetch_product_variant_metafields(self, product_id: int) -> List[Dict[str, Any]]:
        """Every variant of a product with its raw metafield list.

        The product is checked for existence first, then all variant pages are
        read, then metafields are fetched for every variant concurrently. A
        failing variant never fails the batch; it comes back with an empty list,
        its ``status`` and an ``error`` marker.
        """
        async with self._client() as client:
            await self._get_product(client, product_id)
            variants = await self._get_product_variants(client, product_id)

            tasks = [self._get_variant_entry(client, v) for v in variants]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        entries: List[Dict[str, Any]] = []
        for variant, result in zip(variants, results):
            if isinstance(result, Exception):
                logger.warning(f"Metafields fetch for variant {variant.get('id')} raised: {result!r}")
                entries.append({
                    "variantId": variant.get('id'),
                    "sku": variant.get('sku'),
                    "metafields": [],
                    "error": str(result) or type(result).__name__,
                })
            else:
                entries.append(result)
        logger.info(f"Fetched metafields for {len(entries)} variants of product {product_id}")
        return entries

    # ----------------- Storefront GraphQL -----------------
    async def fetch_storefront_variant_metafields(self, product_id: int, namespace: str,
                                                  keys: List[str]) -> List[Dict[str, Any]]:
        """Variants of a product with the metafields visible to the storefront channel."""
        variants_out: List[Dict[str, Any]] = []
        after: Optional[str] = None
        seen_cursors = set()
        async with self._client() as client:
            while True:
                resp = await self._graphql(client, VARIANT_METAFIELDS_QUERY, {
                    "productId": product_id,
                    "namespace": namespace,
                    "keys": keys,
                    "after": after,
                })
                self._ensure_ok(resp, "Storefront GraphQL error")
                data = self._object(self._parse_json(resp), resp)
                if isinstance(data.get("errors"), list) and data["errors"]:
                    logger.error(f"GraphQL error on variant metafields for product {product_id}: {data['errors']}")
                    raise InvalidUpstreamPayload("GraphQL errors", details=data["errors"])

                site = self._object(self._object(data.get("data"), resp).get("site"), resp)
                product = self._object(site.get("product"), resp)
                if not product:
                    logger.info(f"Storefront returned no product {product_id}")
                    break
                connection = self._object(product.get("variants"), resp)
                for edge in self._array(connection.get("edges"), resp):
                    node = self._object(edge.get("node"), resp)
                    metafield_edges = self._array(self._object(node.get("metafields"), resp).get("edges"), resp)
                    variants_out.append({
                        "variantId": node.get("entityId"),
                        "sku": node.get("sku"),
                        "metafields": [mf for mf in (self._object(e.get("node"), resp) for e in metafield_edges) if mf],
                    })
                page_info = self._object(connection.get("pageInfo"), resp)
                cursor = page_info.get("endCursor")
                if not (page_info.get("hasNextPage") and cursor):
                    break
                if cursor in seen_cursors:
                    logger.error(f"Storefront repeated variants cursor {cursor!r} for product {product_id}")
                    raise InvalidUpstreamPayload("Storefront pagination did not advance", details=cursor)
                seen_cursors.add(cursor)
                after = cursor
        return variants_out

    async def ping_storefront(self) -> Dict[str, Any]:
        """Issue a trivial storefront query and report what came back."""
        async with self._client() as client:
            resp = await self._graphql(client, PING_QUERY)
        return {
            "endpoint": self.settings.storefront_graphql_endpoint,
            "status": resp.status_code,
            "ok": resp.is_success,
            "body": truncate(resp.text),
        }
