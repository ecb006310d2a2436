import httpx

from conftest import STORE

PRODUCT_PATH = f"{STORE}/v3/catalog/products/1538"
VARIANTS_PATH = f"{STORE}/v3/catalog/products/1538/variants"


def _variant_metafields_path(variant_id):
    return f"{STORE}/v3/catalog/variants/{variant_id}/metafields"


def _desc(value, key="Secondary Attribute Description", namespace="SecondaryDesc"):
    return {"namespace": namespace, "key": key, "value": value}


def _product_with_variants(upstream, variants):
    upstream.add("GET", PRODUCT_PATH, json={"data": {"id": 1538, "name": "Oak Table"}})
    upstream.add("GET", VARIANTS_PATH, json={
        "data": variants,
        "meta": {"pagination": {"total": len(variants), "current_page": 1, "total_pages": 1}},
    })


def test_invalid_product_id(client, upstream):
    r = client.get("/api/variant-metafields?productId=0")
    assert r.status_code == 400
    assert r.content == b'{"error":"Missing or invalid productId"}'

    assert client.get("/api/variant-metafields").status_code == 400
    assert client.get("/api/variant-metafields?productId=12x").status_code == 400
    assert upstream.requests == []


def test_lists_namespace_fields_per_variant(client, upstream):
    _product_with_variants(upstream, [{"id": 11, "sku": "OAK-S"}, {"id": 12, "sku": "OAK-L"}])
    upstream.add("GET", _variant_metafields_path(11), json={"data": [
        _desc("small"),
        _desc("Oak", key="Material"),
        _desc("ignored", namespace="Shipping"),
    ]})
    upstream.add("GET", _variant_metafields_path(12), json={"data": []})

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 200
    assert r.json() == {
        "productId": 1538,
        "namespace": "SecondaryDesc",
        "variants": [
            {
                "variantId": 11,
                "sku": "OAK-S",
                "metafields": [_desc("small"), _desc("Oak", key="Material")],
                "fields": {"Secondary Attribute Description": "small", "Material": "Oak"},
            },
            {"variantId": 12, "sku": "OAK-L", "metafields": [], "fields": {}},
        ],
    }


def test_key_narrows_the_projection(client, upstream):
    _product_with_variants(upstream, [{"id": 11, "sku": "OAK-S"}])
    upstream.add("GET", _variant_metafields_path(11), json={"data": [
        _desc("small"),
        _desc("Oak", key="Material"),
    ]})

    r = client.get("/api/variant-metafields", params={"productId": "1538", "key": "Material"})
    body = r.json()
    assert body["key"] == "Material"
    assert body["variants"][0]["fields"] == {"Material": "Oak"}


def test_one_failing_variant_does_not_fail_the_batch(client, upstream):
    _product_with_variants(upstream, [
        {"id": 11, "sku": "A"}, {"id": 12, "sku": "B"}, {"id": 13, "sku": "C"},
    ])
    upstream.add("GET", _variant_metafields_path(11), json={"data": [_desc("a")]})
    upstream.add("GET", _variant_metafields_path(12), status=503, text="upstream busy")
    upstream.add("GET", _variant_metafields_path(13), json={"data": [_desc("c")]})

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 200
    variants = r.json()["variants"]
    assert [v["variantId"] for v in variants] == [11, 12, 13]
    assert variants[1] == {
        "variantId": 12, "sku": "B", "metafields": [], "fields": {}, "status": 503, "error": "HTTP 503",
    }
    assert variants[0]["fields"] == {"Secondary Attribute Description": "a"}
    assert "status" not in variants[2]


def test_transport_error_on_one_variant_is_isolated(client, upstream):
    _product_with_variants(upstream, [{"id": 11, "sku": "A"}, {"id": 12, "sku": "B"}])

    def _refused(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.add("GET", _variant_metafields_path(11), handler=_refused)
    upstream.add("GET", _variant_metafields_path(12), json={"data": [_desc("b")]})

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 200
    failed, ok = r.json()["variants"]
    assert failed["metafields"] == [] and failed["error"] == "connection refused"
    assert ok["fields"] == {"Secondary Attribute Description": "b"}


def test_missing_product_is_passed_through(client, upstream):
    upstream.add("GET", PRODUCT_PATH, status=404, text='{"status":404,"title":"The requested product was not found."}')

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 404
    body = r.json()
    assert body["error"] == "BigCommerce product fetch failed"
    assert "not found" in body["details"]
    assert body["hint"] == "productId may not exist in this store"
    assert len(upstream.requests) == 1


def test_all_variant_pages_are_read(client, upstream):
    upstream.add("GET", PRODUCT_PATH, json={"data": {"id": 1538}})

    def _variants_page(request):
        page = int(request.url.params["page"])
        data = [{"id": 10 + page, "sku": f"P{page}"}]
        return httpx.Response(200, json={
            "data": data,
            "meta": {"pagination": {"current_page": page, "total_pages": 2}},
        })

    upstream.add("GET", VARIANTS_PATH, handler=_variants_page)
    upstream.add("GET", _variant_metafields_path(11), json={"data": []})
    upstream.add("GET", _variant_metafields_path(12), json={"data": []})

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert [v["sku"] for v in r.json()["variants"]] == ["P1", "P2"]


def test_missing_admin_token(make_client, upstream):
    client = make_client(bc_admin_api_token=None)

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 500
    assert r.json() == {"error": "Server env not set", "details": {"hasStoreHash": True, "hasAdminToken": False}}
    assert upstream.requests == []


def test_post_not_allowed(client):
    r = client.post("/api/variant-metafields?productId=1538")
    assert r.status_code == 405
    assert r.headers["Allow"] == "GET"


def test_malformed_variant_pagination_is_bad_gateway(client, upstream):
    upstream.add("GET", PRODUCT_PATH, json={"data": {"id": 1538}})
    upstream.add("GET", VARIANTS_PATH, json={"data": [{"id": 11, "sku": "A"}], "meta": "oops"})

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 502
    assert r.json()["error"] == "Invalid JSON from BigCommerce"


def test_malformed_product_payload_is_bad_gateway(client, upstream):
    upstream.add("GET", PRODUCT_PATH, json={"data": "oops"})

    r = client.get("/api/variant-metafields", params={"productId": "1538"})
    assert r.status_code == 502
    assert len(upstream.requests) == 1
