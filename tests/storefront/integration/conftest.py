"""Stub cart/wishlist REST backend for HTTP adapter tests.

A small FastAPI app speaking the backend's ``{success, message, data}``
envelope, mounted under ``/api`` and served in-process through
``httpx.ASGITransport``.
"""

import json

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

BASE_URL = "http://shop.test/api"
TOKEN = "tok-u1"

CATALOGUE = {
    "p1": {"_id": "p1", "name": "Basic Tee", "price": 20.0, "images": ["tee.jpg"], "stock": 5, "variants": []},
    "p2": {
        "_id": "p2",
        "name": "Hoodie",
        "price": 45.0,
        "images": [{"url": "hoodie.jpg"}],
        "stock": 10,
        "variants": [
            {"_id": "v-m", "sku": "HD-M", "stock": 3, "options": {"size": "M"}},
            {"_id": "v-l", "sku": "HD-L", "stock": 2, "options": {"size": "L"}},
        ],
    },
}

VARIANT_FIELDS = ("variantId", "variantSku", "variantOptions")


class StubState:
    def __init__(self):
        self.cart: list[dict] = []
        self.wishlist: list[dict] = []
        self.requests: list[dict] = []
        self.deleted_products: set[str] = set()


def _variant_of(source) -> dict:
    variant = {key: source.get(key) for key in VARIANT_FIELDS if source.get(key)}
    if isinstance(variant.get("variantOptions"), str):
        variant["variantOptions"] = json.loads(variant["variantOptions"])
    return variant


def _same(line: dict, product_id: str, variant: dict) -> bool:
    return line["product"] == product_id and _variant_of(line) == variant


def _stock(product_id: str, variant: dict):
    product = CATALOGUE[product_id]
    for candidate in product["variants"]:
        if candidate["_id"] == variant.get("variantId") or candidate["sku"] == variant.get("variantSku"):
            return candidate["stock"]
    return product["stock"]


def _ok(data=None, message=None):
    return {"success": True, "message": message, "data": data}


def _fail(status_code: int, message: str):
    return JSONResponse({"success": False, "message": message}, status_code=status_code)


def build_backend(state: StubState) -> FastAPI:
    app = FastAPI()

    def populated(line: dict) -> dict:
        product = None if line["product"] in state.deleted_products else CATALOGUE[line["product"]]
        return {**line, "product": product}

    def cart_data() -> dict:
        items = [populated(line) for line in state.cart]
        return {
            "items": items,
            "totalItems": sum(line["quantity"] for line in state.cart),
            "totalPrice": sum(line["quantity"] * line["price"] for line in state.cart),
        }

    def wishlist_data() -> dict:
        return {"items": [populated(line) for line in state.wishlist], "totalItems": len(state.wishlist)}

    @app.middleware("http")
    async def authorize(request: Request, call_next):
        state.requests.append(
            {
                "method": request.method,
                "path": request.url.path,
                "query": dict(request.query_params),
                "authorization": request.headers.get("authorization"),
            }
        )
        if request.headers.get("authorization") != f"Bearer {TOKEN}":
            return _fail(401, "Not authorized, no token")
        return await call_next(request)

    # Cart
    @app.get("/api/cart/")
    async def get_cart():
        return _ok(cart_data())

    @app.get("/api/cart/count")
    async def cart_count():
        return _ok({"count": sum(line["quantity"] for line in state.cart)})

    @app.post("/api/cart/add")
    async def add_to_cart(request: Request):
        body = await request.json()
        product_id, variant = body["productId"], _variant_of(body)
        existing = next((line for line in state.cart if _same(line, product_id, variant)), None)
        requested = body["quantity"] + (existing["quantity"] if existing else 0)
        stock = _stock(product_id, variant)
        if requested > stock:
            return _fail(400, f"Only {stock} left in stock")
        if existing:
            existing["quantity"] = requested
        else:
            state.cart.append(
                {"product": product_id, "quantity": requested, "price": CATALOGUE[product_id]["price"], **variant}
            )
        return _ok(cart_data(), "Item added to cart")

    @app.put("/api/cart/update")
    async def update_cart(request: Request):
        body = await request.json()
        product_id, variant = body["productId"], _variant_of(body)
        existing = next((line for line in state.cart if _same(line, product_id, variant)), None)
        if existing is None:
            return _fail(404, "Item not found in cart")
        existing["quantity"] = body["quantity"]
        return _ok(cart_data())

    @app.delete("/api/cart/remove/{product_id}")
    async def remove_from_cart(product_id: str, request: Request):
        variant = _variant_of(request.query_params)
        state.cart = [line for line in state.cart if not _same(line, product_id, variant)]
        return _ok(cart_data())

    @app.delete("/api/cart/clear")
    async def clear_cart():
        state.cart = []
        # No cart in the response; clients fetch it again.
        return _ok(None, "Cart cleared")

    @app.post("/api/cart/merge-guest-cart")
    async def merge_cart(request: Request):
        body = await request.json()
        state.requests[-1]["body"] = body
        for item in body["guestCartItems"]:
            product_id, variant = item["product"], _variant_of(item)
            existing = next((line for line in state.cart if _same(line, product_id, variant)), None)
            stock = _stock(product_id, variant)
            if existing:
                existing["quantity"] = min(existing["quantity"] + item["quantity"], stock)
            else:
                state.cart.append(
                    {
                        "product": product_id,
                        "quantity": min(item["quantity"], stock),
                        "price": item["price"],
                        **variant,
                    }
                )
        return _ok(cart_data(), "Guest cart merged successfully")

    # Wishlist
    @app.get("/api/wishlist/")
    async def get_wishlist():
        return _ok(wishlist_data())

    @app.get("/api/wishlist/count")
    async def wishlist_count():
        return _ok({"count": len(state.wishlist)})

    @app.get("/api/wishlist/check/{product_id}")
    async def check_wishlist(product_id: str):
        return _ok({"isInWishlist": any(line["product"] == product_id for line in state.wishlist)})

    @app.post("/api/wishlist/add")
    async def add_to_wishlist(request: Request):
        body = await request.json()
        product_id, variant = body["productId"], _variant_of(body)
        if any(_same(line, product_id, variant) for line in state.wishlist):
            return _fail(400, "Product already in wishlist")
        state.wishlist.append({"product": product_id, **variant})
        return _ok(wishlist_data())

    @app.delete("/api/wishlist/remove/{product_id}")
    async def remove_from_wishlist(product_id: str, request: Request):
        variant = _variant_of(request.query_params)
        state.wishlist = [line for line in state.wishlist if not _same(line, product_id, variant)]
        return _ok(wishlist_data())

    @app.delete("/api/wishlist/clear")
    async def clear_wishlist():
        state.wishlist = []
        return _ok(wishlist_data())

    @app.post("/api/wishlist/move-to-cart/{product_id}")
    async def move_to_cart(product_id: str, request: Request):
        variant = _variant_of(request.query_params)
        if not any(_same(line, product_id, variant) for line in state.wishlist):
            return _fail(404, "Product not found in wishlist")
        state.wishlist = [line for line in state.wishlist if not _same(line, product_id, variant)]
        state.cart.append({"product": product_id, "quantity": 1, "price": CATALOGUE[product_id]["price"], **variant})
        return _ok({"productId": product_id}, "Product moved to cart")

    @app.post("/api/wishlist/merge-guest-wishlist")
    async def merge_wishlist(request: Request):
        body = await request.json()
        state.requests[-1]["body"] = body
        for product in body["guestWishlistProducts"]:
            product_id, variant = product["_id"], _variant_of(product)
            if not any(_same(line, product_id, variant) for line in state.wishlist):
                state.wishlist.append({"product": product_id, **variant})
        return _ok(wishlist_data(), "Guest wishlist merged successfully")

    return app


@pytest.fixture()
def stub_state():
    return StubState()


@pytest.fixture()
def transport(stub_state):
    return httpx.ASGITransport(app=build_backend(stub_state))


@pytest.fixture()
def make_client(transport):
    def _make():
        return httpx.AsyncClient(base_url=BASE_URL, transport=transport)

    return _make
