"""
Request dispatcher.

Maps (method, path) pairs onto the services and turns every outcome into a
structured result carrying `success`. Transport framing (HTTP, CLI...) is the
caller's concern; nothing raised by a service ever escapes `ShopApi.handle`.
"""

import dataclasses
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import pydantic

from storefront import config
from storefront.api import schemas
from storefront.errors import InternalError, NotFoundError, ShopError, ValidationError
from storefront.services.auth import AuthService
from storefront.services.cart import CartManager
from storefront.services.catalog import CatalogService
from storefront.services.locks import UserLocks
from storefront.services.orders import OrderEngine
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)

GENERIC_ERROR = "Something went wrong"


def to_data(obj) -> Any:
    """Dataclass records to plain JSON-friendly values."""
    if dataclasses.is_dataclass(obj):
        return {f.name: to_data(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, (list, tuple)):
        return [to_data(item) for item in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def ok(**fields) -> Dict[str, Any]:
    return {"success": True, **fields}


def fail(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


def _field_error(e: pydantic.ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(part) for part in err["loc"]) or "body"
    if err["type"] == "missing":
        return f"Missing required field: {loc}"
    return f"Invalid field: {loc}"


class ShopApi:
    # routes whose userId may come from a bearer token
    USER_SCOPED = {
        "user/profile",
        "cart/add",
        "cart/remove",
        "cart/get",
        "order/place",
        "order/get",
    }

    def __init__(
        self,
        auth: Optional[AuthService] = None,
        catalog: Optional[CatalogService] = None,
        cart: Optional[CartManager] = None,
        orders: Optional[OrderEngine] = None,
        store=None,
    ):
        locks = UserLocks()
        self.auth = auth if auth is not None else AuthService(store)
        self.catalog = catalog if catalog is not None else CatalogService(store)
        self.cart = cart if cart is not None else CartManager(store, locks)
        self.orders = orders if orders is not None else OrderEngine(store, locks)

        self.routes = {
            ("GET", ""): self.root,
            ("POST", "user/register"): self.register,
            ("POST", "user/login"): self.login,
            ("POST", "user/profile"): self.profile,
            ("GET", "product/all"): self.list_products,
            ("POST", "cart/add"): self.add_to_cart,
            ("POST", "cart/remove"): self.remove_from_cart,
            ("POST", "cart/get"): self.get_cart,
            ("POST", "order/place"): self.place_order,
            ("POST", "order/get"): self.get_orders,
        }

    def _resolve(self, method: str, path: str) -> Tuple[Any, Dict[str, str]]:
        handler = self.routes.get((method, path))
        if handler is not None:
            return handler, {}
        # GET product/{id}
        parts = path.split("/")
        if method == "GET" and len(parts) == 2 and parts[0] == "product" and parts[1]:
            return self.get_product, {"product_id": parts[1]}
        return None, {}

    async def handle(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        method = str(method or "").upper()
        path = str(path or "").strip("/")
        if path.startswith("api/") or path == "api":
            path = path[4:]

        try:
            if body is None:
                body = {}
            elif not isinstance(body, dict):
                raise ValidationError("Invalid request body", field="body")
            body = dict(body)
            handler, params = self._resolve(method, path)
            if handler is None:
                raise NotFoundError(f"Cannot {method} /{path}")
            if token and path in self.USER_SCOPED:
                body["userId"] = self.auth.authenticate(token)
            return await handler(body, **params)
        except pydantic.ValidationError as e:
            return fail(_field_error(e))
        except InternalError as e:
            _logger.error(f"{method} /{path} failed: {e.message}")
            return fail(GENERIC_ERROR if config.HARDENED else e.message)
        except ShopError as e:
            return fail(e.message)
        except Exception as e:
            _logger.exception(f"{method} /{path} failed")
            return fail(GENERIC_ERROR if config.HARDENED else str(e))

    # ---------------------------
    # Handlers
    # ---------------------------

    async def root(self, body):
        return ok(message="API is working")

    async def register(self, body):
        req = schemas.RegisterRequest.model_validate(body)
        result = await self.auth.register(req.name, req.email, req.password)
        return ok(token=result.token)

    async def login(self, body):
        req = schemas.LoginRequest.model_validate(body)
        result = await self.auth.login(req.email, req.password)
        return ok(token=result.token)

    async def profile(self, body):
        req = schemas.UserRequest.model_validate(body)
        return ok(data=to_data(await self.auth.get_profile(req.userId)))

    async def list_products(self, body):
        return ok(data=to_data(await self.catalog.list_products()))

    async def get_product(self, body, product_id: str):
        return ok(data=to_data(await self.catalog.get_product(product_id)))

    async def add_to_cart(self, body):
        req = schemas.CartItemRequest.model_validate(body)
        await self.cart.add_item(req.userId, req.productId)
        return ok(message="Added to cart")

    async def remove_from_cart(self, body):
        req = schemas.CartItemRequest.model_validate(body)
        await self.cart.remove_item(req.userId, req.productId)
        return ok(message="Removed from cart")

    async def get_cart(self, body):
        req = schemas.UserRequest.model_validate(body)
        cart = await self.cart.get_cart(req.userId)
        return ok(data={"items": to_data(cart.items), "count": cart.count})

    async def place_order(self, body):
        req = schemas.PlaceOrderRequest.model_validate(body)
        order = await self.orders.place_order(req.userId, req.address)
        return ok(message="Order placed successfully", orderId=order.id)

    async def get_orders(self, body):
        req = schemas.UserRequest.model_validate(body)
        return ok(data=to_data(await self.orders.get_orders(req.userId)))
