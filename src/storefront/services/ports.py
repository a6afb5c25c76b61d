"""
Contracts the services expect from the persistence layer.

`storefront.db.crud` provides all of them; tests pass doubles instead.
"""

from typing import List, Optional, Protocol

from storefront.db import models


class UserStore(Protocol):
    async def get_user(self, user_id: str) -> Optional[models.User]: ...

    async def get_user_by_email(self, email: str) -> Optional[models.User]: ...

    async def create_user(
        self, name: str, email: str, password_hash: str
    ) -> models.User: ...


class CatalogStore(Protocol):
    async def list_products(self) -> List[models.Product]: ...

    async def get_product(self, product_id: str) -> Optional[models.Product]: ...


class CartStore(UserStore, CatalogStore, Protocol):
    async def list_cart(self, user_id: str) -> models.Cart: ...

    async def add_to_cart(self, user_id: str, product_id: str, qty: int = 1) -> None: ...

    async def remove_from_cart(self, user_id: str, product_id: str) -> bool: ...


class OrderStore(CartStore, Protocol):
    async def place_order(self, order: models.Order, priced_cart: models.Cart) -> None: ...

    async def list_orders(self, user_id: str) -> List[models.Order]: ...
